import streamlit as st
import logging

import auth_engine
import audit_engine
import route_guard
from session_store import SessionStore
from ui_helpers import busy, reset_screen_state
from ui_store import ensure_store_info, render_open_toggle

logger = logging.getLogger(__name__)

NOTIFICATION_DEFAULTS = {
    "orderAlerts": True,
    "dealReminders": True,
    "weeklySummary": False,
}

# --- ACTIONS ---

def update_account(state, session, form):
    """
    Saves name/email and, when a new password is given, changes it after
    re-authenticating with the current one. Raises ValueError on bad input.
    """
    new_password = form.get("newPassword") or ""
    if new_password:
        if not form.get("currentPassword"):
            raise ValueError("Enter your current password to set a new one.")
        if new_password != form.get("confirmPassword"):
            raise ValueError("New passwords do not match.")
        if len(new_password) < 6:
            raise ValueError("Password must be at least 6 characters.")

    email = (form.get("email") or "").strip()
    if not email:
        raise ValueError("Email is required.")

    with busy(state, "saving"):
        if new_password:
            current_email = session.current_user.get("email")
            auth_engine.change_password(current_email, form["currentPassword"], new_password)
        return session.update({
            "firstName": form.get("firstName", "").strip(),
            "lastName": form.get("lastName", "").strip(),
            "email": email,
        })

def notification_preferences(user):
    return {**NOTIFICATION_DEFAULTS, **((user or {}).get("notifications") or {})}

def save_notifications(state, session, preferences):
    with busy(state, "saving"):
        return session.update({"notifications": dict(preferences)})

def delete_account(state, session):
    """Account removal is not offered yet; this only signs the user out."""
    email = state.get("user_email")
    session.logout()
    reset_screen_state(state)
    audit_engine.log_event(email, "ACCOUNT_DELETE_REQUESTED")

# --- PAGE ---

def render_settings_page():
    state = st.session_state
    session = SessionStore()
    user = session.current_user

    st.markdown("## ⚙️ Settings")

    with st.container(border=True):
        st.markdown("#### 👤 Account")
        with st.form("account_form"):
            c_first, c_last = st.columns(2)
            first_name = c_first.text_input("First Name", value=user.get("firstName") or "")
            last_name = c_last.text_input("Last Name", value=user.get("lastName") or "")
            email = st.text_input("Email Address", value=user.get("email") or "")
            st.caption("Leave the password fields empty to keep your current password.")
            current_password = st.text_input("Current Password", type="password")
            new_password = st.text_input("New Password", type="password")
            confirm_password = st.text_input("Confirm New Password", type="password")
            submitted = st.form_submit_button(
                "💾 Save Account", type="primary", disabled=bool(state.get("saving")),
            )

        if submitted:
            form = {
                "firstName": first_name, "lastName": last_name, "email": email,
                "currentPassword": current_password, "newPassword": new_password,
                "confirmPassword": confirm_password,
            }
            try:
                update_account(state, session, form)
            except ValueError as e:
                st.error(str(e))
            except Exception as e:
                logger.error(f"Account update failed: {e}")
                st.error(f"Failed to update account. ({e})")
            else:
                st.toast("✅ Account updated")
                st.rerun()

    with st.container(border=True):
        st.markdown("#### 🏪 Store Status")
        try:
            ensure_store_info(state, user)
        except Exception as e:
            logger.error(f"Failed to load store info: {e}")
        render_open_toggle(state, "settings_open_toggle")

    with st.container(border=True):
        st.markdown("#### 🔔 Notifications")
        prefs = notification_preferences(user)
        with st.form("notifications_form"):
            order_alerts = st.checkbox("New order alerts", value=prefs["orderAlerts"])
            deal_reminders = st.checkbox("Deal start/end reminders", value=prefs["dealReminders"])
            weekly_summary = st.checkbox("Weekly performance summary", value=prefs["weeklySummary"])
            saved = st.form_submit_button("Save Preferences", disabled=bool(state.get("saving")))

        if saved:
            try:
                save_notifications(state, session, {
                    "orderAlerts": order_alerts,
                    "dealReminders": deal_reminders,
                    "weeklySummary": weekly_summary,
                })
            except Exception as e:
                logger.error(f"Notification preferences update failed: {e}")
                st.error(f"Failed to save preferences. ({e})")
            else:
                st.toast("✅ Preferences saved")

    with st.container(border=True):
        st.markdown("#### ⚠️ Danger Zone")
        confirm = st.checkbox("I understand my account will be closed.")
        if st.button("Delete Account", disabled=not confirm):
            try:
                delete_account(state, session)
            except Exception as e:
                logger.error(f"Sign out during account deletion failed: {e}")
                st.error(f"Could not close your session. ({e})")
                return
            route_guard.navigate(route_guard.DEFAULT_ROUTE)
