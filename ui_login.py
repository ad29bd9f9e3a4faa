import streamlit as st
import logging

import auth_engine
import audit_engine
import route_guard
from session_store import SessionStore

logger = logging.getLogger(__name__)

def _inject_css():
    st.markdown("""
    <style>
    .stTextInput input { font-size: 16px; padding: 10px; }
    div[data-testid="stForm"] { border: 1px solid #fbcfe8; padding: 20px; border-radius: 10px; box-shadow: 0 4px 6px rgba(0,0,0,0.08); }
    </style>
    """, unsafe_allow_html=True)

def render_login_page():
    """Sign-in form plus the password-reset request."""
    _inject_css()
    session = SessionStore()

    st.markdown("## 🔐 Welcome Back")
    st.caption("Sign in to your merchant account to manage your store.")

    tab_login, tab_forgot = st.tabs(["Sign In", "Forgot Password"])

    with tab_login:
        with st.form("login_form"):
            email = st.text_input("Email Address")
            password = st.text_input("Password", type="password")
            submit = st.form_submit_button("Sign In", type="primary", use_container_width=True)

        if submit:
            try:
                user = session.login(email, password)
            except Exception as e:
                st.error(f"Login failed: {e}" if str(e) else "Invalid email or password. Please try again.")
            else:
                audit_engine.log_event(email, "USER_LOGIN", metadata={"id": user.get("id")})
                st.success(f"Welcome back, {email}!")
                route_guard.navigate(route_guard.post_login_route(user))

    with tab_forgot:
        with st.form("reset_request"):
            reset_email = st.text_input("Email Address", key="reset_email")
            if st.form_submit_button("Send Reset Link"):
                try:
                    auth_engine.send_password_reset(reset_email)
                except Exception as e:
                    st.error(f"Error: {e}")
                else:
                    st.success("✅ Check your email for a link to reset your password.")

    st.divider()
    if st.button("New here? Create an account", use_container_width=True):
        route_guard.navigate("signup")

def render_signup_page():
    _inject_css()
    session = SessionStore()

    st.markdown("## 🏪 Create Your Merchant Account")

    with st.form("signup_form"):
        c_first, c_last = st.columns(2)
        first_name = c_first.text_input("First Name")
        last_name = c_last.text_input("Last Name")
        email = st.text_input("Email Address")
        password = st.text_input("Create Password", type="password")
        confirm = st.text_input("Confirm Password", type="password")
        submit = st.form_submit_button("Create Account", type="primary", use_container_width=True)

    if submit:
        if not email or not password:
            st.error("Email and password are required.")
        elif password != confirm:
            st.error("Passwords do not match.")
        elif len(password) < 6:
            st.error("Password must be at least 6 characters.")
        else:
            try:
                user = session.register({
                    "email": email, "password": password,
                    "firstName": first_name, "lastName": last_name,
                })
            except Exception as e:
                st.error(f"Signup failed: {e}")
            else:
                audit_engine.log_event(email, "USER_SIGNUP", metadata={"id": user.get("id")})
                st.success("✅ Account created!")
                route_guard.navigate(route_guard.ONBOARDING_ROUTE)

    st.divider()
    if st.button("Already have an account? Sign in", use_container_width=True):
        route_guard.navigate(route_guard.SIGN_IN_ROUTE)
