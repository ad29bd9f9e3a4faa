import streamlit as st
import logging

import database
import catalog_engine
import audit_engine
from session_store import SessionStore
from ui_helpers import (
    busy, load_records, request_id_for, clear_request_id,
    request_delete, render_delete_confirmation,
)

logger = logging.getLogger(__name__)

RECORDS_KEY = "categories"
EDITING_KEY = "editing_category"
FORM_KEY = "category_form"

# --- ACTIONS ---

def load_categories(state, merchant_id, force=False):
    return load_records(state, RECORDS_KEY, merchant_id, database.get_categories, force)

def submit_category(state, merchant_id, form, editing=None):
    """
    Creates a category, or updates `editing` in place.
    Returns the saved record, or None when a save is already running.
    """
    if not merchant_id or state.get("saving"):
        return None

    data = {
        "name": form.get("name", "").strip(),
        "description": form.get("description", ""),
        "enabled": bool(form.get("enabled", True)),
    }
    with busy(state, "saving"):
        if editing:
            saved = database.update_category(editing["id"], data, expected_version=editing.get("version"))
        else:
            saved = database.save_category(
                {**data, "merchantId": merchant_id},
                request_id=request_id_for(state, FORM_KEY),
            )
            clear_request_id(state, FORM_KEY)

    state[RECORDS_KEY] = catalog_engine.splice_record(state.get(RECORDS_KEY, []), saved)
    return saved

def delete_category(state, category_id):
    database.delete_category(category_id)
    state[RECORDS_KEY] = catalog_engine.remove_record(state.get(RECORDS_KEY, []), category_id)
    audit_engine.log_event(state.get("user_email"), "CATEGORY_DELETED", metadata={"id": category_id})

def toggle_category(state, category_id):
    category = catalog_engine.find_record(state.get(RECORDS_KEY, []), category_id)
    if category is None:
        return None
    updated = database.update_category(
        category_id,
        {"enabled": not category.get("enabled")},
        expected_version=category.get("version"),
    )
    state[RECORDS_KEY] = catalog_engine.splice_record(state[RECORDS_KEY], updated)
    return updated

# --- PAGE ---

def _render_form(state, merchant_id):
    editing = catalog_engine.find_record(state.get(RECORDS_KEY, []), state.get(EDITING_KEY))
    source = editing or {"name": "", "description": "", "enabled": True}
    title = f"✏️ Edit: {editing['name']}" if editing else "➕ Add Category"

    with st.expander(title, expanded=bool(editing)):
        with st.form(f"{FORM_KEY}_{editing['id'] if editing else 'new'}"):
            name = st.text_input("Category Name", value=source.get("name", ""), placeholder="e.g., Beverages")
            description = st.text_area("Description", value=source.get("description") or "", height=80)
            enabled = st.checkbox("Visible to customers", value=bool(source.get("enabled", True)))

            c_save, c_cancel = st.columns(2)
            submitted = c_save.form_submit_button(
                "💾 Save Changes" if editing else "Add Category",
                type="primary", use_container_width=True, disabled=bool(state.get("saving")),
            )
            cancelled = c_cancel.form_submit_button("Cancel", use_container_width=True)

        if cancelled:
            state[EDITING_KEY] = None
            st.rerun()
        if submitted:
            if not name.strip():
                st.error("Category name is required.")
                return
            try:
                submit_category(state, merchant_id, {"name": name, "description": description, "enabled": enabled}, editing)
            except Exception as e:
                logger.error(f"Failed to save category: {e}")
                st.error(f"Failed to save category. Please try again. ({e})")
                return
            state[EDITING_KEY] = None
            st.toast("✅ Category saved")
            st.rerun()

def render_categories_page():
    state = st.session_state
    user = SessionStore().current_user
    merchant_id = user.get("merchantId")
    categories = load_categories(state, merchant_id)

    st.markdown("## 🏷️ Categories")
    st.caption("Organize your products into categories for better management.")

    _render_form(state, merchant_id)
    render_delete_confirmation(state, "category", lambda cid: delete_category(state, cid))

    if not categories:
        st.info("No categories yet. Create your first category to start organizing products.")
        return

    for category in categories:
        with st.container(border=True):
            c_info, c_status, c_edit, c_del = st.columns([5, 2, 1, 1])
            with c_info:
                st.markdown(f"**{category.get('name')}**")
                if category.get("description"):
                    st.caption(category["description"])
            with c_status:
                label = "🟢 Enabled" if category.get("enabled") else "⚪ Disabled"
                if st.button(label, key=f"toggle_cat_{category['id']}", use_container_width=True):
                    try:
                        toggle_category(state, category["id"])
                    except Exception as e:
                        logger.error(f"Failed to update category status: {e}")
                        st.error(f"Failed to update category status. ({e})")
                    else:
                        st.rerun()
            if c_edit.button("✏️", key=f"edit_cat_{category['id']}", help="Edit"):
                state[EDITING_KEY] = category["id"]
                st.rerun()
            if c_del.button("🗑️", key=f"del_cat_{category['id']}", help="Delete"):
                request_delete(state, "category", category["id"])
                st.rerun()
