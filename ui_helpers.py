import streamlit as st
import logging
import uuid
from contextlib import contextmanager

logger = logging.getLogger(__name__)

# Session keys holding per-merchant screen data; dropped on sign out
SCREEN_KEYS = [
    "categories", "products", "deals", "store_info", "merchant_stats",
    "preview_data", "editing_category", "editing_product", "editing_deal",
]


@contextmanager
def busy(state, flag):
    """Sets a busy flag (saving/uploading/loading) for the duration of a call."""
    state[flag] = True
    try:
        yield
    finally:
        state[flag] = False

def load_records(state, key, merchant_id, fetch, force=False):
    """
    Fetches a merchant's records once and keeps them in session state so
    reruns don't hit the backend again. Fetch failures leave an empty list.
    """
    if force or key not in state or state.get(f"{key}_merchant") != merchant_id:
        with busy(state, "loading"):
            try:
                records = fetch(merchant_id) or []
            except Exception as e:
                logger.error(f"Failed to load {key}: {e}")
                records = []
        state[key] = list(records)
        state[f"{key}_merchant"] = merchant_id
    return state[key]

def request_id_for(state, form_key):
    """Idempotency key for the create currently open in `form_key`."""
    key = f"{form_key}_request_id"
    if not state.get(key):
        state[key] = str(uuid.uuid4())
    return state[key]

def clear_request_id(state, form_key):
    state.pop(f"{form_key}_request_id", None)

def reset_screen_state(state):
    """Drops the signed-out merchant's screen data, pending deletes and create keys."""
    for key in SCREEN_KEYS:
        state.pop(key, None)
        state.pop(f"{key}_merchant", None)
    for key in list(state.keys()):
        if key.startswith("pending_delete_") or key.endswith("_request_id"):
            del state[key]

# --- DELETE CONFIRMATION ---

def request_delete(state, label, record_id):
    state[f"pending_delete_{label}"] = record_id

def render_delete_confirmation(state, label, delete):
    """
    Two-step delete: a row's delete button calls request_delete(), this
    renders the confirmation and calls delete(record_id) once confirmed.
    """
    key = f"pending_delete_{label}"
    record_id = state.get(key)
    if not record_id:
        return

    st.warning(f"Are you sure you want to delete this {label}?")
    c_yes, c_no = st.columns(2)
    if c_yes.button("Yes, delete", key=f"confirm_{key}", type="primary", use_container_width=True):
        state[key] = None
        try:
            delete(record_id)
        except Exception as e:
            st.error(f"Failed to delete {label}. Please try again. ({e})")
            return
        st.toast(f"🗑️ {label.capitalize()} deleted")
        st.rerun()
    if c_no.button("Cancel", key=f"cancel_{key}", use_container_width=True):
        state[key] = None
        st.rerun()
