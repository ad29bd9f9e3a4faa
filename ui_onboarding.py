import streamlit as st
import logging

import database
import catalog_engine
import storage_engine
import audit_engine
import route_guard
from session_store import SessionStore
from ui_helpers import busy, request_id_for, clear_request_id
from ui_store import STORE_KEY

logger = logging.getLogger(__name__)

FORM_KEY = "onboarding_form"

def submit_onboarding(state, session, form, logo_file=None):
    """
    Creates the merchant's StoreInfo record, then marks the user onboarded.
    A failed logo upload is logged and setup continues without a logo.
    Returns the StoreInfo record.
    """
    merchant_id = form.get("merchantId", "").strip()
    store_name = form.get("storeName", "").strip()
    store_type = catalog_engine.resolve_choice(form.get("storeType", ""), form.get("customStoreType", ""))
    if not merchant_id or not store_name or not store_type:
        raise ValueError("Merchant ID, store name and store type are required.")

    def save(logo_url=None):
        return database.save_store_info({
            "merchantId": merchant_id,
            "storeName": store_name,
            "storeType": store_type,
            "description": form.get("description", ""),
            "address": form.get("address", ""),
            "contactNumber": form.get("contactNumber", ""),
            "logoUrl": logo_url or "",
            "storeOpen": True,
        }, request_id=request_id_for(state, FORM_KEY))

    with busy(state, "saving"):
        if logo_file is not None:
            path = storage_engine.asset_path("merchants", merchant_id, logo_file.name)
            store = storage_engine.upload_then_save(logo_file, path, save, optional=True)
        else:
            store = save()

        session.update({
            "merchantId": merchant_id,
            "storeName": store_name,
            "storeSetupCompleted": True,
        })

    clear_request_id(state, FORM_KEY)
    state[STORE_KEY] = store
    state[f"{STORE_KEY}_merchant"] = merchant_id
    audit_engine.log_event(state.get("user_email"), "STORE_ONBOARDED", metadata={"merchantId": merchant_id})
    return store

def render_onboarding_page():
    state = st.session_state
    session = SessionStore()

    st.markdown("## 🏪 Set Up Your Store")
    st.caption("Let's get your merchant portal ready for business.")

    with st.form("onboarding_form"):
        merchant_id = st.text_input("Merchant ID", placeholder="Enter your unique merchant ID")
        store_name = st.text_input("Store Name", placeholder="e.g., Juan's Sari-sari Store")
        store_type = st.selectbox("Store Type", catalog_engine.STORE_TYPES, index=None, placeholder="Select your store type")
        custom_type = st.text_input("Custom Store Type (when 'Other')")
        description = st.text_area("Store Description", placeholder="Tell customers about your store...", height=80)
        address = st.text_area("Full Address (Optional)", placeholder="123 Main Street, Barangay, City, Province", height=60)
        contact = st.text_input("Contact Number", placeholder="+63 912 345 6789")
        logo_file = st.file_uploader("Store Logo (Optional)", type=["png", "jpg", "jpeg", "webp"])

        submitted = st.form_submit_button(
            "Setting Up Your Store..." if state.get("saving") else "Complete Setup",
            type="primary", use_container_width=True, disabled=bool(state.get("saving")),
        )

    if submitted:
        form = {
            "merchantId": merchant_id, "storeName": store_name,
            "storeType": store_type or "", "customStoreType": custom_type,
            "description": description, "address": address, "contactNumber": contact,
        }
        try:
            with st.spinner("Setting up your store..."):
                submit_onboarding(state, session, form, logo_file)
        except Exception as e:
            logger.error(f"Onboarding failed: {e}")
            st.error(str(e) or "Failed to set up your store. Please try again.")
            return
        st.success("✅ Your store is ready!")
        route_guard.navigate(route_guard.DASHBOARD_ROUTE)
