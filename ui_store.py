import streamlit as st
import logging

import database
import catalog_engine
import storage_engine
from session_store import SessionStore
from ui_helpers import busy

logger = logging.getLogger(__name__)

STORE_KEY = "store_info"

# Profile fields StoreInfo owns once onboarding is done
STORE_FIELDS = ("storeName", "storeType", "description", "address", "contactNumber", "logoUrl", "storeOpen")

# --- ACTIONS ---

def load_store_info(state, user, force=False):
    merchant_id = catalog_engine.merchant_id_for(user)
    if force or STORE_KEY not in state or state.get(f"{STORE_KEY}_merchant") != merchant_id:
        with busy(state, "loading"):
            state[STORE_KEY] = database.get_store_info(merchant_id)
        state[f"{STORE_KEY}_merchant"] = merchant_id
    return state[STORE_KEY]

def ensure_store_info(state, user):
    """
    Loads the merchant's StoreInfo. Accounts onboarded before StoreInfo
    records existed get one back-filled from their profile fields.
    """
    info = load_store_info(state, user)
    if info is not None or not user.get("merchantId"):
        return info

    # A failed read also shows up as None; only back-fill on a confirmed empty result
    info = database.find_store_info(user["merchantId"])
    if info is not None:
        state[STORE_KEY] = info
        return info

    legacy = {field: user.get(field) for field in STORE_FIELDS if user.get(field) is not None}
    data = {
        "merchantId": user["merchantId"],
        "storeName": "",
        "storeType": "",
        "description": "",
        "address": "",
        "contactNumber": "",
        "logoUrl": "",
        "storeOpen": True,
        **legacy,
    }
    info = database.save_store_info(data, request_id=f"store-backfill-{user.get('id')}")
    logger.info(f"Back-filled store info for merchant {user['merchantId']}")
    state[STORE_KEY] = info
    return info

def update_store(state, session, form, logo_file=None):
    """
    Saves the store profile form. A failed logo upload keeps the old logo;
    a failed save removes the freshly uploaded one.
    """
    info = state.get(STORE_KEY)
    if info is None or state.get("saving"):
        return None

    store_type = catalog_engine.resolve_choice(form.get("storeType", ""), form.get("customStoreType", ""))

    def save(logo_url=None):
        payload = {
            "storeName": form.get("storeName", "").strip(),
            "storeType": store_type,
            "description": form.get("description", ""),
            "address": form.get("address", ""),
            "contactNumber": form.get("contactNumber", ""),
            "storeOpen": bool(form.get("storeOpen", True)),
            "logoUrl": logo_url or info.get("logoUrl") or "",
        }
        return database.update_store_info(info["id"], payload, expected_version=info.get("version"))

    with busy(state, "saving"):
        if logo_file is not None:
            path = storage_engine.asset_path("merchants", info.get("merchantId"), logo_file.name)
            updated = storage_engine.upload_then_save(logo_file, path, save, optional=True)
        else:
            updated = save()

    state[STORE_KEY] = updated

    # The user keeps storeName for the onboarding check; keep it in step
    user = session.current_user
    if user and updated.get("storeName") and updated["storeName"] != user.get("storeName"):
        session.update({"storeName": updated["storeName"]})
    return updated

def toggle_store_open(state):
    info = state.get(STORE_KEY)
    if not info:
        return None
    updated = database.update_store_info(
        info["id"],
        {"storeOpen": not info.get("storeOpen")},
        expected_version=info.get("version"),
    )
    state[STORE_KEY] = updated
    return updated

def render_open_toggle(state, key):
    """Open/closed switch shared by the dashboard, store and settings screens."""
    info = state.get(STORE_KEY)
    if not info:
        return
    is_open = bool(info.get("storeOpen"))
    label = "🟢 Store is OPEN (click to close)" if is_open else "🔴 Store is CLOSED (click to open)"
    if st.button(label, key=key, use_container_width=True):
        try:
            toggle_store_open(state)
        except Exception as e:
            logger.error(f"Failed to toggle store status: {e}")
            st.error(f"Failed to update store status. ({e})")
        else:
            st.rerun()

# --- PAGE ---

def render_store_page():
    state = st.session_state
    session = SessionStore()
    try:
        info = ensure_store_info(state, session.current_user)
    except Exception as e:
        logger.error(f"Failed to load store info: {e}")
        info = None

    st.markdown("## 🏪 Store Information")
    if not info:
        st.error("Store details could not be loaded. Please refresh the page.")
        return

    with st.container(border=True):
        c_logo, c_details = st.columns([1, 3])
        if info.get("logoUrl"):
            c_logo.image(info["logoUrl"], width=96)
        with c_details:
            st.markdown(f"### {info.get('storeName')}")
            st.caption(info.get("storeType") or "")
            if info.get("description"): st.write(info["description"])
            if info.get("address"): st.markdown(f"📍 {info['address']}")
            if info.get("contactNumber"): st.markdown(f"📞 {info['contactNumber']}")
            st.caption(f"Merchant ID: {info.get('merchantId')}")

    render_open_toggle(state, "store_page_open_toggle")

    store_types = catalog_engine.STORE_TYPES
    current_type = info.get("storeType") or ""
    known = current_type in store_types
    type_index = store_types.index(current_type if known else "Other")

    with st.expander("✏️ Edit Store Information", expanded=False):
        with st.form("store_edit_form"):
            store_name = st.text_input("Store Name", value=info.get("storeName") or "")
            store_type = st.selectbox("Store Type", store_types, index=type_index)
            custom_type = st.text_input("Custom Store Type (when 'Other')", value="" if known else current_type)
            description = st.text_area("Store Description", value=info.get("description") or "", height=80)
            address = st.text_area("Full Address", value=info.get("address") or "", height=60)
            contact = st.text_input("Contact Number", value=info.get("contactNumber") or "")
            store_open = st.checkbox("Store is open", value=bool(info.get("storeOpen")))
            logo_file = st.file_uploader("New Logo (optional, max 5MB)", type=["png", "jpg", "jpeg", "webp"])

            submitted = st.form_submit_button(
                "💾 Update Store", type="primary", use_container_width=True,
                disabled=bool(state.get("saving")),
            )

        if submitted:
            if not store_name.strip():
                st.error("Store name is required.")
                return
            form = {
                "storeName": store_name, "storeType": store_type, "customStoreType": custom_type,
                "description": description, "address": address,
                "contactNumber": contact, "storeOpen": store_open,
            }
            try:
                with st.spinner("Updating store..."):
                    update_store(state, session, form, logo_file)
            except Exception as e:
                logger.error(f"Store info update failed: {e}")
                st.error(f"Failed to update store information. ({e})")
                return
            st.toast("✅ Store updated")
            st.rerun()
