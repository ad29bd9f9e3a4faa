import streamlit as st
import logging
from datetime import date, timedelta

import database
import catalog_engine
import storage_engine
import audit_engine
from session_store import SessionStore
from ui_categories import load_categories
from ui_products import load_products
from ui_helpers import (
    busy, load_records, request_id_for, clear_request_id,
    request_delete, render_delete_confirmation,
)

logger = logging.getLogger(__name__)

RECORDS_KEY = "deals"
EDITING_KEY = "editing_deal"
FORM_KEY = "deal_form"

STATUS_BADGES = {
    "Active": "🟢 Active",
    "Scheduled": "🕒 Scheduled",
    "Expired": "🔴 Expired",
    "Inactive": "⚪ Inactive",
}

# --- ACTIONS ---

def load_deals(state, merchant_id, force=False):
    return load_records(state, RECORDS_KEY, merchant_id, database.get_deals, force)

def submit_deal(state, merchant_id, form, editing=None, image_file=None):
    """Creates or updates a deal; returns the saved record (None while busy)."""
    if not merchant_id or state.get("saving"):
        return None

    # Date/type problems surface before anything is uploaded
    catalog_engine.build_deal_payload(form, merchant_id)

    def save(image_url=None):
        fields = dict(form)
        if image_url:
            fields["image"] = image_url
        payload = catalog_engine.build_deal_payload(fields, merchant_id)
        if editing:
            return database.update_deal(editing["id"], payload, expected_version=editing.get("version"))
        return database.save_deal(payload, request_id=request_id_for(state, FORM_KEY))

    with busy(state, "saving"):
        if image_file is not None:
            path = storage_engine.asset_path("deals", merchant_id, image_file.name)
            with busy(state, "uploading"):
                saved = storage_engine.upload_then_save(image_file, path, save)
        else:
            saved = save()

    if not editing:
        clear_request_id(state, FORM_KEY)
    state[RECORDS_KEY] = catalog_engine.splice_record(state.get(RECORDS_KEY, []), saved)
    return saved

def delete_deal(state, deal_id):
    database.delete_deal(deal_id)
    state[RECORDS_KEY] = catalog_engine.remove_record(state.get(RECORDS_KEY, []), deal_id)
    audit_engine.log_event(state.get("user_email"), "DEAL_DELETED", metadata={"id": deal_id})

def toggle_deal(state, deal_id):
    deal = catalog_engine.find_record(state.get(RECORDS_KEY, []), deal_id)
    if deal is None:
        return None
    updated = database.update_deal(
        deal_id,
        {"active": not deal.get("active")},
        expected_version=deal.get("version"),
    )
    state[RECORDS_KEY] = catalog_engine.splice_record(state[RECORDS_KEY], updated)
    return updated

# --- PAGE ---

def _render_form(state, merchant_id, products, categories):
    editing = catalog_engine.find_record(state.get(RECORDS_KEY, []), state.get(EDITING_KEY))
    form = catalog_engine.deal_form_from_record(editing) if editing else catalog_engine.empty_deal_form()
    title = f"✏️ Edit: {editing['name']}" if editing else "➕ Create Deal"

    product_names = {p["id"]: p.get("name", "Unnamed") for p in products}
    category_names = {c["id"]: c.get("name", "Unnamed") for c in categories}
    deal_types = catalog_engine.DEAL_TYPES
    type_index = deal_types.index(form["dealType"]) if form["dealType"] in deal_types else 0

    with st.expander(title, expanded=bool(editing)):
        with st.form(f"{FORM_KEY}_{editing['id'] if editing else 'new'}"):
            name = st.text_input("Deal Name", value=form["name"], placeholder="e.g., Weekend Treat")
            description = st.text_area("Description", value=form["description"], height=80)
            c_type, c_value = st.columns(2)
            deal_type = c_type.selectbox("Deal Type", deal_types, index=type_index)
            discount_value = c_value.number_input("Discount Value", min_value=0.0, value=float(form["discountValue"]), step=1.0)
            custom_type = st.text_input("Custom Deal Type (when 'Other')", value=form["customDealType"])

            c_start, c_end = st.columns(2)
            start_date = c_start.date_input("Start Date", value=form["startDate"] or date.today())
            end_date = c_end.date_input("End Date", value=form["endDate"] or date.today() + timedelta(days=7))

            product_ids = st.multiselect(
                "Applies to products", list(product_names.keys()),
                default=[p for p in form["productIds"] if p in product_names],
                format_func=lambda pid: product_names[pid],
            )
            category_ids = st.multiselect(
                "Applies to categories", list(category_names.keys()),
                default=[c for c in form["categoryIds"] if c in category_names],
                format_func=lambda cid: category_names[cid],
            )
            active = st.checkbox("Active", value=form["active"])

            remove_image = False
            if form["image"]:
                st.image(form["image"], width=120)
                remove_image = st.checkbox("Remove current image")
            image_file = st.file_uploader("Deal Banner (max 5MB)", type=["png", "jpg", "jpeg", "webp", "gif"])

            c_save, c_cancel = st.columns(2)
            submitted = c_save.form_submit_button(
                "💾 Save Changes" if editing else "Create Deal",
                type="primary", use_container_width=True,
                disabled=bool(state.get("saving") or state.get("uploading")),
            )
            cancelled = c_cancel.form_submit_button("Cancel", use_container_width=True)

        if cancelled:
            state[EDITING_KEY] = None
            st.rerun()
        if submitted:
            if not name.strip():
                st.error("Deal name is required.")
                return
            values = {
                "name": name, "description": description,
                "dealType": deal_type, "customDealType": custom_type,
                "discountValue": discount_value,
                "startDate": start_date, "endDate": end_date,
                "active": active, "productIds": product_ids, "categoryIds": category_ids,
                "image": "" if remove_image else form["image"],
            }
            try:
                with st.spinner("Saving deal..."):
                    submit_deal(state, merchant_id, values, editing, image_file)
            except (ValueError, storage_engine.InvalidUploadError) as e:
                st.error(str(e))
                return
            except Exception as e:
                logger.error(f"Failed to save deal: {e}")
                st.error(f"Failed to save deal. Please try again. ({e})")
                return
            state[EDITING_KEY] = None
            st.toast("✅ Deal saved")
            st.rerun()

def render_deals_page():
    state = st.session_state
    user = SessionStore().current_user
    merchant_id = user.get("merchantId")
    deals = load_deals(state, merchant_id)
    products = load_products(state, merchant_id)
    categories = load_categories(state, merchant_id)

    st.markdown("## 🏷️ Limited Deals")
    st.caption("Create time-limited promotions and special offers.")

    _render_form(state, merchant_id, products, categories)
    render_delete_confirmation(state, "deal", lambda did: delete_deal(state, did))

    if not deals:
        st.info("No deals yet. Create a promotion to attract customers.")
        return

    for deal in deals:
        status = catalog_engine.deal_status(deal)
        start = catalog_engine.to_datetime(deal.get("startDate"))
        end = catalog_engine.to_datetime(deal.get("endDate"))
        with st.container(border=True):
            c_img, c_info, c_status, c_edit, c_del = st.columns([1, 4, 2, 1, 1])
            if deal.get("image"):
                c_img.image(deal["image"], width=64)
            with c_info:
                st.markdown(f"**{deal.get('name')}** · {STATUS_BADGES[status]}")
                st.caption(f"{deal.get('dealType')} · value {deal.get('discountValue') or 0}")
                if start and end:
                    st.caption(f"{start:%b %d, %Y} → {end:%b %d, %Y}")
            with c_status:
                label = "Deactivate" if deal.get("active") else "Activate"
                if st.button(label, key=f"toggle_deal_{deal['id']}", use_container_width=True):
                    try:
                        toggle_deal(state, deal["id"])
                    except Exception as e:
                        logger.error(f"Failed to update deal status: {e}")
                        st.error(f"Failed to update deal status. ({e})")
                    else:
                        st.rerun()
            if c_edit.button("✏️", key=f"edit_deal_{deal['id']}", help="Edit"):
                state[EDITING_KEY] = deal["id"]
                st.rerun()
            if c_del.button("🗑️", key=f"del_deal_{deal['id']}", help="Delete"):
                request_delete(state, "deal", deal["id"])
                st.rerun()
