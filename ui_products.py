import streamlit as st
import logging

import database
import catalog_engine
import storage_engine
import audit_engine
from session_store import SessionStore
from ui_categories import load_categories
from ui_helpers import (
    busy, load_records, request_id_for, clear_request_id,
    request_delete, render_delete_confirmation,
)

logger = logging.getLogger(__name__)

RECORDS_KEY = "products"
EDITING_KEY = "editing_product"
FORM_KEY = "product_form"

# --- ACTIONS ---

def load_products(state, merchant_id, force=False):
    return load_records(state, RECORDS_KEY, merchant_id, database.get_products, force)

def submit_product(state, merchant_id, form, editing=None, image_file=None):
    """
    Creates or updates a product. A newly picked image is uploaded first and
    removed again if the product save fails.
    Returns the saved record, or None when a save is already running.
    """
    if not merchant_id or state.get("saving"):
        return None

    def save(image_url=None):
        fields = dict(form)
        if image_url:
            fields["image"] = image_url
        payload = catalog_engine.build_product_payload(fields, merchant_id)
        if editing:
            return database.update_product(editing["id"], payload, expected_version=editing.get("version"))
        return database.save_product(payload, request_id=request_id_for(state, FORM_KEY))

    with busy(state, "saving"):
        if image_file is not None:
            path = storage_engine.asset_path("products", merchant_id, image_file.name)
            with busy(state, "uploading"):
                saved = storage_engine.upload_then_save(image_file, path, save)
        else:
            saved = save()

    if not editing:
        clear_request_id(state, FORM_KEY)
    state[RECORDS_KEY] = catalog_engine.splice_record(state.get(RECORDS_KEY, []), saved)
    return saved

def delete_product(state, product_id):
    if not product_id:
        return
    database.delete_product(product_id)
    state[RECORDS_KEY] = catalog_engine.remove_record(state.get(RECORDS_KEY, []), product_id)
    audit_engine.log_event(state.get("user_email"), "PRODUCT_DELETED", metadata={"id": product_id})

def toggle_availability(state, product_id):
    """Flips `available` only; the server's returned record replaces the local one."""
    product = catalog_engine.find_record(state.get(RECORDS_KEY, []), product_id)
    if product is None:
        return None
    updated = database.update_product(
        product_id,
        {"available": not product.get("available")},
        expected_version=product.get("version"),
    )
    state[RECORDS_KEY] = catalog_engine.splice_record(state[RECORDS_KEY], updated)
    return updated

# --- PAGE ---

def _render_form(state, merchant_id, categories):
    editing = catalog_engine.find_record(state.get(RECORDS_KEY, []), state.get(EDITING_KEY))
    form = catalog_engine.product_form_from_record(editing) if editing else catalog_engine.empty_product_form()
    title = f"✏️ Edit: {editing['name']}" if editing else "➕ Add Product"

    if not categories:
        st.warning("Create a category first so products have somewhere to live.")
        return

    category_ids = [c["id"] for c in categories]
    names = {c["id"]: c.get("name", "Unnamed") for c in categories}
    index = category_ids.index(form["categoryId"]) if form["categoryId"] in category_ids else 0

    with st.expander(title, expanded=bool(editing)):
        with st.form(f"{FORM_KEY}_{editing['id'] if editing else 'new'}"):
            name = st.text_input("Product Name", value=form["name"])
            description = st.text_area("Description", value=form["description"], height=80)
            c_price, c_rating = st.columns(2)
            price = c_price.number_input("Price (₱)", min_value=0.0, value=float(form["price"]), step=1.0)
            rating = c_rating.number_input("Rating", min_value=0.0, max_value=5.0, value=float(form["rating"]), step=0.1)
            category_id = st.selectbox("Category", category_ids, index=index, format_func=lambda cid: names[cid])
            available = st.checkbox("Available", value=form["available"])

            options = st.text_input("Options (comma-separated)", value=form["options"], placeholder="Small, Medium, Large")
            addons = st.text_input("Add-ons (comma-separated)", value=form["addons"], placeholder="Extra cheese, Extra rice")
            tags = st.text_input("Tags (comma-separated)", value=form["tags"], placeholder="bestseller, spicy")

            remove_image = False
            if form["image"]:
                st.image(form["image"], width=120)
                remove_image = st.checkbox("Remove current image")
            image_file = st.file_uploader("Product Image (max 5MB)", type=["png", "jpg", "jpeg", "webp", "gif"])

            c_save, c_cancel = st.columns(2)
            submitted = c_save.form_submit_button(
                "💾 Save Changes" if editing else "Add Product",
                type="primary", use_container_width=True,
                disabled=bool(state.get("saving") or state.get("uploading")),
            )
            cancelled = c_cancel.form_submit_button("Cancel", use_container_width=True)

        if cancelled:
            state[EDITING_KEY] = None
            st.rerun()
        if submitted:
            if not name.strip():
                st.error("Product name is required.")
                return
            values = {
                "name": name, "description": description, "price": price, "rating": rating,
                "categoryId": category_id, "available": available,
                "options": options, "addons": addons, "tags": tags,
                "image": "" if remove_image else form["image"],
            }
            try:
                with st.spinner("Saving product..."):
                    submit_product(state, merchant_id, values, editing, image_file)
            except storage_engine.InvalidUploadError as e:
                st.error(str(e))
                return
            except Exception as e:
                logger.error(f"Failed to save product: {e}")
                st.error(f"Failed to save product. Please try again. ({e})")
                return
            state[EDITING_KEY] = None
            st.toast("✅ Product saved")
            st.rerun()

def render_products_page():
    state = st.session_state
    user = SessionStore().current_user
    merchant_id = user.get("merchantId")
    categories = load_categories(state, merchant_id)
    products = load_products(state, merchant_id)
    names = {c["id"]: c.get("name", "Unnamed") for c in categories}

    st.markdown("## 📦 Products")
    st.caption("Add, edit, and manage your product catalog with pricing.")

    _render_form(state, merchant_id, categories)
    render_delete_confirmation(state, "product", lambda pid: delete_product(state, pid))

    filter_choice = st.selectbox(
        "Filter by category", ["all"] + list(names.keys()),
        format_func=lambda cid: "All categories" if cid == "all" else names[cid],
    )
    shown = products if filter_choice == "all" else [p for p in products if p.get("categoryId") == filter_choice]

    if not shown:
        st.info("No products yet. Add your first product above.")
        return

    for product in shown:
        with st.container(border=True):
            c_img, c_info, c_status, c_edit, c_del = st.columns([1, 4, 2, 1, 1])
            if product.get("image"):
                c_img.image(product["image"], width=64)
            with c_info:
                st.markdown(f"**{product.get('name')}** · ₱{float(product.get('price') or 0):,.2f}")
                st.caption(f"{names.get(product.get('categoryId'), 'Uncategorized')} · ⭐ {product.get('rating') or 0}")
                if product.get("tags"):
                    st.caption(" ".join(f"#{t}" for t in product["tags"]))
            with c_status:
                label = "🟢 Available" if product.get("available") else "⚪ Unavailable"
                if st.button(label, key=f"toggle_prod_{product['id']}", use_container_width=True):
                    try:
                        toggle_availability(state, product["id"])
                    except Exception as e:
                        logger.error(f"Failed to update product availability: {e}")
                        st.error(f"Failed to update product availability. ({e})")
                    else:
                        st.rerun()
            if c_edit.button("✏️", key=f"edit_prod_{product['id']}", help="Edit"):
                state[EDITING_KEY] = product["id"]
                st.rerun()
            if c_del.button("🗑️", key=f"del_prod_{product['id']}", help="Delete"):
                request_delete(state, "product", product["id"])
                st.rerun()
