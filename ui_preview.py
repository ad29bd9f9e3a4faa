import streamlit as st
import logging

import database
import catalog_engine
from session_store import SessionStore
from ui_helpers import busy

logger = logging.getLogger(__name__)

PREVIEW_KEY = "preview_data"

def load_preview(state, merchant_id, force=False):
    """Fetches the customer-facing catalog: visible categories/products and running deals."""
    cached = state.get(PREVIEW_KEY)
    if not force and cached and cached.get("merchantId") == merchant_id:
        return cached

    with busy(state, "loading"):
        data = {
            "merchantId": merchant_id,
            "store": database.get_store_info(merchant_id),
            "categories": catalog_engine.visible_categories(database.get_categories(merchant_id)),
            "products": catalog_engine.visible_products(database.get_products(merchant_id)),
            "deals": catalog_engine.active_deals(database.get_deals(merchant_id)),
        }
    state[PREVIEW_KEY] = data
    return data

def render_preview_page():
    state = st.session_state
    user = SessionStore().current_user
    merchant_id = catalog_engine.merchant_id_for(user)
    data = load_preview(state, merchant_id)

    store = data["store"] or {}
    st.markdown(f"## 👁️ {store.get('storeName') or user.get('storeName') or 'Your Store'}")
    st.caption("This is how customers see your store.")
    if store and not store.get("storeOpen", True):
        st.warning("🔴 This store is currently closed.")

    if st.button("🔄 Refresh Preview"):
        load_preview(state, merchant_id, force=True)
        st.rerun()

    if data["deals"]:
        st.markdown("### 🏷️ Today's Deals")
        cols = st.columns(min(len(data["deals"]), 3))
        for i, deal in enumerate(data["deals"]):
            with cols[i % len(cols)].container(border=True):
                if deal.get("image"):
                    st.image(deal["image"], use_container_width=True)
                st.markdown(f"**{deal.get('name')}**")
                st.caption(f"{deal.get('dealType')} · {deal.get('discountValue') or 0}")
                end = catalog_engine.to_datetime(deal.get("endDate"))
                if end:
                    st.caption(f"Until {end:%b %d, %Y}")

    categories = data["categories"]
    names = {c["id"]: c.get("name", "Unnamed") for c in categories}
    choice = st.radio(
        "Menu", ["all"] + list(names.keys()), horizontal=True,
        format_func=lambda cid: "All" if cid == "all" else names[cid],
    )
    shown = catalog_engine.visible_products(data["products"], choice)

    if not shown:
        st.info("No products to show yet.")
        return

    for product in shown:
        with st.container(border=True):
            c_img, c_info = st.columns([1, 4])
            if product.get("image"):
                c_img.image(product["image"], width=80)
            with c_info:
                st.markdown(f"**{product.get('name')}** · ₱{float(product.get('price') or 0):,.2f}")
                if product.get("description"):
                    st.caption(product["description"])
                if product.get("options"):
                    st.caption("Options: " + ", ".join(product["options"]))
