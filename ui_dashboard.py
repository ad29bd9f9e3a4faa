import streamlit as st
import logging

import database
import route_guard
from session_store import SessionStore
from ui_helpers import busy
from ui_store import ensure_store_info, render_open_toggle

logger = logging.getLogger(__name__)

STATS_KEY = "merchant_stats"

QUICK_LINKS = [
    ("🏪 Store Info", "store"),
    ("📁 Categories", "categories"),
    ("📦 Products", "products"),
    ("🏷️ Deals", "deals"),
    ("👁️ Preview", "preview"),
    ("⚙️ Settings", "settings"),
]

def load_stats(state, merchant_id, force=False):
    if force or STATS_KEY not in state or state.get(f"{STATS_KEY}_merchant") != merchant_id:
        with busy(state, "loading"):
            state[STATS_KEY] = database.get_merchant_stats(merchant_id)
        state[f"{STATS_KEY}_merchant"] = merchant_id
    return state[STATS_KEY]

def render_dashboard_page():
    state = st.session_state
    user = SessionStore().current_user
    merchant_id = user.get("merchantId")

    try:
        info = ensure_store_info(state, user)
    except Exception as e:
        logger.error(f"Failed to load store info: {e}")
        info = None
    stats = load_stats(state, merchant_id)

    name = user.get("firstName") or user.get("email", "")
    st.markdown(f"## 👋 Welcome back, {name}")
    store_name = (info or {}).get("storeName") or user.get("storeName")
    st.caption(f"{store_name} · Merchant ID: {merchant_id}")

    render_open_toggle(state, "dashboard_open_toggle")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Categories", stats["totalCategories"])
    c2.metric("Products", stats["totalProducts"])
    c3.metric("Active Deals", stats["activeDeals"])
    c4.metric("Store Views", stats["storeViews"])

    if st.button("🔄 Refresh", key="refresh_stats"):
        load_stats(state, merchant_id, force=True)
        st.rerun()

    st.markdown("### Quick Actions")
    cols = st.columns(3)
    for i, (label, route) in enumerate(QUICK_LINKS):
        if cols[i % 3].button(label, key=f"quick_{route}", use_container_width=True):
            route_guard.navigate(route)

    if stats["totalCategories"] == 0 and stats["totalProducts"] == 0:
        with st.container(border=True):
            st.markdown("#### 🚀 Getting Started")
            st.markdown("1. Create categories to organize your menu")
            st.markdown("2. Add products with prices and photos")
            st.markdown("3. Launch a limited deal to attract customers")
            st.markdown("4. Preview your store the way customers see it")
    elif stats["activeDeals"] == 0:
        st.info("💡 No deals are running right now. A limited-time deal is a great way to bring customers in.")
