import streamlit as st

import route_guard
from session_store import SessionStore

def render_home_page():
    """Landing page for visitors; signed-in merchants get a shortcut back in."""
    st.markdown("""
    <style>
    .hero-container { background-color: #ffffff; width: 100%; padding: 3rem 1rem; text-align: center; border-bottom: 1px solid #eaeaea; margin-bottom: 2rem; }
    .hero-title { font-weight: 700; color: #111; font-size: clamp(2.2rem, 6vw, 3.8rem); margin-bottom: 0.5rem; letter-spacing: -1px; line-height: 1.1; }
    .hero-subtitle { font-size: clamp(1rem, 3vw, 1.3rem); font-weight: 300; color: #555; margin: 1rem auto 2rem; max-width: 650px; line-height: 1.5; }
    </style>
    <div class="hero-container">
        <div class="hero-title">Ayoo Merchant Portal</div>
        <div class="hero-subtitle">
            Manage your store, menu and limited-time deals in one place.
            Customers see your changes the moment you save them.
        </div>
    </div>
    """, unsafe_allow_html=True)

    c1, c2, c3 = st.columns(3)
    c1.markdown("#### 📦 Catalog\nOrganize products into categories with photos, options and add-ons.")
    c2.markdown("#### 🏷️ Deals\nSchedule promotions that switch on and off by themselves.")
    c3.markdown("#### 👁️ Preview\nSee your storefront exactly as customers do.")

    st.divider()
    session = SessionStore()
    if session.is_authenticated:
        if st.button("Go to my dashboard", type="primary", use_container_width=True):
            route_guard.navigate(route_guard.post_login_route(session.current_user))
        return

    c_in, c_up = st.columns(2)
    if c_in.button("🔐 Sign In", use_container_width=True):
        route_guard.navigate(route_guard.SIGN_IN_ROUTE)
    if c_up.button("🏪 Create Merchant Account", type="primary", use_container_width=True):
        route_guard.navigate("signup")
