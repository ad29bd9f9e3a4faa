import streamlit as st
import logging

# --- LOGGING SETUP ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

import audit_engine
import route_guard
from session_store import SessionStore
from ui_helpers import reset_screen_state

# --- 1. CONFIGURATION ---
st.set_page_config(
    page_title="Ayoo Merchant Dashboard",
    page_icon="🏪",
    layout="wide",
    initial_sidebar_state="expanded",
    menu_items={
        'About': "# Ayoo Merchant Dashboard \n Manage your store, menu and deals."
    }
)

# --- CSS STYLING ---
st.markdown("""
<style>
    [data-testid="stSidebarNav"] {display: none !important;}
    .block-container {padding-top: 1rem !important;}
    button[kind="primary"] {
        background-color: #db2777 !important;
        border-color: #db2777 !important;
        color: white !important;
        font-weight: 600;
    }
    .stDeployButton {display:none;}
</style>
""", unsafe_allow_html=True)

# Sidebar entries for onboarded merchants
NAV_ITEMS = [
    ("📊 Dashboard", "dashboard"),
    ("🏪 Store Info", "store"),
    ("📁 Categories", "categories"),
    ("📦 Products", "products"),
    ("🏷️ Deals", "deals"),
    ("👁️ Preview", "preview"),
    ("⚙️ Settings", "settings"),
]


def render_sidebar(session):
    with st.sidebar:
        st.header("Ayoo Merchant")

        user = session.current_user
        if user and route_guard.is_onboarded(user):
            for label, route in NAV_ITEMS:
                active = st.session_state.app_mode == route
                if st.button(label, key=f"nav_{route}", use_container_width=True,
                             type="primary" if active else "secondary"):
                    route_guard.navigate(route)

        st.markdown("---")

        if not user:
            if st.button("🔐 Sign In", use_container_width=True):
                route_guard.navigate(route_guard.SIGN_IN_ROUTE)
            if st.button("🏪 Sign Up", use_container_width=True):
                route_guard.navigate("signup")
            return

        st.caption(f"Logged in as: {user.get('email')}")
        if user.get("merchantId"):
            st.caption(f"Merchant ID: {user['merchantId']}")
        if st.button("🚪 Sign Out", use_container_width=True):
            email = user.get("email")
            try:
                session.logout()
            except Exception as e:
                st.error(f"Sign out failed: {e}")
                return
            reset_screen_state(st.session_state)
            audit_engine.log_event(email, "USER_LOGOUT")
            route_guard.navigate(route_guard.DEFAULT_ROUTE)


# --- MAIN LOGIC ---
def main():
    session = SessionStore()

    # 1. Default routing from ?nav=
    if "app_mode" not in st.session_state:
        nav_target = st.query_params.get("nav")
        st.session_state.app_mode = nav_target if nav_target in route_guard.ROUTES else route_guard.DEFAULT_ROUTE

    # 2. Resolve any existing backend session once
    if session.is_resolving:
        with st.spinner("Checking your session..."):
            session.resolve()

    # 3. Sidebar + controller
    render_sidebar(session)
    route_guard.dispatch(st.session_state.app_mode, session)

if __name__ == "__main__":
    main()
