import streamlit as st
import importlib
import logging
from collections import namedtuple
from enum import Enum

logger = logging.getLogger(__name__)


class GuardState(Enum):
    RESOLVING = "resolving"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


# Onboarding policies
REQUIRE_ONBOARDED = "require"   # send incomplete merchants to onboarding
FORBID_ONBOARDED = "forbid"     # send finished merchants to the dashboard

Route = namedtuple("Route", ["module", "function", "protected", "onboarding"])

# --- ROUTE MAP ---
ROUTES = {
    "home":       Route("ui_home", "render_home_page", False, None),
    "signin":     Route("ui_login", "render_login_page", False, None),
    "signup":     Route("ui_login", "render_signup_page", False, None),
    "onboarding": Route("ui_onboarding", "render_onboarding_page", True, FORBID_ONBOARDED),
    "dashboard":  Route("ui_dashboard", "render_dashboard_page", True, REQUIRE_ONBOARDED),
    "store":      Route("ui_store", "render_store_page", True, REQUIRE_ONBOARDED),
    "categories": Route("ui_categories", "render_categories_page", True, REQUIRE_ONBOARDED),
    "products":   Route("ui_products", "render_products_page", True, REQUIRE_ONBOARDED),
    "deals":      Route("ui_deals", "render_deals_page", True, REQUIRE_ONBOARDED),
    "settings":   Route("ui_settings", "render_settings_page", True, REQUIRE_ONBOARDED),
    "preview":    Route("ui_preview", "render_preview_page", True, None),
}

DEFAULT_ROUTE = "home"
SIGN_IN_ROUTE = "signin"
ONBOARDING_ROUTE = "onboarding"
DASHBOARD_ROUTE = "dashboard"


def is_onboarded(user):
    """The one completeness rule: a merchant id and a store name are both set."""
    return bool(user and user.get("merchantId") and user.get("storeName"))

def post_login_route(user):
    return DASHBOARD_ROUTE if is_onboarded(user) else ONBOARDING_ROUTE

def guard_state(session):
    if session.is_resolving:
        return GuardState.RESOLVING
    if session.current_user is None:
        return GuardState.UNAUTHENTICATED
    return GuardState.AUTHENTICATED

def onboarding_redirect(user, route_name):
    """Returns the route the user must be sent to instead, or None."""
    route = ROUTES.get(route_name)
    if route is None or route.onboarding is None:
        return None
    if route.onboarding == REQUIRE_ONBOARDED and not is_onboarded(user):
        return ONBOARDING_ROUTE
    if route.onboarding == FORBID_ONBOARDED and is_onboarded(user):
        return DASHBOARD_ROUTE
    return None

def navigate(route_name):
    st.session_state.app_mode = route_name
    st.rerun()

def load_renderer(route):
    module = importlib.import_module(route.module)
    return getattr(module, route.function)

def render_placeholder():
    st.info("⏳ Loading...")

def dispatch(route_name, session, navigate=navigate):
    """
    Runs a route through the session and onboarding guards, then renders it.
    Nothing on a guarded screen runs (no fetches) until both guards pass.
    Returns the GuardState the route was evaluated in.
    """
    route = ROUTES.get(route_name)
    if route is None:
        logger.warning(f"Unknown route {route_name}; falling back to {DEFAULT_ROUTE}")
        navigate(DEFAULT_ROUTE)
        return None

    state = guard_state(session)
    if route.protected:
        if state is GuardState.RESOLVING:
            render_placeholder()
            return state
        if state is GuardState.UNAUTHENTICATED:
            navigate(SIGN_IN_ROUTE)
            return state

        target = onboarding_redirect(session.current_user, route_name)
        if target:
            navigate(target)
            return state

    load_renderer(route)()
    return state
