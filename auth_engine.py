import logging

import database
from database import NotAuthenticatedError

# --- CONFIGURATION ---
logger = logging.getLogger(__name__)

# Identity columns come from the auth record itself, never from user metadata
IDENTITY_FIELDS = ("id", "email", "createdAt", "updatedAt")

def _iso(value):
    return value.isoformat() if hasattr(value, "isoformat") else value

def to_merchant_user(user):
    """
    Flattens a Supabase auth user into the MerchantUser dict the screens use:
    identity columns plus every user-metadata field (merchantId, storeName, ...).
    """
    if user is None:
        return None
    merchant = dict(getattr(user, "user_metadata", None) or {})
    merchant.update({
        "id": user.id,
        "email": user.email,
        "createdAt": _iso(getattr(user, "created_at", None)),
        "updatedAt": _iso(getattr(user, "updated_at", None)),
    })
    return merchant

# --- AUTH FUNCTIONS ---

def register_user(email, password, first_name, last_name):
    client = database.get_client()
    try:
        res = client.auth.sign_up({
            "email": email,
            "password": password,
            "options": {"data": {"firstName": first_name, "lastName": last_name}},
        })
    except Exception as e:
        logger.error(f"Registration failed: {e}")
        raise
    if not res.user:
        raise RuntimeError("Signup Failed")
    return to_merchant_user(res.user)

def login_user(email, password):
    client = database.get_client()
    try:
        res = client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise
    if not res.user:
        raise RuntimeError("Login Failed")
    return to_merchant_user(res.user)

def logout_user():
    try:
        database.get_client().auth.sign_out()
    except Exception as e:
        logger.error(f"Logout failed: {e}")
        raise

def get_current_user():
    """Returns the signed-in MerchantUser, or None when there is no usable session."""
    try:
        res = database.get_client().auth.get_user()
    except Exception as e:
        logger.warning(f"Could not resolve current user: {e}")
        return None
    if not res or not res.user:
        return None
    return to_merchant_user(res.user)

def update_current_user(fields):
    """
    Merges `fields` into the signed-in user's profile and persists it.
    Unspecified fields keep their stored values.
    """
    client = database.get_client()
    try:
        res = client.auth.get_user()
        if not res or not res.user:
            raise NotAuthenticatedError("No user logged in")

        changes = {k: v for k, v in fields.items() if k not in IDENTITY_FIELDS}
        attributes = {"data": {**(res.user.user_metadata or {}), **changes}}

        new_email = fields.get("email")
        if new_email and new_email != res.user.email:
            attributes["email"] = new_email

        updated = client.auth.update_user(attributes)
        return to_merchant_user(updated.user)
    except Exception as e:
        logger.error(f"User update failed: {e}")
        raise

def change_password(email, current_password, new_password):
    """Re-authenticates with the current password before setting the new one."""
    client = database.get_client()
    try:
        client.auth.sign_in_with_password({"email": email, "password": current_password})
        client.auth.update_user({"password": new_password})
    except Exception as e:
        logger.error(f"Password change failed: {e}")
        raise

def send_password_reset(email):
    try:
        database.get_client().auth.reset_password_for_email(email)
    except Exception as e:
        logger.error(f"Password reset failed: {e}")
        raise
