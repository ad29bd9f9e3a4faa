import logging
import json

# --- CONFIGURATION ---
logger = logging.getLogger(__name__)

def log_event(user_email, event_type, metadata=None):
    """
    Logs account and catalog events to the console for auditing.

    Args:
        user_email (str): The email of the merchant (or 'guest').
        event_type (str): Category (e.g., 'USER_LOGIN', 'PRODUCT_DELETED').
        metadata (dict, optional): Extra details like record ids.
    """
    meta_str = "{}"
    if metadata:
        try:
            meta_str = json.dumps(metadata, default=str)
        except (TypeError, ValueError):
            meta_str = str(metadata)

    log_msg = f"[AUDIT] {event_type} | User: {user_email or 'guest'} | {meta_str}"
    logger.info(log_msg)
    return log_msg
