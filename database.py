import streamlit as st
import logging
import random
import uuid
from datetime import datetime, timezone
from supabase import create_client

import secrets_manager
import catalog_engine

logger = logging.getLogger(__name__)

# --- TABLES ---
CATEGORIES_TABLE = "categories"
PRODUCTS_TABLE = "products"
DEALS_TABLE = "deals"
STORE_INFO_TABLE = "store_info"

# Fields the gateway owns; callers never get to write them directly
RESERVED_FIELDS = ("id", "ownerId", "createdAt", "updatedAt", "version", "requestId")

_CLIENT_KEY = "_supabase_client"


class ConfigurationError(RuntimeError):
    pass


class NotAuthenticatedError(RuntimeError):
    pass


class ConcurrentUpdateError(RuntimeError):
    """The record changed remotely since the caller last read it."""


class MissingReferenceError(ValueError):
    """A record points at a category/product that does not exist for the merchant."""


# --- CLIENT ---

def get_client():
    """
    Returns the Supabase client for the current browser session.
    Cached in session state so one visitor's auth session never leaks to another.
    """
    client = st.session_state.get(_CLIENT_KEY)
    if client is not None:
        return client

    url = secrets_manager.get_secret("SUPABASE_URL")
    key = secrets_manager.get_secret("SUPABASE_KEY")
    if not url or not key:
        logger.error("Supabase credentials missing from both Env Vars and Secrets.")
        raise ConfigurationError("Configuration Error: API Keys Missing")

    client = create_client(url, key)
    st.session_state[_CLIENT_KEY] = client
    return client

def _now():
    return datetime.now(timezone.utc).isoformat()

def _current_owner_id(client):
    res = client.auth.get_user()
    if not res or not res.user:
        raise NotAuthenticatedError("No user logged in")
    return res.user.id

def _strip_reserved(data):
    return {k: v for k, v in data.items() if k not in RESERVED_FIELDS}


# --- GENERIC TABLE OPERATIONS ---

def _list(table, merchant_id, order, filters=None):
    """
    Lists a merchant's rows. Failures degrade to an empty list.
    `order` is a sequence of (column, descending) pairs.
    """
    try:
        query = get_client().table(table).select("*").eq("merchantId", merchant_id)
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        for column, descending in order:
            query = query.order(column, desc=descending)
        return query.execute().data or []
    except Exception as e:
        logger.error(f"Failed to fetch {table}: {e}")
        return []

def _save(table, data, request_id=None):
    """
    Creates a row. `request_id` is the idempotency key: a repeated save with
    the same key returns the row the first attempt created.
    """
    try:
        client = get_client()
        now = _now()
        record = _strip_reserved(data)
        record.update({
            "ownerId": _current_owner_id(client),
            "createdAt": now,
            "updatedAt": now,
            "version": 1,
            "requestId": request_id or str(uuid.uuid4()),
        })

        res = client.table(table).upsert(record, on_conflict="requestId", ignore_duplicates=True).execute()
        if res.data:
            return res.data[0]

        existing = client.table(table).select("*").eq("requestId", record["requestId"]).limit(1).execute()
        if not existing.data:
            raise RuntimeError(f"Save to {table} returned no record")
        logger.info(f"Duplicate create on {table} for request {record['requestId']}; returning existing row")
        return existing.data[0]
    except Exception as e:
        logger.error(f"{table} save failed: {e}")
        raise

def _update(table, record_id, data, expected_version=None):
    """
    Partial update. With `expected_version` the write only lands if the stored
    row still has that version, and the version is bumped.
    """
    try:
        payload = _strip_reserved(data)
        payload["updatedAt"] = _now()

        query = get_client().table(table)
        if expected_version is not None:
            payload["version"] = expected_version + 1
            res = query.update(payload).eq("id", record_id).eq("version", expected_version).execute()
        else:
            res = query.update(payload).eq("id", record_id).execute()

        if not res.data:
            if expected_version is not None:
                raise ConcurrentUpdateError(
                    "This record was changed somewhere else. Reload the page and try again."
                )
            raise LookupError(f"{table} record {record_id} not found")
        return res.data[0]
    except Exception as e:
        logger.error(f"{table} update failed: {e}")
        raise

def _delete(table, record_id):
    try:
        get_client().table(table).delete().eq("id", record_id).execute()
    except Exception as e:
        logger.error(f"{table} deletion failed: {e}")
        raise

def _ensure_references(table, merchant_id, ids, label):
    """Raises MissingReferenceError unless every id exists for the merchant."""
    wanted = [i for i in (ids or []) if i]
    if not wanted:
        return
    res = (
        get_client().table(table).select("id")
        .eq("merchantId", merchant_id)
        .in_("id", wanted)
        .execute()
    )
    found = {row["id"] for row in (res.data or [])}
    missing = [i for i in wanted if i not in found]
    if missing:
        raise MissingReferenceError(f"Unknown {label}: {', '.join(missing)}")


# --- CATEGORIES ---

def get_categories(merchant_id):
    return _list(CATEGORIES_TABLE, merchant_id, [("sortOrder", False), ("createdAt", False)])

def save_category(category_data, request_id=None):
    return _save(CATEGORIES_TABLE, category_data, request_id)

def update_category(category_id, category_data, expected_version=None):
    return _update(CATEGORIES_TABLE, category_id, category_data, expected_version)

def delete_category(category_id):
    _delete(CATEGORIES_TABLE, category_id)


# --- PRODUCTS ---

def get_products(merchant_id, category_id=None):
    filters = {"categoryId": category_id} if category_id else None
    return _list(PRODUCTS_TABLE, merchant_id, [("sortOrder", False), ("createdAt", False)], filters)

def save_product(product_data, request_id=None):
    if not product_data.get("categoryId"):
        raise MissingReferenceError("Pick a category for this product.")
    _ensure_references(CATEGORIES_TABLE, product_data.get("merchantId"), [product_data["categoryId"]], "category")
    return _save(PRODUCTS_TABLE, product_data, request_id)

def update_product(product_id, product_data, expected_version=None):
    if "categoryId" in product_data:
        if not product_data["categoryId"]:
            raise MissingReferenceError("Pick a category for this product.")
        _ensure_references(CATEGORIES_TABLE, product_data.get("merchantId"), [product_data["categoryId"]], "category")
    return _update(PRODUCTS_TABLE, product_id, product_data, expected_version)

def delete_product(product_id):
    _delete(PRODUCTS_TABLE, product_id)


# --- DEALS ---

def _check_deal_targets(deal_data):
    merchant_id = deal_data.get("merchantId")
    if "productIds" in deal_data:
        _ensure_references(PRODUCTS_TABLE, merchant_id, deal_data["productIds"], "product")
    if "categoryIds" in deal_data:
        _ensure_references(CATEGORIES_TABLE, merchant_id, deal_data["categoryIds"], "category")

def get_deals(merchant_id):
    return _list(DEALS_TABLE, merchant_id, [("createdAt", True)])

def save_deal(deal_data, request_id=None):
    _check_deal_targets(deal_data)
    return _save(DEALS_TABLE, deal_data, request_id)

def update_deal(deal_id, deal_data, expected_version=None):
    _check_deal_targets(deal_data)
    return _update(DEALS_TABLE, deal_id, deal_data, expected_version)

def delete_deal(deal_id):
    _delete(DEALS_TABLE, deal_id)


# --- STORE INFO ---

def find_store_info(merchant_id):
    """Like get_store_info, but read failures raise so "missing" is only ever a real empty result."""
    res = (
        get_client().table(STORE_INFO_TABLE).select("*")
        .eq("merchantId", merchant_id)
        .order("createdAt", desc=False)
        .limit(1)
        .execute()
    )
    return res.data[0] if res.data else None

def get_store_info(merchant_id):
    try:
        return find_store_info(merchant_id)
    except Exception as e:
        logger.error(f"Failed to fetch store info: {e}")
        return None

def save_store_info(store_data, request_id=None):
    return _save(STORE_INFO_TABLE, store_data, request_id)

def update_store_info(store_id, store_data, expected_version=None):
    return _update(STORE_INFO_TABLE, store_id, store_data, expected_version)


# --- ANALYTICS ---

def get_merchant_stats(merchant_id):
    """
    Dashboard counters. `storeViews` is placeholder data until real
    analytics exist.
    """
    try:
        categories = get_categories(merchant_id)
        products = get_products(merchant_id)
        deals = get_deals(merchant_id)
        return {
            "totalCategories": len(categories),
            "totalProducts": len(products),
            "activeDeals": sum(1 for d in deals if catalog_engine.is_deal_active(d)),
            "storeViews": random.randint(100, 599),
        }
    except Exception as e:
        logger.error(f"Failed to fetch merchant stats: {e}")
        return {"totalCategories": 0, "totalProducts": 0, "activeDeals": 0, "storeViews": 0}
