from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

STORE_TYPES = [
    "Food & Restaurant",
    "Grocery Store",
    "Pharmacy",
    "Sari-sari Store",
    "Bakery",
    "Coffee Shop",
    "Retail Store",
    "Other",
]

DEAL_TYPES = [
    "Percentage Discount",
    "Fixed Amount Discount",
    "Buy 1 Take 1",
    "Free Delivery",
    "Bundle Deal",
    "Other",
]

Record = Dict[str, Any]


def merchant_id_for(user: Optional[Record]) -> Optional[str]:
    """The merchant scope for a user; `merchant_<user id>` before onboarding."""
    if not user:
        return None
    return user.get("merchantId") or f"merchant_{user.get('id')}"

def resolve_choice(selected: str, custom: str) -> str:
    """Fixed-list picker with a free-text "Other"."""
    if selected == "Other":
        return (custom or "").strip()
    return selected or ""


# --- LOCAL LIST PATCHING ---

def find_record(records: List[Record], record_id: str) -> Optional[Record]:
    for r in records:
        if r.get("id") == record_id:
            return r
    return None

def splice_record(records: List[Record], record: Record) -> List[Record]:
    """Replaces the entry with the same id, or appends when it is new."""
    record_id = record.get("id")
    if find_record(records, record_id) is None:
        return records + [record]
    return [record if r.get("id") == record_id else r for r in records]

def remove_record(records: List[Record], record_id: str) -> List[Record]:
    return [r for r in records if r.get("id") != record_id]


# --- PRODUCTS ---

def parse_csv_list(text: Optional[str]) -> List[str]:
    """'a, b,,c ' -> ['a', 'b', 'c']"""
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]

def empty_product_form() -> Record:
    return {
        "name": "",
        "description": "",
        "price": 0.0,
        "categoryId": "",
        "available": True,
        "rating": 0.0,
        "options": "",
        "addons": "",
        "tags": "",
        "image": "",
    }

def build_product_payload(form: Record, merchant_id: str) -> Record:
    return {
        "name": form.get("name", "").strip(),
        "description": form.get("description", ""),
        "price": float(form.get("price") or 0),
        "merchantId": merchant_id,
        "categoryId": form.get("categoryId", ""),
        "available": bool(form.get("available", True)),
        "rating": float(form.get("rating") or 0),
        "options": parse_csv_list(form.get("options")),
        # Addon pricing is not editable yet; every addon is free
        "addons": [{"name": name, "price": 0} for name in parse_csv_list(form.get("addons"))],
        "tags": parse_csv_list(form.get("tags")),
        "image": form.get("image") or "",
    }

def product_form_from_record(product: Record) -> Record:
    addons = product.get("addons") or []
    return {
        "name": product.get("name") or "",
        "description": product.get("description") or "",
        "price": product.get("price") or 0.0,
        "categoryId": product.get("categoryId") or "",
        "available": product.get("available", True) is not False,
        "rating": product.get("rating") or 0.0,
        "options": ", ".join(product.get("options") or []),
        "addons": ", ".join((a or {}).get("name", "") for a in addons),
        "tags": ", ".join(product.get("tags") or []),
        "image": product.get("image") or "",
    }


# --- DEALS ---

def to_datetime(value) -> Optional[datetime]:
    """Parses stored dates (ISO strings or datetimes); naive values are UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

def _now(now=None):
    return to_datetime(now) if now is not None else datetime.now(timezone.utc)

def is_deal_expired(deal: Record, now=None) -> bool:
    end = to_datetime(deal.get("endDate"))
    return end is not None and end < _now(now)

def is_deal_active(deal: Record, now=None) -> bool:
    """Active iff flagged active and now lies within [startDate, endDate]."""
    if not deal.get("active"):
        return False
    start = to_datetime(deal.get("startDate"))
    end = to_datetime(deal.get("endDate"))
    if start is None or end is None:
        return False
    return start <= _now(now) <= end

def deal_status(deal: Record, now=None) -> str:
    if is_deal_active(deal, now):
        return "Active"
    if is_deal_expired(deal, now):
        return "Expired"
    if not deal.get("active"):
        return "Inactive"
    return "Scheduled"

def empty_deal_form() -> Record:
    return {
        "name": "",
        "description": "",
        "dealType": "",
        "customDealType": "",
        "discountValue": 0.0,
        "startDate": None,
        "endDate": None,
        "active": True,
        "image": "",
        "productIds": [],
        "categoryIds": [],
    }

def build_deal_payload(form: Record, merchant_id: str) -> Record:
    start_day = form.get("startDate")
    end_day = form.get("endDate")
    if not start_day or not end_day:
        raise ValueError("Start and end dates are required.")
    if end_day < start_day:
        raise ValueError("End date must be on or after the start date.")

    deal_type = resolve_choice(form.get("dealType", ""), form.get("customDealType", ""))
    if not deal_type:
        raise ValueError("Deal type is required.")

    return {
        "name": form.get("name", "").strip(),
        "description": form.get("description", ""),
        "dealType": deal_type,
        "discountValue": float(form.get("discountValue") or 0),
        # Whole days: from the first second of the start day to the last of the end day
        "startDate": datetime.combine(start_day, time.min, tzinfo=timezone.utc).isoformat(),
        "endDate": datetime.combine(end_day, time.max, tzinfo=timezone.utc).isoformat(),
        "active": bool(form.get("active", True)),
        "image": form.get("image") or "",
        "productIds": list(form.get("productIds") or []),
        "categoryIds": list(form.get("categoryIds") or []),
        "merchantId": merchant_id,
    }

def deal_form_from_record(deal: Record) -> Record:
    deal_type = deal.get("dealType") or ""
    known = deal_type in DEAL_TYPES
    start = to_datetime(deal.get("startDate"))
    end = to_datetime(deal.get("endDate"))
    return {
        "name": deal.get("name") or "",
        "description": deal.get("description") or "",
        "dealType": deal_type if known else "Other",
        "customDealType": "" if known else deal_type,
        "discountValue": deal.get("discountValue") or 0.0,
        "startDate": start.date() if start else None,
        "endDate": end.date() if end else None,
        "active": bool(deal.get("active")),
        "image": deal.get("image") or "",
        "productIds": list(deal.get("productIds") or []),
        "categoryIds": list(deal.get("categoryIds") or []),
    }


# --- CUSTOMER VIEW ---

def visible_categories(categories: List[Record]) -> List[Record]:
    return [c for c in categories if c.get("enabled")]

def visible_products(products: List[Record], category_id: Optional[str] = None) -> List[Record]:
    shown = [p for p in products if p.get("available")]
    if category_id and category_id != "all":
        shown = [p for p in shown if p.get("categoryId") == category_id]
    return shown

def active_deals(deals: List[Record], now=None) -> List[Record]:
    return [d for d in deals if is_deal_active(d, now)]
