import pytest
import inspect
import streamlit as st
from datetime import date
from unittest.mock import patch, MagicMock

import ui_categories
import ui_products
import ui_deals
import ui_store
import ui_onboarding
import ui_settings
import ui_dashboard
import ui_preview
from ui_helpers import load_records, request_id_for, request_delete, reset_screen_state
from session_store import SessionStore, RESOLVING_KEY, USER_KEY


def image_file(name="banner.png"):
    f = MagicMock()
    f.name = name
    f.type = "image/png"
    f.size = 2048
    f.getvalue.return_value = b"img"
    return f

# 1. TEST: Screen loading
def test_load_records_failure_leaves_empty_list():
    state = {}
    fetch = MagicMock(side_effect=Exception("offline"))
    assert load_records(state, "categories", "M-100", fetch) == []
    assert state["loading"] is False

def test_load_records_cached_per_merchant():
    state = {}
    fetch = MagicMock(return_value=[{"id": "c1"}])
    load_records(state, "categories", "M-100", fetch)
    load_records(state, "categories", "M-100", fetch)
    load_records(state, "categories", "M-200", fetch)
    assert fetch.call_count == 2

def test_reset_screen_state_drops_merchant_data():
    state = {"categories": [1], "categories_merchant": "M-100", "current_user": {"id": "u1"}}
    request_id_for(state, "category_form")
    request_delete(state, "category", "cat-of-merchant-A")
    reset_screen_state(state)
    assert state == {"current_user": {"id": "u1"}}

# 2. TEST: Categories
@patch("ui_categories.database.update_category")
def test_category_edit_replaces_exactly_one_entry(mock_update):
    state = {"categories": [
        {"id": "c1", "name": "Drinks", "version": 1},
        {"id": "c2", "name": "Snacks", "version": 2},
    ]}
    mock_update.return_value = {"id": "c2", "name": "Chips", "version": 3}

    ui_categories.submit_category(state, "M-100", {"name": " Chips ", "enabled": True}, editing=state["categories"][1])

    assert [c["name"] for c in state["categories"]] == ["Drinks", "Chips"]
    assert mock_update.call_args[0][1]["name"] == "Chips"
    assert mock_update.call_args[1] == {"expected_version": 2}

@patch("ui_categories.database.save_category")
def test_category_create_appends_and_reuses_request_id_on_retry(mock_save):
    state = {"categories": []}
    mock_save.side_effect = [Exception("timeout"), {"id": "c1", "name": "Drinks"}]

    with pytest.raises(Exception):
        ui_categories.submit_category(state, "M-100", {"name": "Drinks"})
    first_key = mock_save.call_args[1]["request_id"]
    assert state["saving"] is False

    ui_categories.submit_category(state, "M-100", {"name": "Drinks"})
    assert mock_save.call_args[1]["request_id"] == first_key
    assert state["categories"] == [{"id": "c1", "name": "Drinks"}]
    assert "category_form_request_id" not in state

@patch("ui_categories.database.save_category")
def test_submit_ignored_while_busy(mock_save):
    state = {"saving": True}
    assert ui_categories.submit_category(state, "M-100", {"name": "Drinks"}) is None
    mock_save.assert_not_called()

@patch("ui_categories.database.delete_category")
def test_category_delete_calls_once(mock_delete):
    state = {"categories": [{"id": "c1"}, {"id": "c2"}]}
    ui_categories.delete_category(state, "c1")
    mock_delete.assert_called_once_with("c1")
    assert state["categories"] == [{"id": "c2"}]

@patch("ui_categories.database.update_category")
def test_category_toggle_sends_only_enabled(mock_update):
    state = {"categories": [{"id": "c1", "enabled": True, "name": "Drinks", "version": 5}]}
    mock_update.return_value = {"id": "c1", "enabled": False, "name": "Drinks", "version": 6}

    ui_categories.toggle_category(state, "c1")

    mock_update.assert_called_once_with("c1", {"enabled": False}, expected_version=5)
    assert state["categories"][0]["enabled"] is False

# 3. TEST: Products
@patch("ui_products.database.update_product")
def test_product_toggle_flips_only_available(mock_update):
    product = {"id": "p1", "name": "Adobo", "price": 120.0, "available": True, "version": 1}
    state = {"products": [product]}
    mock_update.return_value = {**product, "available": False, "version": 2}

    ui_products.toggle_availability(state, "p1")

    mock_update.assert_called_once_with("p1", {"available": False}, expected_version=1)
    assert state["products"][0] == {**product, "available": False, "version": 2}

@patch("ui_products.database.delete_product")
def test_product_delete_calls_once(mock_delete):
    state = {"products": [{"id": "p1"}, {"id": "p2"}]}
    ui_products.delete_product(state, "p2")
    mock_delete.assert_called_once_with("p2")
    assert state["products"] == [{"id": "p1"}]

@patch("ui_products.storage_engine.upload_then_save")
def test_product_with_image_goes_through_compensated_upload(mock_upload):
    mock_upload.side_effect = lambda f, path, save, optional=False: {"id": "p1", "path": path}
    state = {"products": []}

    saved = ui_products.submit_product(state, "M-100", {"name": "Adobo", "categoryId": "c1"}, image_file=image_file())

    assert saved["path"].startswith("products/M-100/")
    assert state["products"] == [saved]
    assert state["uploading"] is False

@patch("ui_products.database.save_product")
def test_product_create_builds_lists(mock_save):
    mock_save.side_effect = lambda payload, request_id=None: {"id": "p1", **payload}
    state = {}
    saved = ui_products.submit_product(state, "M-100", {
        "name": "Adobo", "categoryId": "c1", "options": "Small, Large", "addons": "Rice", "tags": "",
    })
    assert saved["options"] == ["Small", "Large"]
    assert saved["addons"] == [{"name": "Rice", "price": 0}]
    assert saved["tags"] == []

# 4. TEST: Deals
def test_deal_dates_validated_before_upload():
    state = {}
    form = {"name": "Promo", "dealType": "Free Delivery",
            "startDate": date(2024, 6, 20), "endDate": date(2024, 6, 10)}
    with patch("ui_deals.storage_engine.upload_then_save") as mock_upload:
        with pytest.raises(ValueError):
            ui_deals.submit_deal(state, "M-100", form, image_file=image_file())
    mock_upload.assert_not_called()

@patch("ui_deals.database.update_deal")
def test_deal_toggle_sends_only_active(mock_update):
    state = {"deals": [{"id": "d1", "active": False, "version": 2}]}
    mock_update.return_value = {"id": "d1", "active": True, "version": 3}
    ui_deals.toggle_deal(state, "d1")
    mock_update.assert_called_once_with("d1", {"active": True}, expected_version=2)

@patch("ui_deals.database.delete_deal")
def test_deal_delete_calls_once(mock_delete):
    state = {"deals": [{"id": "d1"}]}
    ui_deals.delete_deal(state, "d1")
    mock_delete.assert_called_once_with("d1")
    assert state["deals"] == []

# 5. TEST: Onboarding
def onboarding_form(**fields):
    form = {"merchantId": " M-100 ", "storeName": "Juan's", "storeType": "Bakery", "customStoreType": ""}
    form.update(fields)
    return form

@patch("ui_onboarding.database.save_store_info")
def test_onboarding_writes_store_then_gate_fields(mock_save):
    mock_save.side_effect = lambda data, request_id=None: {"id": "s1", **data}
    session = MagicMock()
    state = {}

    store = ui_onboarding.submit_onboarding(state, session, onboarding_form())

    assert store["merchantId"] == "M-100"
    assert store["storeType"] == "Bakery"
    session.update.assert_called_once_with({
        "merchantId": "M-100", "storeName": "Juan's", "storeSetupCompleted": True,
    })
    assert state["store_info"] == store

@patch("ui_onboarding.database.save_store_info")
def test_onboarding_requires_custom_type_for_other(mock_save):
    with pytest.raises(ValueError):
        ui_onboarding.submit_onboarding({}, MagicMock(), onboarding_form(storeType="Other"))
    mock_save.assert_not_called()

@patch("ui_onboarding.storage_engine.upload_file", side_effect=Exception("bucket missing"))
@patch("ui_onboarding.database.save_store_info")
def test_onboarding_continues_without_logo(mock_save, mock_upload):
    mock_save.side_effect = lambda data, request_id=None: {"id": "s1", **data}
    store = ui_onboarding.submit_onboarding({}, MagicMock(), onboarding_form(), logo_file=image_file("logo.png"))
    assert store["logoUrl"] == ""

@patch("ui_onboarding.database.save_store_info", side_effect=Exception("insert failed"))
def test_onboarding_failure_leaves_user_untouched(mock_save):
    session = MagicMock()
    with pytest.raises(Exception):
        ui_onboarding.submit_onboarding({}, session, onboarding_form())
    session.update.assert_not_called()

# 6. TEST: Store info
@patch("ui_store.database.save_store_info")
@patch("ui_store.database.find_store_info", return_value=None)
@patch("ui_store.database.get_store_info", return_value=None)
def test_missing_store_info_is_backfilled(mock_get, mock_find, mock_save, merchant):
    mock_save.side_effect = lambda data, request_id=None: {"id": "s1", **data}
    user = {**merchant, "storeType": "Bakery", "storeOpen": False}

    info = ui_store.ensure_store_info({}, user)

    assert info["storeType"] == "Bakery"
    assert info["storeOpen"] is False
    assert mock_save.call_args[1]["request_id"] == "store-backfill-user-1"

@patch("ui_store.database.save_store_info")
def test_failed_store_read_never_backfills(mock_save, client, merchant):
    client.table.return_value.select.side_effect = Exception("503 upstream")

    with pytest.raises(Exception, match="503 upstream"):
        ui_store.ensure_store_info({}, merchant)
    mock_save.assert_not_called()

@patch("ui_store.database.save_store_info")
@patch("ui_store.database.find_store_info", return_value={"id": "s1", "merchantId": "M-100"})
@patch("ui_store.database.get_store_info", return_value=None)
def test_store_found_on_recheck_is_reused(mock_get, mock_find, mock_save, merchant):
    state = {}
    assert ui_store.ensure_store_info(state, merchant)["id"] == "s1"
    assert state["store_info"]["id"] == "s1"
    mock_save.assert_not_called()

@patch("ui_store.database.update_store_info")
def test_store_rename_syncs_user(mock_update, merchant):
    state = {"store_info": {"id": "s1", "merchantId": "M-100", "storeName": "Old", "version": 1}}
    mock_update.side_effect = lambda sid, data, expected_version=None: {"id": sid, **data}
    session = MagicMock()
    session.current_user = merchant

    ui_store.update_store(state, session, {"storeName": "New Name", "storeType": "Bakery"})

    session.update.assert_called_once_with({"storeName": "New Name"})
    assert state["store_info"]["storeName"] == "New Name"

@patch("ui_store.database.update_store_info")
def test_store_toggle_sends_only_open(mock_update):
    state = {"store_info": {"id": "s1", "storeOpen": True, "version": 4}}
    mock_update.return_value = {"id": "s1", "storeOpen": False, "version": 5}
    ui_store.toggle_store_open(state)
    mock_update.assert_called_once_with("s1", {"storeOpen": False}, expected_version=4)

# 7. TEST: Settings
def signed_in(merchant):
    return SessionStore({RESOLVING_KEY: False, USER_KEY: merchant})

@pytest.mark.parametrize("form, message", [
    ({"email": "a@b.c", "newPassword": "newpass1", "confirmPassword": "newpass1"}, "current password"),
    ({"email": "a@b.c", "currentPassword": "x", "newPassword": "newpass1", "confirmPassword": "other"}, "do not match"),
    ({"email": ""}, "Email"),
])
def test_account_form_validation(form, message, merchant):
    with pytest.raises(ValueError, match=message):
        ui_settings.update_account({}, signed_in(merchant), form)

@patch("ui_settings.auth_engine.change_password")
@patch("session_store.auth_engine.update_current_user", side_effect=lambda fields: fields)
def test_account_update_changes_password_first(mock_update, mock_password, merchant):
    form = {"firstName": "Juana", "email": "juan@example.com", "currentPassword": "old",
            "newPassword": "newpass1", "confirmPassword": "newpass1"}
    user = ui_settings.update_account({}, signed_in(merchant), form)

    mock_password.assert_called_once_with("juan@example.com", "old", "newpass1")
    assert user["firstName"] == "Juana"
    assert user["merchantId"] == "M-100"

@patch("session_store.auth_engine.update_current_user", side_effect=lambda fields: fields)
def test_notifications_persist_on_user(mock_update, merchant):
    session = signed_in(merchant)
    ui_settings.save_notifications({}, session, {"orderAlerts": False})
    assert ui_settings.notification_preferences(session.current_user)["orderAlerts"] is False
    assert ui_settings.notification_preferences(session.current_user)["dealReminders"] is True

@patch("session_store.auth_engine.logout_user")
def test_delete_account_only_signs_out(mock_logout, merchant):
    state = {RESOLVING_KEY: False, USER_KEY: merchant, "products": [{"id": "p1"}]}
    ui_settings.delete_account(state, SessionStore(state))
    mock_logout.assert_called_once()
    assert state[USER_KEY] is None
    assert "products" not in state

# 8. TEST: Dashboard and preview data
@patch("ui_dashboard.database.get_merchant_stats", return_value={"totalCategories": 1})
def test_dashboard_stats_cached(mock_stats):
    state = {}
    ui_dashboard.load_stats(state, "M-100")
    ui_dashboard.load_stats(state, "M-100")
    mock_stats.assert_called_once_with("M-100")

@patch("ui_preview.database")
def test_preview_shows_only_visible_records(mock_db):
    mock_db.get_store_info.return_value = None
    mock_db.get_categories.return_value = [{"id": "c1", "enabled": True}, {"id": "c2", "enabled": False}]
    mock_db.get_products.return_value = [{"id": "p1", "available": True}, {"id": "p2", "available": False}]
    mock_db.get_deals.return_value = [{"id": "d1", "active": False}]

    data = ui_preview.load_preview({}, "merchant_u1")

    mock_db.get_products.assert_called_once_with("merchant_u1")
    assert [c["id"] for c in data["categories"]] == ["c1"]
    assert [p["id"] for p in data["products"]] == ["p1"]
    assert data["deals"] == []

def test_installed_streamlit_supports_container_width_images():
    # Preview and product screens size images with use_container_width
    assert "use_container_width" in inspect.signature(st.image).parameters
