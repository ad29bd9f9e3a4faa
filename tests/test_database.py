import pytest
import logging
from unittest.mock import patch, MagicMock

import database
from conftest import make_query

# 1. TEST: List failures degrade to empty collections
def test_list_failure_returns_empty(client, caplog):
    client.table.side_effect = Exception("network down")
    with caplog.at_level(logging.ERROR):
        assert database.get_categories("M-100") == []
        assert database.get_products("M-100") == []
        assert database.get_deals("M-100") == []
    assert "network down" in caplog.text

def test_deals_sorted_newest_first(client):
    query = make_query([{"id": "d1"}])
    client.table.return_value = query

    assert database.get_deals("M-100") == [{"id": "d1"}]
    client.table.assert_called_with("deals")
    query.eq.assert_called_with("merchantId", "M-100")
    query.order.assert_called_once_with("createdAt", desc=True)

def test_products_category_filter(client):
    query = make_query([])
    client.table.return_value = query

    database.get_products("M-100", category_id="c1")
    query.eq.assert_any_call("categoryId", "c1")

def test_store_info_first_match_or_none(client):
    client.table.return_value = make_query([{"id": "s1"}, {"id": "s2"}])
    assert database.get_store_info("M-100") == {"id": "s1"}

    client.table.return_value = make_query([])
    assert database.get_store_info("M-100") is None

# 2. TEST: Creates stamp ownership and an idempotency key
def test_save_stamps_owner_version_and_request_id(client):
    query = make_query([{"id": "c1", "name": "Drinks"}])
    client.table.return_value = query

    saved = database.save_category({"name": "Drinks", "merchantId": "M-100", "id": "forged"}, request_id="req-1")

    assert saved == {"id": "c1", "name": "Drinks"}
    record = query.upsert.call_args[0][0]
    assert record["ownerId"] == "user-1"
    assert record["version"] == 1
    assert record["requestId"] == "req-1"
    assert "id" not in record
    assert query.upsert.call_args[1] == {"on_conflict": "requestId", "ignore_duplicates": True}

def test_retried_create_returns_existing_record(client, caplog):
    # First execute is the ignored upsert, second the lookup by requestId
    query = make_query([], [{"id": "c1", "requestId": "req-1"}])
    client.table.return_value = query

    with caplog.at_level(logging.INFO):
        saved = database.save_category({"name": "Drinks", "merchantId": "M-100"}, request_id="req-1")

    assert saved["id"] == "c1"
    query.eq.assert_called_with("requestId", "req-1")
    assert "Duplicate create" in caplog.text

def test_save_requires_signed_in_user(client):
    client.auth.get_user.return_value = MagicMock(user=None)
    client.table.return_value = make_query([{"id": "c1"}])

    with pytest.raises(database.NotAuthenticatedError):
        database.save_category({"name": "Drinks", "merchantId": "M-100"})

def test_save_errors_propagate_verbatim(client):
    client.table.side_effect = Exception("duplicate key value")
    with pytest.raises(Exception, match="duplicate key value"):
        database.save_category({"name": "Drinks"})

# 3. TEST: Optimistic concurrency on updates
def test_update_with_matching_version_bumps_it(client):
    query = make_query([{"id": "c1", "version": 4}])
    client.table.return_value = query

    updated = database.update_category("c1", {"enabled": False, "version": 99}, expected_version=3)

    assert updated == {"id": "c1", "version": 4}
    payload = query.update.call_args[0][0]
    assert payload["version"] == 4
    assert payload["enabled"] is False
    assert "updatedAt" in payload
    query.eq.assert_any_call("version", 3)

def test_update_with_stale_version_conflicts(client):
    client.table.return_value = make_query([])
    with pytest.raises(database.ConcurrentUpdateError):
        database.update_category("c1", {"enabled": False}, expected_version=3)

def test_update_missing_record_without_version(client):
    client.table.return_value = make_query([])
    with pytest.raises(LookupError):
        database.update_category("c1", {"enabled": False})

# 4. TEST: Referential integrity
def test_product_needs_existing_category(client):
    client.table.return_value = make_query([])
    with pytest.raises(database.MissingReferenceError, match="c-missing"):
        database.save_product({"name": "Adobo", "merchantId": "M-100", "categoryId": "c-missing"})
    # Only the reference lookup ran; nothing was written
    client.table.return_value.upsert.assert_not_called()

def test_product_without_category_rejected(client):
    with pytest.raises(database.MissingReferenceError):
        database.save_product({"name": "Adobo", "merchantId": "M-100", "categoryId": ""})
    client.table.assert_not_called()

def test_partial_product_update_skips_reference_check(client):
    query = make_query([{"id": "p1", "available": False}])
    client.table.return_value = query

    database.update_product("p1", {"available": False}, expected_version=1)
    query.in_.assert_not_called()

def test_deal_targets_checked(client):
    tables = {
        "products": make_query([{"id": "p1"}]),
        "categories": make_query([]),
    }
    client.table.side_effect = lambda name: tables[name]

    with pytest.raises(database.MissingReferenceError, match="category"):
        database.save_deal({"merchantId": "M-100", "productIds": ["p1"], "categoryIds": ["c9"]})

# 5. TEST: Deletes
def test_delete_issues_single_call(client):
    query = make_query(None)
    client.table.return_value = query

    database.delete_deal("d1")
    query.delete.assert_called_once()
    query.eq.assert_called_once_with("id", "d1")

# 6. TEST: Stats
@patch("database.random.randint", return_value=321)
def test_merchant_stats(mock_rand, client):
    active = {"id": "d1", "active": True, "startDate": "2000-01-01T00:00:00Z", "endDate": "2999-01-01T00:00:00Z"}
    inactive = {"id": "d2", "active": False, "startDate": "2000-01-01T00:00:00Z", "endDate": "2999-01-01T00:00:00Z"}
    tables = {
        "categories": make_query([{"id": "c1"}]),
        "products": make_query([{"id": "p1"}, {"id": "p2"}]),
        "deals": make_query([active, inactive]),
    }
    client.table.side_effect = lambda name: tables[name]

    stats = database.get_merchant_stats("M-100")
    assert stats == {"totalCategories": 1, "totalProducts": 2, "activeDeals": 1, "storeViews": 321}

# 7. TEST: Client configuration
@patch("database.create_client")
@patch("database.secrets_manager.get_secret", return_value=None)
def test_missing_credentials(mock_secret, mock_create):
    with patch("database.st") as mock_st:
        mock_st.session_state = {}
        with pytest.raises(database.ConfigurationError):
            database.get_client()
    mock_create.assert_not_called()

@patch("database.create_client")
@patch("database.secrets_manager.get_secret", side_effect=["https://x.supabase.co", "anon"])
def test_client_cached_per_session(mock_secret, mock_create):
    with patch("database.st") as mock_st:
        mock_st.session_state = {}
        first = database.get_client()
        second = database.get_client()
    assert first is second
    mock_create.assert_called_once_with("https://x.supabase.co", "anon")
