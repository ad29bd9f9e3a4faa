import pytest
from unittest.mock import patch, MagicMock

QUERY_METHODS = ("select", "eq", "in_", "order", "limit", "update", "upsert", "delete")


def make_query(*results):
    """A chainable table query whose execute() returns `results` in order."""
    query = MagicMock()
    for name in QUERY_METHODS:
        getattr(query, name).return_value = query
    query.execute.side_effect = [MagicMock(data=data) for data in results]
    return query


def make_auth_user(user_id="user-1", email="juan@example.com", metadata=None):
    user = MagicMock()
    user.id = user_id
    user.email = email
    user.user_metadata = metadata or {}
    user.created_at = None
    user.updated_at = None
    return user


@pytest.fixture
def client():
    """Mocked Supabase client with a signed-in user, patched into the gateway."""
    mock_client = MagicMock()
    mock_client.auth.get_user.return_value = MagicMock(user=make_auth_user())
    with patch("database.get_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def merchant():
    return {
        "id": "user-1",
        "email": "juan@example.com",
        "firstName": "Juan",
        "merchantId": "M-100",
        "storeName": "Juan's Sari-sari Store",
    }
