"""Pytest configuration for unit tests."""

from unittest.mock import AsyncMock

import pytest


@pytest.fixture
def mock_store() -> AsyncMock:
    """Store double recording every write the domain services make."""
    store = AsyncMock()
    store.update_record.side_effect = lambda record_id, data: {**data, "id": record_id}
    store.delete_record.return_value = None
    store.append_history.side_effect = lambda entry: entry
    store.log_activity.side_effect = lambda entry: entry
    return store
