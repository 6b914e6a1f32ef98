"""Pytest configuration for all tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from seedkeep.core.logging import get_logger
from seedkeep.domain.entities.user import Role, UserProfile
from seedkeep.infrastructure.auth.jwt_service import jwt_service
from seedkeep.infrastructure.persistence.store import InventoryStore

logger = get_logger(__name__)

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def make_entry(**overrides) -> dict:
    """A complete, valid inventory entry (without id)."""
    entry = {
        "box_number": 1,
        "shelf_code": "A1",
        "type": "white",
        "area_planted": "LBTR",
        "year": "2021",
        "season": "wet",
        "location": "Cold room",
        "description": "Parent line",
        "pedigree": "P1 x P2",
        "weight": 2.5,
        "remarks": None,
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def sample_records() -> list[dict]:
    """Five inventory rows with ids, covering the field types the grid handles."""
    return [
        {"id": "r1", **make_entry(box_number=3, type="white", year="2021", weight=12.0)},
        {"id": "r2", **make_entry(box_number=1, type="yellow", year="2020", weight=4.5)},
        {"id": "r3", **make_entry(box_number=2, type="sorghum", year="2022", weight=None)},
        {"id": "r4", **make_entry(box_number=1, type="white", year="2019", weight=20)},
        {"id": "r5", **make_entry(box_number=5, type="special maize", year="2021-2022", weight="11")},
    ]


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[InventoryStore, None]:
    """An open store backed by an in-memory SQLite database."""
    inventory_store = InventoryStore(MEMORY_URL)
    await inventory_store.open()
    yield inventory_store
    await inventory_store.close()


@pytest_asyncio.fixture
async def client(store: InventoryStore) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client serving the in-memory store."""
    from seedkeep.infrastructure.api.app import create_app

    app = create_app(store=store)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac


async def _headers_for(
    store: InventoryStore,
    user_id: str,
    email: str,
    approved: bool,
    role: Role = Role.USER,
) -> dict[str, str]:
    await store.upsert_user(UserProfile(id=user_id, email=email))
    await store.set_user_approved(user_id, approved)
    await store.set_user_role(user_id, role)
    token = jwt_service.issue_token(user_id, email)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def user_headers(store: InventoryStore) -> dict[str, str]:
    """Bearer headers of an approved staff member."""
    return await _headers_for(store, "uid-tech", "tech@example.com", approved=True)


@pytest_asyncio.fixture
async def pending_headers(store: InventoryStore) -> dict[str, str]:
    """Bearer headers of a user still waiting for approval."""
    return await _headers_for(store, "uid-new", "new@example.com", approved=False)


@pytest_asyncio.fixture
async def admin_headers(store: InventoryStore) -> dict[str, str]:
    """Bearer headers of an approved administrator."""
    return await _headers_for(store, "uid-admin", "admin@example.com", approved=True, role=Role.ADMIN)
