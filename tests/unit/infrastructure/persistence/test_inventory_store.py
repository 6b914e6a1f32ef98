"""Unit tests for InventoryStore against an in-memory SQLite database."""

import pytest

from seedkeep.core.exceptions import RecordNotFoundError, StoreError
from seedkeep.domain.entities.audit import ActivityEntry, AuditAction, AuditEntry, FieldChange
from seedkeep.domain.entities.user import Role, UserProfile
from seedkeep.infrastructure.persistence.store import InventoryStore


class TestInventoryRecords:
    """Test suite for record CRUD."""

    @pytest.mark.asyncio
    async def test_add_and_fetch(self, store, entry_factory):
        created = await store.add_record(entry_factory(), added_by="tech@example.com")

        assert created["id"]
        assert created["added_by"] == "tech@example.com"
        assert created["added_at"].tzinfo is not None
        assert store.is_open

        fetched = await store.get_record(created["id"])
        assert fetched["type"] == "white"
        assert fetched["weight"] == 2.5
        assert len(await store.fetch_all()) == 1

    @pytest.mark.asyncio
    async def test_system_fields_are_not_stored_as_data(self, store, entry_factory):
        created = await store.add_record({**entry_factory(), "id": "ignored", "deleted": True})
        assert created["id"] != "ignored"
        assert "deleted" not in created

    @pytest.mark.asyncio
    async def test_add_many(self, store, entry_factory):
        created = await store.add_records([entry_factory(box_number=n) for n in range(3)])
        assert len({r["id"] for r in created}) == 3
        assert len(await store.fetch_all()) == 3

    @pytest.mark.asyncio
    async def test_fetch_where_uses_typed_equality(self, store, entry_factory):
        await store.add_records([
            entry_factory(box_number=1),
            entry_factory(box_number=2),
            entry_factory(box_number=1, type="yellow"),
        ])
        assert len(await store.fetch_where("box_number", 1)) == 2
        assert [r["type"] for r in await store.fetch_where("type", "yellow")] == ["yellow"]
        assert await store.fetch_where("box_number", 9) == []

    @pytest.mark.asyncio
    async def test_update_replaces_data(self, store, entry_factory):
        created = await store.add_record(entry_factory())
        updated = await store.update_record(created["id"], {**created, "type": "sorghum", "weight": 7})

        assert updated["type"] == "sorghum"
        assert (await store.get_record(created["id"]))["weight"] == 7

    @pytest.mark.asyncio
    async def test_delete(self, store, entry_factory):
        created = await store.add_record(entry_factory())
        await store.delete_record(created["id"])
        with pytest.raises(RecordNotFoundError):
            await store.get_record(created["id"])

    @pytest.mark.asyncio
    async def test_missing_record(self, store):
        with pytest.raises(RecordNotFoundError):
            await store.update_record("nope", {"type": "white"})
        with pytest.raises(RecordNotFoundError):
            await store.delete_record("nope")

    @pytest.mark.asyncio
    async def test_closed_store_raises(self):
        closed = InventoryStore("sqlite+aiosqlite:///:memory:")
        with pytest.raises(StoreError):
            await closed.fetch_all()
        assert closed.is_open is False
        assert await closed.check_connection() is False


class TestHistory:
    """Test suite for history and activity entries."""

    @pytest.mark.asyncio
    async def test_history_newest_first(self, store):
        await store.append_history(AuditEntry(record_id="r1", action=AuditAction.CREATE, actor="a@b.c"))
        await store.append_history(AuditEntry(
            record_id="r1",
            action=AuditAction.UPDATE,
            actor="a@b.c",
            changes=[FieldChange("type", "white", "yellow")],
            summary='Type: "white" → "yellow"',
        ))
        await store.append_history(AuditEntry(record_id="r2", action=AuditAction.CREATE, actor="a@b.c"))

        entries = await store.list_history("r1")
        assert [e.action for e in entries] == [AuditAction.UPDATE, AuditAction.CREATE]
        assert entries[0].changes == [FieldChange("type", "white", "yellow")]
        assert entries[0].id is not None

    @pytest.mark.asyncio
    async def test_history_survives_record_deletion(self, store, entry_factory):
        created = await store.add_record(entry_factory())
        await store.append_history(AuditEntry(
            record_id=created["id"],
            action=AuditAction.DELETE,
            actor="a@b.c",
            snapshot=created,
        ))
        await store.delete_record(created["id"])

        entries = await store.list_history(created["id"])
        assert entries[0].snapshot["type"] == "white"

    @pytest.mark.asyncio
    async def test_activity(self, store):
        await store.log_activity(ActivityEntry(message="first", logged_by="a@b.c"))
        await store.log_activity(ActivityEntry(message="second", logged_by="a@b.c"))
        assert [a.message for a in await store.list_activity(limit=1)] == ["second"]


class TestUsers:
    """Test suite for user profiles."""

    @pytest.mark.asyncio
    async def test_new_profiles_start_unapproved(self, store):
        profile = await store.upsert_user(UserProfile(id="u1", email="new@example.com"))
        assert profile.approved is False
        assert profile.role == Role.USER
        assert [u.id for u in await store.list_users("unapproved")] == ["u1"]
        assert await store.list_users("approved") == []

    @pytest.mark.asyncio
    async def test_upsert_keeps_role_and_approval(self, store):
        await store.upsert_user(UserProfile(id="u1", email="old@example.com"))
        await store.set_user_approved("u1", True)
        await store.set_user_role("u1", "admin")

        profile = await store.upsert_user(UserProfile(id="u1", email="new@example.com"))
        assert profile.email == "new@example.com"
        assert profile.approved is True
        assert profile.role == Role.ADMIN

    @pytest.mark.asyncio
    async def test_delete_user(self, store):
        await store.upsert_user(UserProfile(id="u1", email="gone@example.com"))
        await store.delete_user("u1")
        assert await store.get_user("u1") is None
        with pytest.raises(RecordNotFoundError):
            await store.set_user_approved("u1", True)
