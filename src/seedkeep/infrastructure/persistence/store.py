"""Inventory store: the explicit client handle for the record database.

Every part of the application that reads or writes inventory data receives an
``InventoryStore`` instance; there is no module-level connection. The store
converts between ORM models and the plain records and entities the domain
layer works with, and turns driver failures into ``StoreError``.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Literal, Sequence

from pydantic_core import to_jsonable_python
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seedkeep.core.exceptions import RecordNotFoundError, StoreError
from seedkeep.core.logging import get_logger
from seedkeep.domain.entities.audit import (
    ActivityEntry,
    AuditAction,
    AuditEntry,
    FieldChange,
)
from seedkeep.domain.entities.grid import Record
from seedkeep.domain.entities.inventory import DELETED_MARKER, ID_FIELD, SYSTEM_FIELDS
from seedkeep.domain.entities.user import Role, UserProfile
from seedkeep.infrastructure.persistence.database import (
    DatabaseManager,
    ensure_sqlite_directory,
)
from seedkeep.infrastructure.persistence.models import (
    ActivityModel,
    InventoryHistoryModel,
    InventoryModel,
    UserModel,
)
from seedkeep.infrastructure.persistence.repositories import (
    ActivityRepository,
    InventoryHistoryRepository,
    InventoryRepository,
    UserRepository,
)

logger = get_logger(__name__)

UserStatus = Literal["all", "approved", "unapproved"]


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops the timezone; everything is stored in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _record_from_model(model: InventoryModel) -> Record:
    record: Record = {ID_FIELD: model.id}
    record.update(model.data or {})
    record["added_by"] = model.added_by
    record["added_at"] = _aware(model.added_at)
    return record


def _document_data(data: Record) -> dict[str, Any]:
    """Field values to persist: system fields and the deletion marker are dropped."""
    return to_jsonable_python({
        key: value
        for key, value in data.items()
        if key not in SYSTEM_FIELDS and key != DELETED_MARKER
    })


def _history_from_model(model: InventoryHistoryModel) -> AuditEntry:
    return AuditEntry(
        id=model.id,
        record_id=model.record_id,
        action=AuditAction(model.action),
        actor=model.actor,
        changes=[
            FieldChange(field=c["field"], from_value=c.get("from"), to_value=c.get("to"))
            for c in model.changes or []
        ],
        summary=model.summary,
        snapshot=model.snapshot,
        occurred_at=_aware(model.occurred_at),
    )


def _activity_from_model(model: ActivityModel) -> ActivityEntry:
    return ActivityEntry(
        id=model.id,
        message=model.message,
        logged_by=model.logged_by,
        logged_at=_aware(model.logged_at),
    )


def _user_from_model(model: UserModel) -> UserProfile:
    return UserProfile(
        id=model.id,
        email=model.email,
        display_name=model.display_name,
        role=Role(model.role),
        approved=model.approved,
        created_at=_aware(model.created_at),
    )


class InventoryStore:
    """Async client handle for inventory, history, activity and user data.

    Use ``open()``/``close()`` or ``async with``::

        async with InventoryStore(url) as store:
            records = await store.fetch_all()

    Args:
        database_url: SQLAlchemy async URL.
        echo: Log every SQL statement.
        create_tables: Create missing tables when opening.
    """

    def __init__(self, database_url: str, echo: bool = False, create_tables: bool = True) -> None:
        self.database_url = database_url
        self.echo = echo
        self.create_tables = create_tables
        self._db: DatabaseManager | None = None

    @property
    def is_open(self) -> bool:
        return self._db is not None

    async def open(self) -> "InventoryStore":
        if self._db is not None:
            return self
        ensure_sqlite_directory(self.database_url)
        db = DatabaseManager(self.database_url, echo=self.echo)
        try:
            if self.create_tables:
                await db.create_tables()
        except SQLAlchemyError as e:
            await db.disconnect()
            raise StoreError(f"Could not open store: {e}", operation="open") from e
        self._db = db
        logger.info("Inventory store opened")
        return self

    async def close(self) -> None:
        if self._db is not None:
            await self._db.disconnect()
            self._db = None
            logger.info("Inventory store closed")

    async def __aenter__(self) -> "InventoryStore":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        """Session scope that reports driver failures as ``StoreError``."""
        if self._db is None:
            raise StoreError("Store is not open", operation=operation)
        try:
            async with self._db.session() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("Store operation failed", operation=operation, error=str(e))
            raise StoreError(f"{operation} failed: {e}", operation=operation) from e

    async def check_connection(self) -> bool:
        if self._db is None:
            return False
        return await self._db.check_connection()

    # Inventory records

    async def fetch_all(self) -> list[Record]:
        async with self._session("fetch_all") as session:
            models = await InventoryRepository(session).list_all()
            return [_record_from_model(m) for m in models]

    async def fetch_where(self, field_name: str, value: Any) -> list[Record]:
        """Records whose ``field_name`` equals ``value`` (typed equality)."""
        async with self._session("fetch_where") as session:
            models = await InventoryRepository(session).find_by_field(field_name, value)
            return [_record_from_model(m) for m in models]

    async def get_record(self, record_id: str) -> Record:
        async with self._session("get_record") as session:
            model = await InventoryRepository(session).get_by_id(record_id)
            if model is None:
                raise RecordNotFoundError(record_id, operation="get_record")
            return _record_from_model(model)

    async def add_record(self, data: Record, added_by: str | None = None) -> Record:
        created = await self.add_records([data], added_by=added_by)
        return created[0]

    async def add_records(self, records: Sequence[Record], added_by: str | None = None) -> list[Record]:
        """Insert several records in one transaction; all or nothing."""
        async with self._session("add_records") as session:
            models = [
                InventoryModel(id=str(uuid.uuid4()), data=_document_data(r), added_by=added_by)
                for r in records
            ]
            await InventoryRepository(session).create_many(models)
            await session.commit()
            logger.info("Inventory records added", count=len(models), added_by=added_by)
            return [_record_from_model(m) for m in models]

    async def update_record(self, record_id: str, data: Record) -> Record:
        """Replace the field values of a record (last write wins)."""
        async with self._session("update_record") as session:
            repo = InventoryRepository(session)
            model = await repo.get_by_id(record_id)
            if model is None:
                raise RecordNotFoundError(record_id, operation="update_record")
            await repo.replace_data(model, _document_data(data))
            await session.commit()
            logger.debug("Inventory record updated", record_id=record_id)
            return _record_from_model(model)

    async def delete_record(self, record_id: str) -> None:
        async with self._session("delete_record") as session:
            repo = InventoryRepository(session)
            model = await repo.get_by_id(record_id)
            if model is None:
                raise RecordNotFoundError(record_id, operation="delete_record")
            await repo.delete(model)
            await session.commit()
            logger.debug("Inventory record deleted", record_id=record_id)

    # History and activity

    async def append_history(self, entry: AuditEntry) -> AuditEntry:
        async with self._session("append_history") as session:
            model = InventoryHistoryModel(
                record_id=entry.record_id,
                action=entry.action.value,
                actor=entry.actor,
                changes=to_jsonable_python([c.as_dict() for c in entry.changes]),
                summary=entry.summary,
                snapshot=to_jsonable_python(entry.snapshot) if entry.snapshot is not None else None,
                occurred_at=entry.occurred_at,
            )
            await InventoryHistoryRepository(session).create(model)
            await session.commit()
            return _history_from_model(model)

    async def list_history(self, record_id: str) -> list[AuditEntry]:
        """History of one record, newest first."""
        async with self._session("list_history") as session:
            models = await InventoryHistoryRepository(session).list_for_record(record_id)
            return [_history_from_model(m) for m in models]

    async def log_activity(self, entry: ActivityEntry) -> ActivityEntry:
        async with self._session("log_activity") as session:
            model = ActivityModel(
                message=entry.message,
                logged_by=entry.logged_by,
                logged_at=entry.logged_at,
            )
            await ActivityRepository(session).create(model)
            await session.commit()
            return _activity_from_model(model)

    async def list_activity(self, limit: int = 100) -> list[ActivityEntry]:
        async with self._session("list_activity") as session:
            models = await ActivityRepository(session).list_recent(limit)
            return [_activity_from_model(m) for m in models]

    # Users

    async def get_user(self, user_id: str) -> UserProfile | None:
        async with self._session("get_user") as session:
            model = await UserRepository(session).get_by_id(user_id)
            return _user_from_model(model) if model else None

    async def list_users(self, status: UserStatus = "all") -> list[UserProfile]:
        approved = {"all": None, "approved": True, "unapproved": False}[status]
        async with self._session("list_users") as session:
            models = await UserRepository(session).list_users(approved=approved)
            return [_user_from_model(m) for m in models]

    async def upsert_user(self, profile: UserProfile) -> UserProfile:
        """Create the profile, or refresh email and display name of an existing one.

        Role and approval of an existing profile are never changed here.
        """
        async with self._session("upsert_user") as session:
            repo = UserRepository(session)
            model = await repo.get_by_id(profile.id)
            if model is None:
                model = UserModel(
                    id=profile.id,
                    email=profile.email,
                    display_name=profile.display_name,
                    role=profile.role.value,
                    approved=profile.approved,
                    created_at=profile.created_at,
                )
                await repo.create(model)
                logger.info("User profile created", user_id=profile.id, email=profile.email)
            else:
                model.email = profile.email
                model.display_name = profile.display_name or model.display_name
            await session.commit()
            return _user_from_model(model)

    async def _update_user(self, operation: str, user_id: str, **values: Any) -> UserProfile:
        async with self._session(operation) as session:
            model = await UserRepository(session).get_by_id(user_id)
            if model is None:
                raise RecordNotFoundError(user_id, operation=operation)
            for key, value in values.items():
                setattr(model, key, value)
            await session.commit()
            return _user_from_model(model)

    async def set_user_approved(self, user_id: str, approved: bool) -> UserProfile:
        return await self._update_user("set_user_approved", user_id, approved=approved)

    async def set_user_role(self, user_id: str, role: Role | str) -> UserProfile:
        return await self._update_user("set_user_role", user_id, role=Role(role).value)

    async def delete_user(self, user_id: str) -> None:
        async with self._session("delete_user") as session:
            repo = UserRepository(session)
            model = await repo.get_by_id(user_id)
            if model is None:
                raise RecordNotFoundError(user_id, operation="delete_user")
            await repo.delete(model)
            await session.commit()
