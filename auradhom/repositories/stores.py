# auradhom/repositories/stores.py
"""
Record stores behind the persistence gateway.

Two interchangeable backends:
  - SupabaseStore : durable remote store (one table per collection)
  - LocalStore    : SQLModel database, used when Supabase is unavailable
                    and always used for the backup cache

Both keep records as plain JSON dicts keyed by id. Filters are equality
matches on top-level string fields.
"""
import logging
from typing import Any, Callable, Protocol

import httpx
from postgrest.exceptions import APIError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from supabase import Client, SupabaseException

from auradhom.core.config import Settings
from auradhom.core.errors import PersistenceError
from auradhom.core.supabase_client import is_configured, supabase_backend
from auradhom.database import create_db_and_tables, open_session
from auradhom.models.order import utcnow
from auradhom.models.record import StoredRecord

logger = logging.getLogger(__name__)

Record = dict[str, Any]

# Collection used to probe the durable backend at startup
PROBE_COLLECTION = "orders_pending"


class RecordStore(Protocol):
    name: str

    def put(self, collection: str, record_id: str, data: Record) -> None: ...

    def get_all(
        self, collection: str, filters: dict[str, str] | None = None
    ) -> list[Record]: ...

    def get_one(self, collection: str, record_id: str) -> Record | None: ...

    def delete(self, collection: str, record_id: str) -> None: ...

    def ping(self) -> None: ...


class LocalStore:
    """
    SQLModel-backed store; all collections share the `records` table.
    """

    name = "local"

    def __init__(self, engine: Engine):
        self.engine = engine
        create_db_and_tables(engine)

    def put(self, collection: str, record_id: str, data: Record) -> None:
        try:
            with open_session(self.engine) as session:
                row = session.get(StoredRecord, (collection, record_id))
                if row is None:
                    row = StoredRecord(collection=collection, id=record_id, data=data)
                else:
                    row.data = data
                    row.updated_at = utcnow()
                session.add(row)
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Local write to {collection} failed: {exc}") from exc

    def get_all(
        self, collection: str, filters: dict[str, str] | None = None
    ) -> list[Record]:
        try:
            with open_session(self.engine) as session:
                stmt = select(StoredRecord).where(StoredRecord.collection == collection)
                rows = session.exec(stmt).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Local read of {collection} failed: {exc}") from exc

        records = [dict(row.data) for row in rows]
        for field, value in (filters or {}).items():
            records = [r for r in records if r.get(field) == value]
        return records

    def get_one(self, collection: str, record_id: str) -> Record | None:
        try:
            with open_session(self.engine) as session:
                row = session.get(StoredRecord, (collection, record_id))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Local read of {collection} failed: {exc}") from exc
        return dict(row.data) if row is not None else None

    def delete(self, collection: str, record_id: str) -> None:
        try:
            with open_session(self.engine) as session:
                row = session.get(StoredRecord, (collection, record_id))
                if row is not None:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Local delete from {collection} failed: {exc}") from exc

    def ping(self) -> None:
        self.get_all(PROBE_COLLECTION)


class SupabaseStore:
    """
    Supabase (PostgREST) store.

    Each collection is a table with columns:
      - id         text primary key
      - data       jsonb
      - updated_at timestamptz
    """

    name = "supabase"

    def __init__(self, client: Client):
        self.client = client

    def _execute(self, query, action: str):
        # Timeouts and connection errors come through as httpx errors
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as exc:
            raise PersistenceError(f"Supabase {action} failed: {exc}") from exc

    def put(self, collection: str, record_id: str, data: Record) -> None:
        row = {"id": record_id, "data": data, "updated_at": utcnow().isoformat()}
        self._execute(
            self.client.table(collection).upsert(row, on_conflict="id"),
            f"write to {collection}",
        )

    def get_all(
        self, collection: str, filters: dict[str, str] | None = None
    ) -> list[Record]:
        query = self.client.table(collection).select("id, data")
        for field, value in (filters or {}).items():
            query = query.eq(f"data->>{field}", value)
        response = self._execute(query, f"read of {collection}")
        return [row["data"] for row in response.data or []]

    def get_one(self, collection: str, record_id: str) -> Record | None:
        query = (
            self.client.table(collection)
            .select("id, data")
            .eq("id", record_id)
            .limit(1)
        )
        response = self._execute(query, f"read of {collection}")
        rows = response.data or []
        return rows[0]["data"] if rows else None

    def delete(self, collection: str, record_id: str) -> None:
        self._execute(
            self.client.table(collection).delete().eq("id", record_id),
            f"delete from {collection}",
        )

    def ping(self) -> None:
        self._execute(
            self.client.table(PROBE_COLLECTION).select("id").limit(1),
            "probe",
        )


def select_backend(
    settings: Settings,
    local_factory: Callable[[], RecordStore],
) -> RecordStore:
    """
    Pick the store for this process.

    Called once at startup. Supabase is used when configured and
    reachable; otherwise the local store serves every collection and
    operators get a single warning. The choice is never revisited.
    """
    if not is_configured(settings):
        logger.warning(
            "Supabase is not configured; orders will be stored locally (%s)",
            settings.LOCAL_DATABASE_URL,
        )
        return local_factory()

    try:
        store = SupabaseStore(supabase_backend(settings))
        store.ping()
    except (SupabaseException, PersistenceError) as exc:
        logger.warning(
            "Supabase unreachable at startup (%s); using the local store (%s) "
            "until restart",
            exc,
            settings.LOCAL_DATABASE_URL,
        )
        return local_factory()

    logger.info("Using Supabase as the durable order store")
    return store
