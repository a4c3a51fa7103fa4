# auradhom/repositories/gateway.py
from typing import Any

from auradhom.core.errors import PersistenceError
from auradhom.repositories.stores import Record, RecordStore


class PersistenceGateway:
    """
    Backend-agnostic access to record collections.

    The store is chosen once at startup (see `select_backend`) and
    injected here; callers never know which backend serves them.

    NOTE:
      - No retries here. Failures surface as PersistenceError and the
        calling service decides what to do.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    @property
    def backend_name(self) -> str:
        return self.store.name

    def put(self, collection: str, record: Record) -> None:
        """Insert or replace a record keyed by its `id`."""
        self.store.put(collection, str(record["id"]), record)

    def get_all(
        self, collection: str, filters: dict[str, str] | None = None
    ) -> list[Record]:
        return self.store.get_all(collection, filters)

    def get_one(self, collection: str, record_id: str) -> Record | None:
        return self.store.get_one(collection, record_id)

    def update(self, collection: str, record_id: str, patch: dict[str, Any]) -> Record:
        """
        Merge `patch` into an existing record and write it back.

        Raises:
            PersistenceError: if the record does not exist or the write fails.
        """
        current = self.store.get_one(collection, record_id)
        if current is None:
            raise PersistenceError(f"No record {record_id} in {collection}")
        merged = {**current, **patch, "id": record_id}
        self.store.put(collection, record_id, merged)
        return merged

    def delete(self, collection: str, record_id: str) -> None:
        self.store.delete(collection, record_id)
