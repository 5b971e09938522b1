"""Remote row store contract.

This module defines the interface the pipeline consumes from the remote
row store, an in-memory implementation used for tests and local runs, and
batched upload of validated rows.
"""

import itertools
from threading import Lock
from typing import Any, Callable, Protocol

from level2_validation.coercion import to_table_record
from level3_datasets.models import Row, normalize_key
from utils import DEFAULT_IDENTITY_COLUMN, DEFAULT_UPLOAD_BATCH_SIZE, get_logger

from .events import ChangeEvent, ChangeType

logger = get_logger(__name__)

ChangeHandler = Callable[[ChangeEvent], None]


class RemoteStoreError(Exception):
    """Raised when a remote row store operation fails."""

    pass


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class RemoteRowStore(Protocol):
    """Operations the pipeline needs from a remote row store."""

    def fetch_all(self, table: str) -> list[Row]: ...

    def insert(self, table: str, rows: list[Row]) -> list[Row]: ...

    def update(self, table: str, row_id: Any, patch: Row) -> list[Row]: ...

    def delete(self, table: str, row_id: Any) -> list[Row]: ...

    def subscribe(self, table: str, handler: ChangeHandler) -> Subscription: ...


class _HandlerSubscription:
    def __init__(self, store: "InMemoryRowStore", table: str, handler: ChangeHandler):
        self._store = store
        self._table = table
        self._handler = handler

    def unsubscribe(self) -> None:
        self._store._remove_handler(self._table, self._handler)


class InMemoryRowStore:
    """Remote row store kept in process memory.

    Rows get auto-incremented identity values, fetches return the newest
    rows first, and every change is delivered synchronously to subscribers
    of its table.
    """

    def __init__(self, identity_column: str = DEFAULT_IDENTITY_COLUMN):
        self.identity_column = identity_column
        self._tables: dict[str, list[Row]] = {}
        self._counters: dict[str, itertools.count] = {}
        self._handlers: dict[str, list[ChangeHandler]] = {}
        self._lock = Lock()

    def _emit(self, events: list[ChangeEvent]) -> None:
        for event in events:
            with self._lock:
                handlers = list(self._handlers.get(event.table, []))
            for handler in handlers:
                handler(event)

    def _remove_handler(self, table: str, handler: ChangeHandler) -> None:
        with self._lock:
            handlers = self._handlers.get(table, [])
            if handler in handlers:
                handlers.remove(handler)

    def _matches(self, row: Row, row_id: Any) -> bool:
        key = normalize_key(row_id)
        return key is not None and normalize_key(row.get(self.identity_column)) == key

    def fetch_all(self, table: str) -> list[Row]:
        with self._lock:
            rows = [dict(row) for row in self._tables.get(table, [])]
        return list(reversed(rows))

    def insert(self, table: str, rows: list[Row]) -> list[Row]:
        inserted = []
        with self._lock:
            counter = self._counters.setdefault(table, itertools.count(1))
            stored_rows = self._tables.setdefault(table, [])
            for row in rows:
                record = dict(row)
                if record.get(self.identity_column) is None:
                    record[self.identity_column] = next(counter)
                stored_rows.append(record)
                inserted.append(dict(record))

        self._emit([ChangeEvent(table=table, type=ChangeType.INSERT, new_row=row) for row in inserted])
        return inserted

    def update(self, table: str, row_id: Any, patch: Row) -> list[Row]:
        updated = []
        with self._lock:
            for row in self._tables.get(table, []):
                if self._matches(row, row_id):
                    row.update({k: v for k, v in patch.items() if k != self.identity_column})
                    updated.append(dict(row))

        self._emit(
            [
                ChangeEvent(
                    table=table,
                    type=ChangeType.UPDATE,
                    new_row=row,
                    old_row={self.identity_column: row[self.identity_column]},
                )
                for row in updated
            ]
        )
        return updated

    def delete(self, table: str, row_id: Any) -> list[Row]:
        with self._lock:
            rows = self._tables.get(table, [])
            deleted = [dict(row) for row in rows if self._matches(row, row_id)]
            self._tables[table] = [row for row in rows if not self._matches(row, row_id)]

        self._emit([ChangeEvent(table=table, type=ChangeType.DELETE, old_row=row) for row in deleted])
        return deleted

    def subscribe(self, table: str, handler: ChangeHandler) -> Subscription:
        with self._lock:
            self._handlers.setdefault(table, []).append(handler)
        logger.debug(f"Subscribed to changes on '{table}'")
        return _HandlerSubscription(self, table, handler)


def upload_rows(
    remote: RemoteRowStore,
    table: str,
    rows: list[Row],
    batch_size: int = DEFAULT_UPLOAD_BATCH_SIZE,
) -> list[Row]:
    """Insert rows into a remote table in batches.

    Rows are converted with to_table_record first, so empty values are
    dropped and dates/numbers are normalized.

    Returns:
        Rows as stored by the remote

    Raises:
        RemoteStoreError: If a batch fails; earlier batches stay inserted
    """
    records = [to_table_record(row) for row in rows]
    inserted: list[Row] = []

    for start in range(0, len(records), batch_size):
        batch = records[start : start + batch_size]
        try:
            inserted.extend(remote.insert(table, batch))
        except RemoteStoreError as e:
            raise RemoteStoreError(
                f"Failed to insert batch {start // batch_size + 1} into '{table}' "
                f"after {len(inserted)} rows: {e}"
            ) from e
        logger.debug(f"Inserted batch of {len(batch)} rows into '{table}'")

    logger.info(f"Uploaded {len(inserted)} rows into '{table}'")
    return inserted

