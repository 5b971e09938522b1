"""Realtime reconciliation of remote change events.

The reconciler applies insert/update/delete notifications to the
remote-backed datasets in a DatasetStore. Events are applied one at a time
under the store lock; an insert into a table with no dataset yet triggers a
full resynchronization instead.
"""

import queue
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from level3_datasets.models import Row, normalize_key
from level3_datasets.store import DatasetStore
from utils import DEFAULT_IDENTITY_COLUMN, get_logger

from .channel import ChannelClosedError, EventChannel
from .events import ChangeEvent, ChangeType
from .remote import RemoteRowStore, Subscription
from .sync import remote_dataset_id

logger = get_logger(__name__)


class RealtimeReconciler:
    """Applies change events to the store.

    Args:
        store: Store holding the remote-backed datasets
        identity_column: Column identifying a row within its table
        resync: Called when an event arrives for a table with no dataset
    """

    def __init__(
        self,
        store: DatasetStore,
        identity_column: str = DEFAULT_IDENTITY_COLUMN,
        resync: Optional[Callable[[], Any]] = None,
    ):
        self.store = store
        self.identity_column = identity_column
        self.resync = resync

    def apply(self, event: Union[ChangeEvent, Mapping[str, Any]]) -> None:
        """Apply one change event. Never raises; malformed events are dropped."""
        if not isinstance(event, ChangeEvent):
            try:
                event = ChangeEvent.from_payload(event)
            except ValidationError as e:
                logger.warning(f"Dropping malformed change event: {e.error_count()} validation errors")
                return

        needs_resync = False
        with self.store.lock:
            if event.type == ChangeType.INSERT:
                needs_resync = self._apply_insert(event)
            elif event.type == ChangeType.UPDATE:
                self._apply_update(event)
            elif event.type == ChangeType.DELETE:
                self._apply_delete(event)

        if needs_resync:
            self._run_resync(event.table)

    def _identity_of(self, row: Optional[Row]) -> Optional[tuple[str, Any]]:
        if not row:
            return None
        return normalize_key(row.get(self.identity_column))

    def _apply_insert(self, event: ChangeEvent) -> bool:
        if event.new_row is None:
            logger.warning(f"Dropping insert on '{event.table}' without a row")
            return False

        dataset = self.store.get(remote_dataset_id(event.table))
        if dataset is None:
            logger.info(f"Insert on untracked table '{event.table}', resynchronizing")
            return True

        dataset.rows.insert(0, dict(event.new_row))
        logger.debug(f"Inserted row into '{event.table}' ({dataset.row_count} rows)")
        return False

    def _apply_update(self, event: ChangeEvent) -> None:
        identity = self._identity_of(event.new_row)
        if identity is None:
            logger.warning(f"Dropping update on '{event.table}' without '{self.identity_column}'")
            return

        dataset = self.store.get(remote_dataset_id(event.table))
        if dataset is None:
            logger.debug(f"Update on untracked table '{event.table}' ignored")
            return

        replaced = 0
        for index, row in enumerate(dataset.rows):
            if self._identity_of(row) == identity:
                dataset.rows[index] = dict(event.new_row)
                replaced += 1

        if replaced == 0:
            logger.debug(f"Update on '{event.table}' matched no row")

    def _apply_delete(self, event: ChangeEvent) -> None:
        identity = self._identity_of(event.old_row) or self._identity_of(event.new_row)
        if identity is None:
            logger.warning(f"Dropping delete on '{event.table}' without '{self.identity_column}'")
            return

        dataset = self.store.get(remote_dataset_id(event.table))
        if dataset is None:
            return

        dataset.rows = [row for row in dataset.rows if self._identity_of(row) != identity]
        if dataset.row_count == 0:
            self.store.remove(dataset.id)
            logger.info(f"Last row of '{event.table}' deleted, dataset removed")

    def _run_resync(self, table: str) -> None:
        if self.resync is None:
            logger.debug(f"No resync configured, insert on '{table}' dropped")
            return
        try:
            self.resync()
        except Exception as e:
            logger.error(f"Resynchronization after insert on '{table}' failed: {e}")

    def drain(self, channel: EventChannel) -> int:
        """Apply events from the channel until it is closed and empty.

        Returns:
            Number of events applied
        """
        count = 0
        for event in channel:
            self.apply(event)
            count += 1
        return count

    def drain_pending(self, channel: EventChannel) -> int:
        """Apply the events currently queued without blocking."""
        events = channel.pending()
        for event in events:
            self.apply(event)
        return len(events)


class RealtimeFeed:
    """Subscribes to remote tables and forwards their events into a channel."""

    def __init__(self, remote: RemoteRowStore, tables: list[str], channel: EventChannel):
        self.remote = remote
        self.tables = list(tables)
        self.channel = channel
        self._subscriptions: list[Subscription] = []

    @property
    def running(self) -> bool:
        return bool(self._subscriptions)

    def start(self) -> None:
        if self.running:
            return
        for table in self.tables:
            self._subscriptions.append(self.remote.subscribe(table, self._enqueue))
        logger.info(f"Realtime feed started for {len(self.tables)} tables")

    def _enqueue(self, event: ChangeEvent) -> None:
        try:
            self.channel.put(event, timeout=1.0)
        except ChannelClosedError:
            logger.debug(f"Channel closed, dropping {event.type.value} on '{event.table}'")
        except queue.Full:
            logger.warning(f"Event channel full, dropping {event.type.value} on '{event.table}'")

    def stop(self) -> None:
        """Unsubscribe from every table and close the channel."""
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self.channel.close()
        logger.info("Realtime feed stopped")
