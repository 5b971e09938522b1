"""Level 4: Remote Sync & Realtime Reconciliation.

This module keeps remote-backed datasets consistent with a remote row
store: full reloads, batched uploads, and incremental change events.
"""

from .channel import ChannelClosedError, EventChannel
from .events import ChangeEvent, ChangeType
from .reconciler import RealtimeFeed, RealtimeReconciler
from .remote import InMemoryRowStore, RemoteRowStore, RemoteStoreError, Subscription, upload_rows
from .sync import DatasetSynchronizer, dataset_from_remote, is_remote_dataset, remote_dataset_id

__all__ = [
    "ChangeEvent",
    "ChangeType",
    "ChannelClosedError",
    "DatasetSynchronizer",
    "EventChannel",
    "InMemoryRowStore",
    "RealtimeFeed",
    "RealtimeReconciler",
    "RemoteRowStore",
    "RemoteStoreError",
    "Subscription",
    "dataset_from_remote",
    "is_remote_dataset",
    "remote_dataset_id",
    "upload_rows",
]
