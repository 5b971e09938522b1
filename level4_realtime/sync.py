"""Full resynchronization of remote tables into the dataset store."""

import json
from typing import Optional

from level2_validation.profiler import detect_table_type
from level3_datasets.models import Dataset, DatasetStatus, Row
from level3_datasets.store import DatasetStore
from settings.schema import PipelineSettings
from utils import ColorAssigner, get_logger, slugify

from .remote import RemoteRowStore, RemoteStoreError

logger = get_logger(__name__)

REMOTE_ID_PREFIX = "remote-"


def remote_dataset_id(table: str) -> str:
    """Dataset id for a remote table; stable across reloads."""
    return f"{REMOTE_ID_PREFIX}{slugify(table)}"


def is_remote_dataset(dataset_id: str) -> bool:
    return dataset_id.startswith(REMOTE_ID_PREFIX)


def dataset_from_remote(
    table: str,
    records: list[Row],
    colors: Optional[ColorAssigner] = None,
    preview_size: int = 5,
) -> Dataset:
    """Build a Dataset from the rows of one remote table."""
    colors = colors or ColorAssigner()
    return Dataset(
        id=remote_dataset_id(table),
        name=table,
        rows=[dict(record) for record in records],
        source_file_name=f"{table}.csv",
        source_size_bytes=len(json.dumps(records, default=str)),
        status=DatasetStatus.VALID,
        validation_summary=f"{len(records)} records loaded from database",
        color_tag=colors.color_for(table),
        inferred_type=detect_table_type(table),
        known_columns=list(records[0]) if records else [],
        preview_size=preview_size,
    )


class DatasetSynchronizer:
    """Rebuilds remote-backed datasets from a full fetch of every configured table."""

    def __init__(
        self,
        remote: RemoteRowStore,
        store: DatasetStore,
        settings: Optional[PipelineSettings] = None,
        colors: Optional[ColorAssigner] = None,
    ):
        self.remote = remote
        self.store = store
        self.settings = settings or PipelineSettings()
        self.colors = colors or ColorAssigner()

    @property
    def tables(self) -> list[str]:
        return list(self.settings.realtime.tables)

    def reload(self) -> list[str]:
        """Fetch every configured table and replace the remote datasets in the store.

        Locally committed datasets are kept. A table whose fetch fails keeps
        its current local copy; an empty table has no dataset.

        Returns:
            One error message per table that could not be fetched
        """
        errors = []
        datasets = []
        failed_ids = []

        for table in self.tables:
            try:
                records = self.remote.fetch_all(table)
            except RemoteStoreError as e:
                logger.warning(f"Failed to fetch table '{table}': {e}")
                errors.append(f"{table}: {e}")
                failed_ids.append(remote_dataset_id(table))
                continue

            if not records:
                logger.debug(f"Table '{table}' is empty, skipping")
                continue

            datasets.append(
                dataset_from_remote(table, records, self.colors, preview_size=self.settings.datasets.preview_size)
            )

        with self.store.lock:
            keep = [d.id for d in self.store.list_datasets() if not is_remote_dataset(d.id)]
            self.store.replace_all(datasets, keep=keep + failed_ids)

        logger.info(f"Reload complete: {len(datasets)} remote datasets, {len(errors)} fetch failures")
        return errors
