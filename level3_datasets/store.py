"""In-memory dataset registry for Level 3.

This module holds every known Dataset and the subset currently active.
The store is the single owner of mutable dataset state: every mutation
runs under one re-entrant lock, and callers that read-then-write (the
realtime reconciler) hold the same lock for their whole step.
"""

from threading import RLock
from typing import Iterable, Optional

from utils import get_logger

from .models import Dataset, Row

logger = get_logger(__name__)


class DatasetStore:
    """Registry of datasets with an active subset.

    Invariant: every active id names a registered dataset.
    """

    def __init__(self):
        self.lock = RLock()
        self._datasets: dict[str, Dataset] = {}
        self._active_ids: list[str] = []

    def register(self, dataset: Dataset) -> None:
        """Insert a dataset, or replace the one with the same id in place.

        The first dataset registered into an empty store becomes active.
        """
        with self.lock:
            is_new = dataset.id not in self._datasets
            was_empty = not self._datasets
            self._datasets[dataset.id] = dataset
            if was_empty:
                self._active_ids = [dataset.id]
            logger.debug(f"{'Registered' if is_new else 'Replaced'} dataset '{dataset.name}' ({dataset.id})")

    def remove(self, dataset_id: str) -> None:
        """Delete a dataset and drop it from the active set. Unknown ids are ignored."""
        with self.lock:
            if self._datasets.pop(dataset_id, None) is None:
                return
            self._active_ids = [active_id for active_id in self._active_ids if active_id != dataset_id]
            logger.debug(f"Removed dataset {dataset_id}")

    def get(self, dataset_id: str) -> Optional[Dataset]:
        with self.lock:
            return self._datasets.get(dataset_id)

    def find_by_name(self, name: str) -> Optional[Dataset]:
        """Return the first dataset registered under a name."""
        with self.lock:
            for dataset in self._datasets.values():
                if dataset.name == name:
                    return dataset
            return None

    def list_datasets(self) -> list[Dataset]:
        """Return all datasets in registration order."""
        with self.lock:
            return list(self._datasets.values())

    def set_active(self, dataset_ids: Iterable[str]) -> None:
        """Replace the active set; ids of unknown datasets are ignored."""
        with self.lock:
            active = []
            for dataset_id in dataset_ids:
                if dataset_id in self._datasets and dataset_id not in active:
                    active.append(dataset_id)
            self._active_ids = active

    def toggle_active(self, dataset_id: str) -> None:
        """Flip a dataset in or out of the active set; unknown ids are ignored."""
        with self.lock:
            if dataset_id not in self._datasets:
                return
            if dataset_id in self._active_ids:
                self._active_ids.remove(dataset_id)
            else:
                self._active_ids.append(dataset_id)

    def active_ids(self) -> list[str]:
        with self.lock:
            return list(self._active_ids)

    def get_active(self) -> list[Dataset]:
        """Return active datasets in registration order."""
        with self.lock:
            active = set(self._active_ids)
            return [dataset for dataset_id, dataset in self._datasets.items() if dataset_id in active]

    def combined_active_rows(self) -> list[Row]:
        """Concatenate the rows of all active datasets."""
        with self.lock:
            return [row for dataset in self.get_active() for row in dataset.rows]

    def replace_all(self, datasets: Iterable[Dataset], keep: Optional[Iterable[str]] = None) -> None:
        """Replace the store contents after a full reload.

        Args:
            datasets: Datasets that make up the new state
            keep: Ids of existing datasets to retain alongside them

        Active ids that still exist stay active; if none do, the first
        dataset becomes active.
        """
        with self.lock:
            kept_ids = set(keep or [])
            new_state = {
                dataset_id: dataset for dataset_id, dataset in self._datasets.items() if dataset_id in kept_ids
            }
            for dataset in datasets:
                new_state[dataset.id] = dataset

            self._datasets = new_state
            self._active_ids = [dataset_id for dataset_id in self._active_ids if dataset_id in new_state]
            if not self._active_ids and new_state:
                self._active_ids = [next(iter(new_state))]

            logger.info(f"Store replaced: {len(new_state)} datasets, {len(self._active_ids)} active")

    def __len__(self) -> int:
        with self.lock:
            return len(self._datasets)

    def __contains__(self, dataset_id: str) -> bool:
        with self.lock:
            return dataset_id in self._datasets
