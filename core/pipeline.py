"""Dataset pipeline coordinating ingestion, the dataset store, and realtime sync.

This module defines the DatasetPipeline class, the single entry point that
ties file ingestion and validation (Levels 1-2) to the dataset registry,
merging, and aggregation (Level 3) and to the remote row store (Level 4).
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from level1_ingestion.loader import ParseError, load_file, parse_file
from level2_validation.validator import ValidationResult, validate
from level3_datasets.aggregator import DatasetAnalysis, analyze_rows
from level3_datasets.merger import merge
from level3_datasets.models import Dataset, status_from_summary
from level3_datasets.store import DatasetStore
from level4_realtime.channel import EventChannel
from level4_realtime.events import ChangeEvent
from level4_realtime.reconciler import RealtimeFeed, RealtimeReconciler
from level4_realtime.remote import RemoteRowStore, upload_rows
from level4_realtime.sync import DatasetSynchronizer
from settings.schema import DeclaredSchema, PipelineSettings
from utils import ColorAssigner, generate_dataset_id, get_logger

logger = get_logger(__name__)


class PipelineError(Exception):
    """Raised when a pipeline operation needs a component that is not configured."""

    pass


class DatasetPipeline:
    """Coordinates dataset ingestion, registration, merging, and remote sync.

    Args:
        settings: Pipeline settings (defaults when None)
        store: Dataset store to populate (a new one when None)
        remote: Optional remote row store for reload/publish/realtime
        declared_schema: Optional expectations applied to every ingestion
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        store: Optional[DatasetStore] = None,
        remote: Optional[RemoteRowStore] = None,
        declared_schema: Optional[DeclaredSchema] = None,
    ):
        self.settings = settings or PipelineSettings()
        self.store = store if store is not None else DatasetStore()
        self.remote = remote
        self.declared_schema = declared_schema
        self.colors = ColorAssigner()

        self.synchronizer: Optional[DatasetSynchronizer] = None
        if remote is not None:
            self.synchronizer = DatasetSynchronizer(remote, self.store, self.settings, self.colors)

        self.reconciler = RealtimeReconciler(
            self.store,
            identity_column=self.settings.realtime.identity_column,
            resync=self.reload if remote is not None else None,
        )
        self.channel: Optional[EventChannel] = None
        self.feed: Optional[RealtimeFeed] = None

        logger.info("DatasetPipeline initialized")
        logger.debug(f"Remote tables: {self.settings.realtime.tables}")

    def _require_remote(self) -> RemoteRowStore:
        if self.remote is None:
            raise PipelineError("No remote row store configured")
        return self.remote

    # Ingestion

    def ingest(self, file_path: Union[str, Path]) -> ValidationResult:
        """Load, parse, and validate a file.

        Raises:
            ParseError: If the file cannot be read or parsed
            SchemaError: If the declared schema cannot be applied
        """
        rows, size = load_file(file_path)
        result = validate(rows, self.declared_schema, self.settings)
        result.source_file_name = Path(file_path).name
        result.source_size_bytes = size
        return result

    def ingest_bytes(self, raw_bytes: bytes, file_name: str) -> ValidationResult:
        """Parse and validate file content already in memory.

        Raises:
            ParseError: If the content cannot be parsed
            SchemaError: If the declared schema cannot be applied
        """
        rows = parse_file(raw_bytes, file_name)
        result = validate(rows, self.declared_schema, self.settings)
        result.source_file_name = file_name
        result.source_size_bytes = len(raw_bytes)
        return result

    def ingest_many(
        self,
        file_paths: Iterable[Union[str, Path]],
        max_workers: int = 4,
    ) -> tuple[dict[str, ValidationResult], dict[str, str]]:
        """Ingest several files concurrently.

        Returns:
            Tuple of (results by file path, error message by file path)
        """
        results: dict[str, ValidationResult] = {}
        failures: dict[str, str] = {}

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(self.ingest, path): str(path) for path in file_paths}
            for future in as_completed(futures):
                path = futures[future]
                try:
                    results[path] = future.result()
                except ParseError as e:
                    logger.error(f"✗ Failed to ingest {path}: {e}")
                    failures[path] = str(e)

        logger.info(f"Ingested {len(results)} files, {len(failures)} failed")
        return results, failures

    def commit(self, result: ValidationResult, name: Optional[str] = None) -> Dataset:
        """Register a validation result's valid rows as a new dataset.

        Args:
            result: Result from ingest or ingest_bytes
            name: Dataset name; defaults to the source file name without extension
        """
        name = name or Path(result.source_file_name or "dataset").stem
        dataset = Dataset(
            id=generate_dataset_id(),
            name=name,
            rows=list(result.valid_rows),
            source_file_name=result.source_file_name or "",
            source_size_bytes=result.source_size_bytes,
            status=status_from_summary(result.summary.type),
            validation_summary=result.summary.message,
            color_tag=self.colors.color_for(name),
            inferred_type=result.inferred_type,
            known_columns=list(result.detected_columns) if result.valid_rows else [],
            preview_size=self.settings.datasets.preview_size,
        )
        self.store.register(dataset)
        logger.info(f"✓ Committed dataset '{name}' ({dataset.row_count} rows, status={dataset.status})")
        return dataset

    # Datasets

    def merge(self, id_a: str, id_b: str, join_key: str, join_type: str = "inner") -> Optional[Dataset]:
        """Merge two registered datasets and register the result.

        Returns:
            The merged dataset, or None if either id is unknown

        Raises:
            MergeError: If the key or join type is invalid
        """
        a = self.store.get(id_a)
        b = self.store.get(id_b)
        if a is None or b is None:
            missing = id_a if a is None else id_b
            logger.warning(f"Cannot merge: unknown dataset {missing}")
            return None

        merged = merge(a, b, join_key, join_type, self.settings)
        self.store.register(merged)
        return merged

    def get_datasets(self) -> list[Dataset]:
        return self.store.list_datasets()

    def analyze(self, dataset_id: str) -> Optional[DatasetAnalysis]:
        """Aggregate one registered dataset.

        Returns:
            The analysis, or None if the id is unknown
        """
        dataset = self.store.get(dataset_id)
        if dataset is None:
            logger.warning(f"Cannot analyze: unknown dataset {dataset_id}")
            return None
        return analyze_rows(dataset.rows, self.settings)

    def analyze_active(self) -> DatasetAnalysis:
        """Aggregate the combined rows of every active dataset."""
        return analyze_rows(self.store.combined_active_rows(), self.settings)

    # Remote sync

    def reload(self) -> list[str]:
        """Rebuild remote-backed datasets from a full fetch.

        Returns:
            One error message per table that could not be fetched

        Raises:
            PipelineError: If no remote row store is configured
        """
        self._require_remote()
        return self.synchronizer.reload()

    def publish(self, dataset_id: str, table: str) -> int:
        """Upload a dataset's rows into a remote table.

        Returns:
            Number of rows inserted

        Raises:
            PipelineError: If the dataset is unknown or no remote is configured
            RemoteStoreError: If an upload batch fails
        """
        remote = self._require_remote()
        dataset = self.store.get(dataset_id)
        if dataset is None:
            raise PipelineError(f"Unknown dataset: {dataset_id}")

        inserted = upload_rows(remote, table, dataset.rows, self.settings.realtime.upload_batch_size)
        return len(inserted)

    def apply_change(self, event: Union[ChangeEvent, Mapping[str, Any]]) -> None:
        """Apply one remote change event to the store. Never raises."""
        self.reconciler.apply(event)

    def start_realtime(self) -> EventChannel:
        """Subscribe to the configured tables; events queue until drained.

        Raises:
            PipelineError: If no remote row store is configured
        """
        remote = self._require_remote()
        if self.feed is not None and self.feed.running:
            return self.channel

        self.channel = EventChannel(maxsize=self.settings.realtime.queue_size)
        self.feed = RealtimeFeed(remote, self.settings.realtime.tables, self.channel)
        self.feed.start()
        return self.channel

    def drain_events(self) -> int:
        """Apply every queued change event.

        Returns:
            Number of events applied
        """
        if self.channel is None:
            return 0
        return self.reconciler.drain_pending(self.channel)

    def stop_realtime(self) -> int:
        """Unsubscribe, close the channel, and apply the events still queued.

        Returns:
            Number of events applied while stopping
        """
        if self.feed is None:
            return 0
        self.feed.stop()
        applied = self.reconciler.drain(self.channel)
        self.feed = None
        self.channel = None
        return applied
