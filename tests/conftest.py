"""Shared fixtures for DatasetSync tests."""

import pytest

from level3_datasets.models import Dataset
from level3_datasets.store import DatasetStore
from level4_realtime.remote import InMemoryRowStore
from level4_realtime.sync import dataset_from_remote
from settings.schema import PipelineSettings

SALES_CSV = (
    "Product Name,Quantity,Price,Order Date\n"
    "Widget,10,2.50,01/02/2024\n"
    "Gadget,3,\"1,200.00\",15-03-2024\n"
    "Gizmo,7,9.99,2024-04-30\n"
)


@pytest.fixture
def sales_csv(tmp_path):
    path = tmp_path / "sales.csv"
    path.write_text(SALES_CSV, encoding="utf-8")
    return path


@pytest.fixture
def write_file(tmp_path):
    """Write text into a file under tmp_path and return its path."""

    def _write(name: str, content: str):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def store():
    return DatasetStore()


@pytest.fixture
def remote():
    return InMemoryRowStore()


@pytest.fixture
def orders_store(store):
    """Store holding one remote-backed dataset for table 'orders'."""
    store.register(dataset_from_remote("orders", [{"id": 1, "v": "a"}, {"id": 2, "v": "b"}]))
    return store


@pytest.fixture
def settings_with_tables():
    def _settings(*tables: str) -> PipelineSettings:
        return PipelineSettings(realtime={"tables": list(tables)})

    return _settings


@pytest.fixture
def make_dataset():
    """Build a local dataset from rows."""

    def _make(dataset_id: str, name: str, rows: list[dict]) -> Dataset:
        return Dataset(id=dataset_id, name=name, rows=rows, known_columns=list(rows[0]) if rows else [])

    return _make
