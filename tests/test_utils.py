"""Tests for shared utilities."""

import logging

import pandas as pd
import pytest

from utils import (
    ColorAssigner,
    FileHelperError,
    PathValidationError,
    detect_dataset_family,
    generate_dataset_id,
    read_file_bytes,
    resolve_log_level,
    safe_write_dataframe,
    slugify,
    validate_path_safe,
)
from utils.colors import BASE_COLORS, DATASET_FAMILY_COLORS


class TestColors:
    def test_families(self):
        assert detect_dataset_family("POS LFOM March") == "pos_lfom"
        assert detect_dataset_family("pos_fom") == "pos_fom"
        assert detect_dataset_family("FOM orders") == "fom"
        assert detect_dataset_family("MDA Claim 2024") == "mda_claim"
        assert detect_dataset_family("inventory") == "stock"
        assert detect_dataset_family("misc") is None

    def test_assigner_is_stable(self):
        colors = ColorAssigner()
        first = colors.color_for("alpha")
        assert colors.color_for("beta") != first
        assert colors.color_for("alpha") == first
        assert first == BASE_COLORS[0]

    def test_family_colors_do_not_consume_palette(self):
        colors = ColorAssigner()
        assert colors.color_for("stock levels") == DATASET_FAMILY_COLORS["stock"]
        assert colors.color_for("alpha") == BASE_COLORS[0]


class TestFileHelpers:
    def test_traversal_rejected(self):
        with pytest.raises(PathValidationError):
            validate_path_safe("../secret.csv")

    def test_base_dir_enforced(self, tmp_path):
        inside = tmp_path / "a.csv"
        assert validate_path_safe(inside, base_dir=tmp_path) == inside.resolve()
        with pytest.raises(PathValidationError):
            validate_path_safe("/etc/passwd", base_dir=tmp_path)

    def test_read_file_bytes(self, write_file, tmp_path):
        assert read_file_bytes(write_file("a.txt", "hello")) == b"hello"
        with pytest.raises(FileHelperError):
            read_file_bytes(tmp_path / "missing.txt")

    def test_safe_write_dataframe(self, tmp_path):
        path = tmp_path / "nested" / "out.csv"
        safe_write_dataframe(pd.DataFrame({"a": [1]}), path)
        assert path.exists()
        with pytest.raises(FileHelperError):
            safe_write_dataframe(pd.DataFrame({"a": [1]}), path)

    def test_slugify(self):
        assert slugify("  Stock   Levels ") == "stock-levels"

    def test_generate_dataset_id(self):
        first = generate_dataset_id("merged")
        assert first.startswith("merged-")
        assert first != generate_dataset_id("merged")


def test_resolve_log_level():
    assert resolve_log_level() == logging.INFO
    assert resolve_log_level(verbose=True) == logging.DEBUG
    assert resolve_log_level(verbose=True, level="warning") == logging.WARNING
    assert resolve_log_level(level=15) == 15
    with pytest.raises(ValueError):
        resolve_log_level(level="chatty")
