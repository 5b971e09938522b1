"""Level 1: File Ingestion.

This module handles parsing raw files (delimited text, spreadsheets,
JSON) into rows keyed by their header values.
"""

from .loader import ParseError, Row, load_file, parse_file, select_format, sniff_format

__all__ = [
    "parse_file",
    "load_file",
    "select_format",
    "sniff_format",
    "ParseError",
    "Row",
]
