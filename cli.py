"""Command-line interface for DatasetSync.

This module provides the CLI entry point for the DatasetSync tool.
It handles argument parsing, settings loading, and pipeline execution.
"""

import argparse
import sys
from pathlib import Path

from core.pipeline import DatasetPipeline
from level1_ingestion.loader import ParseError
from level2_validation.validator import SchemaError, SummaryType, ValidationResult
from level3_datasets.aggregator import DatasetAnalysis
from level3_datasets.exporter import ExportError, export_dataset
from level3_datasets.merger import JOIN_TYPES, MergeError
from settings import SettingsError, load_declared_schema, load_settings
from utils import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_LOG_LEVEL,
    EXIT_INVALID_INPUT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_FAILED,
    SUPPORTED_DATASET_FORMATS,
    get_file_extension,
    get_logger,
    setup_logging,
)

logger = get_logger(__name__)

DATA_FILE_HELP = f"Data file ({', '.join(SUPPORTED_DATASET_FORMATS)}; other extensions are sniffed)"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML or JSON settings file",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help=f"Log level (default: {DEFAULT_LOG_LEVEL}, DEBUG with --verbose)",
    )

    parser = argparse.ArgumentParser(
        description=f"{APP_NAME} - tabular data ingestion, validation and merging",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")

    subparsers = parser.add_subparsers(
        dest="command", help="Command to execute", required=True
    )

    # 'ingest' command
    ingest_parser = subparsers.add_parser(
        "ingest", parents=[common], help="Load and validate a data file"
    )
    ingest_parser.add_argument("file", type=str, help=DATA_FILE_HELP)
    ingest_parser.add_argument(
        "--schema",
        type=str,
        default=None,
        help="Path to a declared schema (required/numeric/date columns)",
    )

    # 'profile' command
    profile_parser = subparsers.add_parser(
        "profile", parents=[common], help="Show inferred column kinds and aggregates"
    )
    profile_parser.add_argument("file", type=str, help=DATA_FILE_HELP)

    # 'merge' command
    merge_parser = subparsers.add_parser(
        "merge", parents=[common], help="Join two data files on a key column"
    )
    merge_parser.add_argument("file_a", type=str, help="First (left) data file")
    merge_parser.add_argument("file_b", type=str, help="Second (right) data file")
    merge_parser.add_argument("--key", required=True, help="Join key column")
    merge_parser.add_argument(
        "--how",
        choices=JOIN_TYPES,
        default="inner",
        help="Join type (default: inner)",
    )
    merge_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Export the merged dataset to this .csv or .json file",
    )

    return parser.parse_args(argv)


def print_result(result: ValidationResult, max_issues: int) -> None:
    """Print a validation summary and the first issues."""
    marker = "✓" if result.summary.type == SummaryType.SUCCESS else "✗"
    print(f"{marker} {result.source_file_name}: {result.summary.message}")
    print(f"  Rows: {result.valid_row_count}/{result.total_rows} valid")
    print(f"  Columns: {', '.join(result.detected_columns)}")
    print(f"  Inferred type: {result.inferred_type}")
    if result.missing_columns:
        print(f"  Missing required columns: {', '.join(result.missing_columns)}")

    issues = result.top_issues(max_issues)
    if issues:
        print(f"  Issues ({result.error_count} errors, {result.warning_count} warnings):")
        for issue in issues:
            print(f"    [{issue.severity}] row {issue.row_index}, {issue.column}: {issue.message}")
        remaining = len(result.errors) - len(issues)
        if remaining > 0:
            print(f"    ... and {remaining} more")


def print_analysis(analysis: DatasetAnalysis) -> None:
    """Print KPIs, top categories, and the time series of an analysis."""
    kpis = analysis.kpis
    print(f"  Primary category column: {kpis.primary_category_column or '-'}")
    print(f"  Primary value column: {kpis.primary_value_column or '-'}")
    print(
        f"  Records: {kpis.total_records}, total value: {kpis.total_value:.2f}, "
        f"average: {kpis.average_value:.2f}, categories: {kpis.unique_categories}"
    )
    if analysis.date_range:
        print(f"  Date range: {analysis.date_range[0]} to {analysis.date_range[1]}")
    if analysis.categories:
        print("  Top categories:")
        for category in analysis.categories:
            print(f"    {category.name}: {category.total:.2f} ({category.count} rows)")
    if analysis.time_series:
        print(f"  Time series ({analysis.time_grouping}):")
        for point in analysis.time_series:
            print(f"    {point.period}: {point.value:.2f} ({point.count} rows)")


def run_ingest(pipeline: DatasetPipeline, args: argparse.Namespace) -> int:
    result = pipeline.ingest(args.file)
    print_result(result, pipeline.settings.validation.max_reported_issues)
    if result.summary.type == SummaryType.ERROR:
        return EXIT_VALIDATION_FAILED
    return EXIT_SUCCESS


def run_profile(pipeline: DatasetPipeline, args: argparse.Namespace) -> int:
    result = pipeline.ingest(args.file)
    profiles = result.column_profiles

    print(f"✓ {result.source_file_name}: {result.total_rows} rows, type={result.inferred_type}")
    for profile in profiles:
        print(
            f"  {profile.name}: {profile.kind} "
            f"({profile.non_empty_count} values, {profile.unique_count} unique)"
        )
    analysis = pipeline.analyze(pipeline.commit(result).id)
    print_analysis(analysis)
    return EXIT_SUCCESS


def run_merge(pipeline: DatasetPipeline, args: argparse.Namespace) -> int:
    results, failures = pipeline.ingest_many([args.file_a, args.file_b], max_workers=2)
    for path, message in failures.items():
        print(f"✗ Failed to load {path}: {message}", file=sys.stderr)
    if failures:
        return EXIT_INVALID_INPUT

    dataset_a = pipeline.commit(results[args.file_a])
    dataset_b = pipeline.commit(results[args.file_b])
    merged = pipeline.merge(dataset_a.id, dataset_b.id, args.key, args.how)

    summary = merged.to_summary()
    print(f"✓ {summary['name']}")
    print(f"  {summary['validation_summary']}")
    print(f"  Columns: {', '.join(summary['detected_columns'])}")
    print(f"  Status: {summary['status']}, rows: {summary['row_count']}, id: {summary['id']}")
    for row in merged.preview_rows:
        print(f"    {row}")

    if args.output:
        output_path = Path(args.output)
        export_format = get_file_extension(output_path) or "csv"
        export_dataset(merged, output_path, format=export_format, overwrite=True)
        print(f"✓ Merged dataset written to {output_path}")

    return EXIT_SUCCESS


COMMANDS = {
    "ingest": run_ingest,
    "profile": run_profile,
    "merge": run_merge,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_args(argv)

    # Setup logging
    setup_logging(verbose=args.verbose, level=args.log_level)

    try:
        settings = load_settings(args.config)
        declared_schema = load_declared_schema(args.schema) if getattr(args, "schema", None) else None
        pipeline = DatasetPipeline(settings=settings, declared_schema=declared_schema)
        return COMMANDS[args.command](pipeline, args)

    except SettingsError as e:
        print(f"✗ Invalid configuration:\n{e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except (ParseError, SchemaError, MergeError, ExportError) as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except KeyboardInterrupt:
        print("\n✗ Interrupted by user", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        print(f"✗ Runtime error: {e}", file=sys.stderr)
        logger.exception("Unexpected error during command execution")
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
