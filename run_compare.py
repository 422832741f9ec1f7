#!/usr/bin/env python3
"""Compare the latest query run against the previous run and/or itself.

Reports are written next to the current results.json:
  comparison_historical.txt   --mode historical
  comparison_cross_query.txt  --mode cross-query
  comparison.txt              --mode both

Usage:
  python run_compare.py                              # both, vs previous run
  python run_compare.py --mode historical
  python run_compare.py --mode historical --fallback  # cross-query if no previous run
  python run_compare.py --with data/run_2024-01-01_10-00-00/results.json
"""

import argparse
import sys
from pathlib import Path

from search_testbed.comparison import Comparison, Mode
from search_testbed.config import load_config
from search_testbed.errors import MissingPreviousResultsError, RunNotFoundError, SearchTestbedError
from search_testbed.paths import (
    RUN_PREFIX,
    extract_timestamp,
    find_latest_results,
    find_previous_results,
    list_run_folders,
)
from search_testbed.printer import Printer
from search_testbed.results_io import load_results, write_text

REPORT_FILES = {
    Mode.HISTORICAL: "comparison_historical.txt",
    Mode.CROSS_QUERY: "comparison_cross_query.txt",
    Mode.BOTH: "comparison.txt",
}


def describe_run(results_path: str | Path) -> str:
    """Path of a results file, with its run time when it sits in a run folder."""
    folder = Path(results_path).parent
    if folder.name.startswith(RUN_PREFIX):
        return f"{results_path} (run of {extract_timestamp(folder):%Y-%m-%d %H:%M:%S})"
    return str(results_path)


def print_summary(comparison: Comparison, printer: Printer) -> None:
    mode = comparison.mode
    if mode is not Mode.CROSS_QUERY and comparison.previous:
        summary = comparison.get_summary()
        printer.section("Historical Comparison Summary")
        printer.info(f"New results: {summary.new_results}")
        printer.info(f"Removed results: {summary.removed_results}")
        printer.info(f"Improved rankings: {summary.improved_rankings}")
        printer.info(f"Worsened rankings: {summary.worsened_rankings}")

    if mode is not Mode.HISTORICAL:
        n = len(comparison.current)
        printer.section("Cross-Query Comparison Summary")
        printer.info(f"Total queries analyzed: {n}")
        printer.info(f"Comparison pairs: {n * (n - 1) // 2}")


def compare_run(
    cfg,
    current_path: str | Path,
    mode: Mode,
    previous_path: str | Path | None = None,
    fallback: bool = False,
    printer: Printer | None = None,
) -> Path:
    """Compare ``current_path`` and write the report into its run folder.

    Without ``previous_path`` the newest other run under output.base_dir is
    used. Returns the report path.
    """
    printer = printer or Printer()
    current_path = Path(current_path)
    current = load_results(current_path)

    previous = []
    if mode is not Mode.CROSS_QUERY:
        if previous_path is None:
            try:
                previous_path = find_previous_results(cfg.output.base_dir, current_path)
            except RunNotFoundError:
                printer.warning("No previous results found, skipping historical comparison")
        if previous_path is not None:
            printer.info(f"Comparing with: {describe_run(previous_path)}")
            previous = load_results(previous_path)

        if mode is Mode.HISTORICAL and not previous:
            if not fallback:
                raise MissingPreviousResultsError(
                    "historical comparison requested but no previous results found"
                )
            printer.warning("Falling back to cross-query comparison")
            mode = Mode.CROSS_QUERY

    printer.info(f"Generating {mode.label.lower()} comparison...")
    comparison = Comparison(current, previous, cfg.comparison_options(), mode)
    report = comparison.generate()

    report_path = write_text(current_path.parent / REPORT_FILES[mode], report)
    printer.success(f"{mode.label} comparison saved to: {report_path}")

    print_summary(comparison, printer)
    return report_path


def main():
    parser = argparse.ArgumentParser(description="Compare query results between runs or queries")
    parser.add_argument("--config", type=str, default=None, help="Config file (default: search order)")
    parser.add_argument("--with", dest="with_file", type=str, default=None,
                        help="Previous results file (default: previous run)")
    parser.add_argument("--mode", type=Mode.parse, default=Mode.BOTH,
                        help="Comparison mode: historical, cross-query, or both (default: both)")
    parser.add_argument("--fallback", action="store_true",
                        help="Use cross-query mode when historical has no previous results")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    args = parser.parse_args()

    printer = Printer(args.verbose)

    try:
        cfg = load_config(args.config)
        printer.debug(f"Found {len(list_run_folders(cfg.output.base_dir))} run folders in {cfg.output.base_dir}")
        current_path = find_latest_results(cfg.output.base_dir)
        printer.info(f"Current results: {describe_run(current_path)}")
        compare_run(cfg, current_path, args.mode, args.with_file, args.fallback, printer)
    except (SearchTestbedError, OSError, ValueError) as e:
        printer.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
