#!/usr/bin/env python3
"""Load a stored index into Elasticsearch, run the configured queries, save a run.

Pipeline: index.json → scratch index → queries.json → results/ run folder

Each invocation writes a new run folder containing results.json,
results.csv, metadata.txt and a copy of the index that was searched.

Usage:
  python run_query.py                                   # latest index, config/queries.json
  python run_query.py --index data/run_2024-01-01_10-00-00/index.json
  python run_query.py --queries config/queries.json --compare
  python run_query.py --load-results old/results.json   # skip Elasticsearch
"""

import argparse
import sys

from run_compare import compare_run
from search_testbed.comparison import Mode
from search_testbed.config import DEFAULT_QUERIES_FILE, load_config
from search_testbed.errors import EmptyResultsError, SearchTestbedError, is_connection_error
from search_testbed.es_client import ElasticsearchClient
from search_testbed.experiment_context import collect_run_context
from search_testbed.paths import RESULTS_FILE, create_run_folder, find_latest_index
from search_testbed.printer import Printer
from search_testbed.query_runner import load_query_configs, run_queries
from search_testbed.results_io import load_index, load_results, write_all


def query_index(cfg, index_file: str, queries_file: str, printer: Printer):
    """Returns (results, stored_index)."""
    index_path = index_file or find_latest_index(cfg.output.base_dir)
    stored = load_index(index_path)
    printer.info(f"Loaded index: {len(stored.documents)} documents from {stored.source_index}")
    printer.debug(f"Index version: {stored.version}")
    printer.debug(f"Index file: {index_path}")
    printer.debug(f"Generated at: {stored.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")

    configs = load_query_configs(queries_file)
    printer.info(f"Loaded {len(configs)} queries from {queries_file}")

    client = ElasticsearchClient(cfg.elasticsearch.url, cfg.elasticsearch.timeout)
    client.ping()

    target = cfg.elasticsearch.index
    printer.debug(f"Loading index into Elasticsearch: {target}")
    client.load_stored_index(target, stored)
    printer.success(f"Index loaded into Elasticsearch: {target}")
    print()

    print(f"Running {len(configs)} queries...")
    results = run_queries(client, target, configs, printer)
    print()
    return results, stored


def main():
    parser = argparse.ArgumentParser(description="Run queries against a stored index")
    parser.add_argument("--config", type=str, default=None, help="Config file (default: search order)")
    parser.add_argument("-i", "--index", type=str, default="", help="Stored index file (default: latest)")
    parser.add_argument("-q", "--queries", type=str, default=str(DEFAULT_QUERIES_FILE),
                        help=f"Query configuration file (default: {DEFAULT_QUERIES_FILE})")
    parser.add_argument("--load-results", type=str, default="",
                        help="Load results from file instead of running queries")
    parser.add_argument("-c", "--compare", action="store_true", help="Compare with the previous run afterwards")
    parser.add_argument("--compare-mode", type=Mode.parse, default=Mode.BOTH,
                        help="Comparison mode for --compare (default: both)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    args = parser.parse_args()

    printer = Printer(args.verbose)

    try:
        cfg = load_config(args.config)
        context = collect_run_context()

        stored = None
        if args.load_results:
            printer.debug(f"Loading results from {args.load_results}")
            results = load_results(args.load_results)
            printer.success(f"Loaded {len(results)} query results from {args.load_results}")
        else:
            results, stored = query_index(cfg, args.index, args.queries, printer)

        if not results:
            raise EmptyResultsError("no query produced results, nothing to save")

        run_folder = create_run_folder(cfg.output.base_dir)
        write_all(run_folder, results, stored, context)
        printer.success(f"Results saved to {run_folder}")

        if args.compare:
            print()
            compare_run(cfg, run_folder / RESULTS_FILE, args.compare_mode, fallback=True, printer=printer)
    except (SearchTestbedError, OSError, ValueError) as e:
        printer.error(str(e))
        if is_connection_error(e):
            printer.info(f"Is Elasticsearch running at {cfg.elasticsearch.url}?")
        sys.exit(1)


if __name__ == "__main__":
    main()
