#!/usr/bin/env python3
"""Debug why two queries return different results.

Usage:
  python run_debug.py --results data/run_2024-01-01_10-00-00/results.json
  python run_debug.py --q1 '{"query": {"match": {"title": "go"}}}' \\
                      --q2 '{"query": {"match": {"body": "go"}}}'
"""

import argparse
import json
import sys

from search_testbed.config import load_config
from search_testbed.debug import hit_overlap, pairwise_overview, top_hits
from search_testbed.errors import (
    ElasticsearchError,
    SearchTestbedError,
    is_connection_error,
    is_index_error,
    is_query_error,
)
from search_testbed.es_client import ElasticsearchClient
from search_testbed.printer import Printer
from search_testbed.results_io import load_results


def parse_query(text: str, label: str) -> dict:
    try:
        query = json.loads(text)
    except json.JSONDecodeError as e:
        raise SearchTestbedError(f"invalid {label}", original_error=e) from e
    if not isinstance(query, dict):
        raise SearchTestbedError(f"invalid {label}: expected a JSON object")
    return query


def debug_queries(cfg, q1_text: str, q2_text: str, printer: Printer) -> None:
    client = ElasticsearchClient(cfg.elasticsearch.url, cfg.elasticsearch.timeout)
    index = cfg.elasticsearch.index
    if not client.index_exists(index):
        raise ElasticsearchError(ElasticsearchError.INDEX, f"index '{index}' does not exist")

    printer.info(f"Debugging queries against index: {index}")

    all_hits = []
    for n, text in enumerate((q1_text, q2_text), 1):
        printer.section(f"Query {n} Analysis")
        response = client.search(index, parse_query(text, f"query {n}"))
        hits = response.get("hits", {}).get("hits", [])
        printer.info(f"Query {n} returned {len(hits)} results")
        if hits:
            printer.info("Top 5 results:")
            for line in top_hits(hits):
                printer.info(f"  {line}")
        else:
            printer.info("No results")
        all_hits.append(hits)

    printer.section("Comparison Analysis")
    overlap = hit_overlap(*all_hits)
    printer.info(f"Common Results: {overlap.common}")
    printer.info(f"Only in Q1: {overlap.only_in_1}")
    printer.info(f"Only in Q2: {overlap.only_in_2}")
    if overlap.total_1:
        printer.info(f"Overlap: {overlap.overlap_percent}")
    if overlap.common == 0:
        printer.warning("No common results - queries are completely different")


def debug_results(path: str, printer: Printer) -> None:
    printer.section("Cross-Query Comparison Debug")
    printer.info(f"Loading results from: {path}")
    results = load_results(path)
    printer.info(f"Loaded {len(results)} query results")
    for qr in results:
        printer.info(f"Found: {qr.query} ({qr.algorithm}) - {len(qr.results)} results")

    printer.section("Pair-wise Comparison")
    for pair in pairwise_overview(results):
        printer.info(f"Pair {pair.number}:")
        printer.info(f"  Q1: {pair.q1.query} ({pair.q1.algorithm})")
        printer.info(f"  Q2: {pair.q2.query} ({pair.q2.algorithm})")
        if pair.q1.results:
            printer.debug(f"    Q1 sample URIs: {', '.join(pair.q1_samples)}")
        if pair.q2.results:
            printer.debug(f"    Q2 sample URIs: {', '.join(pair.q2_samples)}")

        s = pair.stats
        printer.info(
            f"  Common: {s.common_results} | Only Q1: {s.only_in_query1} | "
            f"Only Q2: {s.only_in_query2} | Ranking diffs: {s.ranking_diff_count}"
        )
        if s.common_results == 0:
            printer.warning("    No overlap!")


def main():
    parser = argparse.ArgumentParser(description="Debug query comparison issues")
    parser.add_argument("--config", type=str, default=None, help="Config file (default: search order)")
    parser.add_argument("--q1", type=str, default="", help="First query (JSON)")
    parser.add_argument("--q2", type=str, default="", help="Second query (JSON)")
    parser.add_argument("--results", type=str, default="", help="Debug a results file instead")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    args = parser.parse_args()

    printer = Printer(args.verbose)

    try:
        cfg = load_config(args.config)
        if args.results:
            debug_results(args.results, printer)
        elif args.q1 and args.q2:
            debug_queries(cfg, args.q1, args.q2, printer)
        else:
            parser.error("either provide --q1 and --q2, or --results")
    except (SearchTestbedError, OSError, ValueError) as e:
        printer.error(str(e))
        if is_connection_error(e):
            printer.info(f"Is Elasticsearch running at {cfg.elasticsearch.url}?")
        elif is_index_error(e):
            printer.info("Seed it with run_seed.py or load a stored index with run_query.py")
        elif is_query_error(e):
            printer.info("Check that --q1 and --q2 are valid Elasticsearch request bodies")
        sys.exit(1)


if __name__ == "__main__":
    main()
