#!/usr/bin/env python3
"""Freeze a test index into a new run folder.

Writes <base_dir>/run_YYYY-MM-DD_HH-MM-SS/index.json and metadata.txt so
later query runs always search the same documents.

Usage:
  python run_generate.py                  # from test_data (random or file)
  python run_generate.py --from-es        # fetch from generation.source_index
  python run_generate.py --from-es --source-index production_index --count 200
"""

import argparse
import sys

from search_testbed.config import load_config
from search_testbed.corpus import build_stored_index, configured_documents
from search_testbed.errors import ConfigError, SearchTestbedError, is_connection_error, is_query_error
from search_testbed.es_client import ElasticsearchClient
from search_testbed.paths import create_run_folder
from search_testbed.printer import Printer
from search_testbed.results_io import save_index


def documents_from_es(cfg, source_index: str, count: int, printer: Printer):
    client = ElasticsearchClient(cfg.elasticsearch.url, cfg.elasticsearch.timeout)
    print("Testing Elasticsearch connection...")
    client.ping()
    printer.success(f"Connected to Elasticsearch at {cfg.elasticsearch.url}")

    printer.debug(f"Source index: {source_index}")
    printer.debug(f"Fetching {count} documents...")
    docs = client.fetch_documents(source_index, count)
    printer.debug(f"Retrieved {len(docs)} documents")
    return docs


def documents_from_test_data(cfg, printer: Printer):
    td = cfg.test_data
    if td.description:
        printer.debug(f"Test data: {td.description}")
    if td.mode == "file":
        if not td.source_file:
            raise ConfigError("test_data.mode is 'file' but no source_file is set")
        printer.info(f"Loading documents from {td.source_file}")
        return configured_documents(td.source_file), f"file:{td.source_file}"

    printer.info(f"Generating {td.document_count} documents (seed {td.seed})")
    return configured_documents("", td.seed, td.document_count), f"generated:seed={td.seed}"


def main():
    parser = argparse.ArgumentParser(description="Generate and store a test index")
    parser.add_argument("--config", type=str, default=None, help="Config file (default: search order)")
    parser.add_argument("--from-es", action="store_true", help="Fetch documents from Elasticsearch")
    parser.add_argument("--source-index", type=str, default="", help="Index to fetch from (with --from-es)")
    parser.add_argument("--count", type=int, default=0, help="Documents to fetch (0 = generation.document_count)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    args = parser.parse_args()

    printer = Printer(args.verbose)

    try:
        cfg = load_config(args.config)
        printer.debug(f"Configuration: {cfg.path or 'defaults'}")
        printer.debug(f"Elasticsearch URL: {cfg.elasticsearch.url}")

        if args.from_es:
            source_index = args.source_index or cfg.source_index
            count = args.count or cfg.generation.document_count
            docs = documents_from_es(cfg, source_index, count, printer)
        else:
            docs, source_index = documents_from_test_data(cfg, printer)

        stored = build_stored_index(docs, source_index)
        run_folder = create_run_folder(cfg.output.base_dir)
        index_path = save_index(stored, run_folder)
    except (SearchTestbedError, OSError, ValueError) as e:
        printer.error(str(e))
        if is_connection_error(e):
            printer.info(f"Is Elasticsearch running at {cfg.elasticsearch.url}?")
        elif is_query_error(e) and args.from_es:
            printer.info("Check that the source index exists (--source-index or generation.source_index)")
        sys.exit(1)

    print()
    printer.success(f"Stored {len(stored.documents)} documents to {index_path}")
    print(f"   Source: {stored.source_index}")
    print(f"   Version: {stored.version}")
    print(f"   Generated at: {stored.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"   Run folder: {run_folder}")


if __name__ == "__main__":
    main()
