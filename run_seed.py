#!/usr/bin/env python3
"""Seed an Elasticsearch index with test documents.

Documents come from test_data.source_file when set, otherwise they are
generated from test_data.seed so every seeding produces the same corpus.

Usage:
  python run_seed.py                                # index from config
  python run_seed.py --index production_index
  python run_seed.py --seed 7 --count 100
  python run_seed.py --source-file data/sample_documents.json
"""

import argparse
import sys

from search_testbed.config import load_config
from search_testbed.corpus import configured_documents
from search_testbed.errors import SearchTestbedError, is_connection_error
from search_testbed.es_client import DEFAULT_MAPPING, ElasticsearchClient
from search_testbed.printer import Printer


def seed(cfg, index: str, printer: Printer) -> int:
    """Recreate ``index`` with the configured documents. Returns the indexed count."""
    client = ElasticsearchClient(cfg.elasticsearch.url, cfg.elasticsearch.timeout)

    print("Checking Elasticsearch connection...")
    client.ping()
    printer.success(f"Connected to Elasticsearch at {cfg.elasticsearch.url}")

    if client.index_exists(index):
        printer.info(f"Index exists, deleting '{index}'...")
        client.delete_index(index)
        printer.success("Old index deleted")
    else:
        printer.info("Index does not exist, will create new one")

    print(f"Creating index: {index}")
    client.create_index(index, DEFAULT_MAPPING)
    printer.success("Index created")

    td = cfg.test_data
    if td.description:
        printer.debug(f"Test data: {td.description}")
    source_file = td.source_file
    documents = configured_documents(source_file, td.seed, td.document_count)
    if source_file:
        printer.info(f"Loaded {len(documents)} documents from {source_file}")
    else:
        printer.info(f"Generated {len(documents)} documents (seed {td.seed})")

    print("Indexing documents...")
    client.bulk_index(index, documents)

    print("Refreshing index...")
    client.refresh_index(index)
    printer.success("Index refreshed")

    print("Verifying document count...")
    count = client.count_documents(index)
    printer.success(f"Total documents indexed: {count}")
    if count == len(documents):
        printer.success(f"All {len(documents)} documents successfully indexed")
    else:
        printer.warning(f"Expected {len(documents)} documents, but got {count}")
    return count


def main():
    parser = argparse.ArgumentParser(description="Seed Elasticsearch with sample test data")
    parser.add_argument("--config", type=str, default=None, help="Config file (default: search order)")
    parser.add_argument("--index", type=str, default="", help="Index to create (default: generation.source_index)")
    parser.add_argument("--es-url", type=str, default="", help="Elasticsearch URL (overrides config)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for generated documents")
    parser.add_argument("--count", type=int, default=0, help="Number of documents to generate (0 = config)")
    parser.add_argument("--source-file", type=str, default="", help="Load documents from a JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    args = parser.parse_args()

    printer = Printer(args.verbose)

    try:
        cfg = load_config(args.config)
        if args.es_url:
            cfg.elasticsearch.url = args.es_url
        if args.seed is not None:
            cfg.test_data.seed = args.seed
        if args.count > 0:
            cfg.test_data.document_count = args.count
        if args.source_file:
            cfg.test_data.source_file = args.source_file
        index = args.index or cfg.source_index

        printer.debug(f"Elasticsearch URL: {cfg.elasticsearch.url}")
        printer.debug(f"Index Name: {index}")

        seed(cfg, index, printer)
    except (SearchTestbedError, OSError, ValueError) as e:
        printer.error(str(e))
        if is_connection_error(e):
            printer.info(f"Is Elasticsearch running at {cfg.elasticsearch.url}?")
        sys.exit(1)

    printer.celebrate("Sample data seeding complete!")


if __name__ == "__main__":
    main()
