"""Run configured queries against an index and rank the hits."""

import json
from datetime import datetime
from itertools import groupby
from pathlib import Path

from search_testbed.errors import ElasticsearchError
from search_testbed.models import QueryConfig, QueryResults, SearchResult, parse_timestamp
from search_testbed.printer import Printer

DEFAULT_SIZE = 20


def load_query_configs(path: str | Path) -> list[QueryConfig]:
    """Load queries.json.

    Two layouts are accepted: a flat list of query objects (each carrying its
    own ``algorithm``) or ``{"algorithms": [{"name", "description",
    "queries": [...]}]}`` where the algorithm name is applied to its queries.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        return [QueryConfig.from_dict(item) for item in data]

    if isinstance(data, dict) and "algorithms" in data:
        configs = []
        for alg in data["algorithms"] or []:
            name = alg.get("name", "")
            for item in alg.get("queries") or []:
                configs.append(QueryConfig.from_dict(item, algorithm=name))
        return configs

    raise ValueError(f"{path}: expected a list of queries or an 'algorithms' object")


def format_date(value: str) -> str:
    """Render an RFC 3339 timestamp as YYYY-MM-DD; anything else passes through."""
    if not value or "T" not in value:
        return value
    try:
        return parse_timestamp(value).strftime("%Y-%m-%d")
    except ValueError:
        return value


def _string_field(source: dict, key: str) -> str:
    value = source.get(key)
    return value if isinstance(value, str) else ""


def execute_query(client, index: str, config: QueryConfig,
                  run_at: datetime | None = None) -> QueryResults:
    body = dict(config.es_query)
    if body.get("size") is None:
        body["size"] = DEFAULT_SIZE

    response = client.search(index, body)

    results = []
    for rank, hit in enumerate(response.get("hits", {}).get("hits", []), 1):
        source = hit.get("_source") or {}
        results.append(SearchResult(
            rank=rank,
            title=_string_field(source, "title"),
            uri=_string_field(source, "uri"),
            date=format_date(_string_field(source, "date")),
            content_type=_string_field(source, "content_type"),
            algorithm=config.algorithm,
            score=float(hit.get("_score") or 0.0),
        ))

    return QueryResults(
        query=config.query,
        algorithm=config.algorithm,
        description=config.description,
        run_at=run_at or datetime.now().astimezone(),
        results=tuple(results),
    )


def average_score(results) -> float:
    results = list(results)
    if not results:
        return 0.0
    return sum(r.score for r in results) / len(results)


def run_queries(client, index: str, configs: list[QueryConfig],
                printer: Printer | None = None) -> list[QueryResults]:
    """Execute every query in order, grouped by algorithm for progress output.

    A failing query is reported and skipped; the rest still run.
    """
    printer = printer or Printer()
    groups = [(name, list(items)) for name, items in groupby(configs, key=lambda c: c.algorithm)]

    all_results = []
    for alg_idx, (name, queries) in enumerate(groups, 1):
        printer.info(f"[Algorithm {alg_idx}/{len(groups)}] {name or '(unnamed)'}")
        if queries[0].description:
            printer.debug(f"  {queries[0].description}")

        for q_idx, config in enumerate(queries, 1):
            printer.info(f"  [Query {q_idx}/{len(queries)}] {config.query}")
            if config.weights:
                printer.debug(f"    Weights: {config.weights}")
            try:
                result = execute_query(client, index, config)
            except ElasticsearchError as e:
                printer.error(f"    Failed: {e}")
                continue

            printer.success(
                f"    {len(result.results)} results "
                f"(avg score: {average_score(result.results):.4f})"
            )
            all_results.append(result)

    return all_results
