import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from search_testbed.errors import ElasticsearchError
from search_testbed.models import QueryConfig, SearchResult
from search_testbed.printer import Printer
from search_testbed.query_runner import (
    average_score,
    execute_query,
    format_date,
    load_query_configs,
    run_queries,
)


def hits(*sources):
    return {"hits": {"hits": [
        {"_id": str(i), "_score": score, "_source": source}
        for i, (source, score) in enumerate(sources, 1)
    ]}}


@pytest.fixture
def config():
    return QueryConfig(
        query="python tutorial",
        algorithm="baseline",
        description="Python tutorials",
        es_query={"query": {"match": {"title": "python"}}},
    )


class TestLoadQueryConfigs:

    def test_flat_list(self, tmp_path):
        path = tmp_path / "queries.json"
        path.write_text(json.dumps([
            {"query": "q1", "algorithm": "a", "es_query": {"query": {"match_all": {}}}},
            {"query": "q2", "algorithm": "b", "weights": {"title": 2.0}, "es_query": {}},
        ]))

        configs = load_query_configs(path)

        assert [(c.query, c.algorithm) for c in configs] == [("q1", "a"), ("q2", "b")]
        assert configs[1].weights == {"title": 2.0}

    def test_grouped_by_algorithm(self, tmp_path):
        path = tmp_path / "queries.json"
        path.write_text(json.dumps({"algorithms": [
            {"name": "bm25", "description": "plain", "queries": [
                {"query": "q1", "es_query": {}},
                {"query": "q2", "es_query": {}},
            ]},
            {"name": "boost", "queries": [{"query": "q1", "es_query": {}}]},
        ]}))

        configs = load_query_configs(path)

        assert [(c.query, c.algorithm) for c in configs] == [
            ("q1", "bm25"), ("q2", "bm25"), ("q1", "boost"),
        ]

    def test_shipped_example_parses(self):
        configs = load_query_configs(Path(__file__).parent.parent / "config" / "queries.json")
        assert len(configs) == 4
        assert {c.algorithm for c in configs} == {"baseline", "title_boost"}

    def test_rejects_other_shapes(self, tmp_path):
        path = tmp_path / "queries.json"
        path.write_text('{"queries": []}')
        with pytest.raises(ValueError):
            load_query_configs(path)


class TestFormatDate:

    @pytest.mark.parametrize("value,expected", [
        ("2024-01-15T00:00:00Z", "2024-01-15"),
        ("2024-01-15T23:59:59+02:00", "2024-01-15"),
        ("", ""),
        ("invalid", "invalid"),
        ("2024-13-45T00:00:00Z", "2024-13-45T00:00:00Z"),
    ])
    def test_format_date(self, value, expected):
        assert format_date(value) == expected


class TestExecuteQuery:

    def test_ranks_hits_in_response_order(self, config, run_at):
        client = MagicMock()
        client.search.return_value = hits(
            ({"title": "B", "uri": "/b", "date": "2024-01-02T10:00:00Z", "content_type": "article"}, 3.5),
            ({"title": "A", "uri": "/a"}, None),
        )

        qr = execute_query(client, "scratch", config, run_at=run_at)

        assert qr.query == "python tutorial"
        assert qr.algorithm == "baseline"
        assert qr.description == "Python tutorials"
        assert qr.run_at == run_at
        assert qr.results == (
            SearchResult(1, "B", "/b", "2024-01-02", "article", "baseline", 3.5),
            SearchResult(2, "A", "/a", "", "", "baseline", 0.0),
        )

    def test_default_size_added_without_mutating_config(self, config):
        client = MagicMock()
        client.search.return_value = hits()

        execute_query(client, "scratch", config)

        client.search.assert_called_once_with(
            "scratch", {"query": {"match": {"title": "python"}}, "size": 20},
        )
        assert "size" not in config.es_query

    def test_explicit_size_kept(self):
        client = MagicMock()
        client.search.return_value = hits()
        cfg = QueryConfig(query="q", algorithm="a", es_query={"size": 5})

        execute_query(client, "scratch", cfg)

        client.search.assert_called_once_with("scratch", {"size": 5})


class TestAverageScore:

    @pytest.mark.parametrize("scores,expected", [
        ([], 0.0),
        ([10.5], 10.5),
        ([10.0, 20.0, 30.0], 20.0),
    ])
    def test_average(self, scores, expected):
        results = [SearchResult(rank=i, title="", uri=f"/{i}", score=s) for i, s in enumerate(scores, 1)]
        assert average_score(results) == expected


class TestRunQueries:

    def test_failed_query_is_skipped(self, capsys):
        configs = [
            QueryConfig(query="ok", algorithm="bm25"),
            QueryConfig(query="broken", algorithm="bm25"),
            QueryConfig(query="ok", algorithm="boost"),
        ]
        client = MagicMock()
        client.search.side_effect = [
            hits(({"title": "A", "uri": "/a"}, 2.0)),
            ElasticsearchError(ElasticsearchError.QUERY, "search error"),
            hits(),
        ]

        results = run_queries(client, "scratch", configs, Printer())

        assert [(r.query, r.algorithm) for r in results] == [("ok", "bm25"), ("ok", "boost")]
        captured = capsys.readouterr()
        assert "[Algorithm 1/2] bm25" in captured.out
        assert "[Algorithm 2/2] boost" in captured.out
        assert "[Query 2/2] broken" in captured.out
        assert "1 results (avg score: 2.0000)" in captured.out
        assert "Failed: search error" in captured.err

    def test_weights_shown_when_verbose(self, capsys):
        configs = [QueryConfig(query="q", algorithm="boost", weights={"title": 2.0})]
        client = MagicMock()
        client.search.return_value = hits()

        run_queries(client, "scratch", configs, Printer(verbose=True))
        run_queries(client, "scratch", configs, Printer())

        out = capsys.readouterr().out
        assert out.count("Weights: {'title': 2.0}") == 1
