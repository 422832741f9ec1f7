import json
import sys
from unittest.mock import MagicMock, patch

import pytest

import run_compare
import run_debug
import run_generate
import run_query
import run_seed
from run_compare import compare_run, describe_run
from search_testbed.comparison import Mode
from search_testbed.config import Config
from search_testbed.errors import ConfigError, ElasticsearchError, MissingPreviousResultsError
from search_testbed.es_client import DEFAULT_MAPPING
from search_testbed.printer import Printer
from search_testbed.results_io import save_results


@pytest.fixture
def cfg(tmp_path):
    cfg = Config()
    cfg.output.base_dir = str(tmp_path)
    return cfg


def make_run(base, stamp, results):
    folder = base / f"run_{stamp}"
    folder.mkdir()
    return save_results(results, folder / "results.json")


class TestCompareRun:

    def test_both_against_previous_run(self, tmp_path, cfg, sample_run, make_query, capsys):
        make_run(tmp_path, "2024-01-01_10-00-00", [make_query([("/z", 1)])] * 3)
        current = make_run(tmp_path, "2024-01-02_10-00-00", sample_run)

        report = compare_run(cfg, current, Mode.BOTH, printer=Printer())

        assert report == current.parent / "comparison.txt"
        text = report.read_text(encoding="utf-8")
        assert "HISTORICAL COMPARISON" in text
        assert "CROSS-QUERY COMPARISON" in text
        out = capsys.readouterr().out
        assert "Historical Comparison Summary" in out
        assert "Comparison pairs: 3" in out
        assert "(run of 2024-01-01 10:00:00)" in out

    def test_cross_query_file_name(self, tmp_path, cfg, sample_run):
        current = make_run(tmp_path, "2024-01-02_10-00-00", sample_run)

        report = compare_run(cfg, current, Mode.CROSS_QUERY, printer=Printer())

        assert report.name == "comparison_cross_query.txt"

    def test_explicit_previous_file(self, tmp_path, cfg, sample_run, make_query):
        other = tmp_path / "elsewhere.json"
        save_results([make_query([("/a", 2)])], other)
        current = make_run(tmp_path, "2024-01-02_10-00-00", sample_run)

        report = compare_run(cfg, current, Mode.HISTORICAL, previous_path=other, printer=Printer())

        assert report.name == "comparison_historical.txt"
        assert "📈 [↑1] #1: Title /a (was #2)" in report.read_text(encoding="utf-8")

    def test_historical_without_previous_fails(self, tmp_path, cfg, sample_run):
        current = make_run(tmp_path, "2024-01-02_10-00-00", sample_run)

        with pytest.raises(MissingPreviousResultsError):
            compare_run(cfg, current, Mode.HISTORICAL, printer=Printer())
        assert not (current.parent / "comparison_historical.txt").exists()

    def test_historical_fallback(self, tmp_path, cfg, sample_run):
        current = make_run(tmp_path, "2024-01-02_10-00-00", sample_run)

        report = compare_run(cfg, current, Mode.HISTORICAL, fallback=True, printer=Printer())

        assert report.name == "comparison_cross_query.txt"

    def test_both_without_previous(self, tmp_path, cfg, sample_run):
        current = make_run(tmp_path, "2024-01-02_10-00-00", sample_run)

        report = compare_run(cfg, current, Mode.BOTH, printer=Printer())

        assert "No previous results available" in report.read_text(encoding="utf-8")


class TestMains:

    def test_compare_main_exits_on_missing_runs(self, tmp_path, cfg, capsys):
        with patch.object(run_compare, "load_config", return_value=cfg), \
                patch.object(sys, "argv", ["run_compare.py"]):
            with pytest.raises(SystemExit) as exc_info:
                run_compare.main()

        assert exc_info.value.code == 1
        assert "no results files found" in capsys.readouterr().err

    def test_query_main_with_loaded_results(self, tmp_path, cfg, sample_run):
        source = tmp_path / "old.json"
        save_results(sample_run, source)

        with patch.object(run_query, "load_config", return_value=cfg), \
                patch.object(run_query, "collect_run_context", return_value={}), \
                patch.object(sys, "argv", ["run_query.py", "--load-results", str(source)]):
            run_query.main()

        [folder] = [p for p in tmp_path.iterdir() if p.is_dir()]
        assert folder.name.startswith("run_")
        for name in ("results.json", "results.csv", "metadata.txt"):
            assert (folder / name).is_file()

    def test_query_index_runs_configured_queries(self, tmp_path, cfg, sample_documents):
        from search_testbed.corpus import build_stored_index
        from search_testbed.results_io import save_index

        run_folder = tmp_path / "run_2024-01-01_10-00-00"
        run_folder.mkdir()
        save_index(build_stored_index(sample_documents, "prod"), run_folder)

        client = MagicMock()
        client.search.return_value = {"hits": {"hits": [
            {"_id": "1", "_score": 1.0, "_source": {"title": "Go tutorial Guide", "uri": "/go-tutorial-1"}},
        ]}}
        queries = tmp_path / "queries.json"
        queries.write_text('[{"query": "go", "algorithm": "bm25", "es_query": {}}]')

        with patch.object(run_query, "ElasticsearchClient", return_value=client):
            results, stored = run_query.query_index(cfg, "", str(queries), Printer())

        assert stored.source_index == "prod"
        assert [r.uri for r in results[0].results] == ["/go-tutorial-1"]
        client.load_stored_index.assert_called_once_with(cfg.elasticsearch.index, stored)

    def test_compare_main_lists_run_folders_when_verbose(self, tmp_path, cfg, sample_run, capsys):
        make_run(tmp_path, "2024-01-01_10-00-00", sample_run)
        make_run(tmp_path, "2024-01-02_10-00-00", sample_run)

        with patch.object(run_compare, "load_config", return_value=cfg), \
                patch.object(sys, "argv", ["run_compare.py", "-v"]):
            run_compare.main()

        out = capsys.readouterr().out
        assert f"Found 2 run folders in {tmp_path}" in out
        assert "(run of 2024-01-02 10:00:00)" in out
        assert (tmp_path / "run_2024-01-02_10-00-00" / "comparison.txt").is_file()


class TestDescribeRun:

    def test_run_folder_adds_time(self, tmp_path):
        path = tmp_path / "run_2024-05-06_07-08-09" / "results.json"
        assert describe_run(path) == f"{path} (run of 2024-05-06 07:08:09)"

    def test_other_location_is_plain(self, tmp_path):
        path = tmp_path / "old.json"
        assert describe_run(path) == str(path)


@pytest.fixture
def es_client():
    client = MagicMock()
    with patch.object(run_seed, "ElasticsearchClient", return_value=client), \
            patch.object(run_generate, "ElasticsearchClient", return_value=client), \
            patch.object(run_debug, "ElasticsearchClient", return_value=client):
        yield client


class TestSeed:

    def test_recreates_index_and_verifies_count(self, cfg, es_client, capsys):
        cfg.test_data.document_count = 5
        es_client.index_exists.return_value = True
        es_client.count_documents.return_value = 5

        count = run_seed.seed(cfg, "scratch", Printer())

        assert count == 5
        assert [c[0] for c in es_client.method_calls] == [
            "ping", "index_exists", "delete_index", "create_index",
            "bulk_index", "refresh_index", "count_documents",
        ]
        es_client.create_index.assert_called_once_with("scratch", DEFAULT_MAPPING)
        index, docs = es_client.bulk_index.call_args.args
        assert index == "scratch"
        assert len(docs) == 5
        out = capsys.readouterr().out
        assert "Generated 5 documents (seed 42)" in out
        assert "All 5 documents successfully indexed" in out

    def test_new_index_is_not_deleted(self, cfg, es_client):
        es_client.index_exists.return_value = False
        es_client.count_documents.return_value = 50

        run_seed.seed(cfg, "scratch", Printer())

        es_client.delete_index.assert_not_called()
        es_client.create_index.assert_called_once()

    def test_count_mismatch_warns(self, cfg, es_client, capsys):
        cfg.test_data.document_count = 5
        es_client.index_exists.return_value = False
        es_client.count_documents.return_value = 3

        assert run_seed.seed(cfg, "scratch", Printer()) == 3
        assert "Expected 5 documents, but got 3" in capsys.readouterr().out

    def test_documents_from_source_file(self, tmp_path, cfg, es_client, sample_documents, capsys):
        source = tmp_path / "docs.json"
        source.write_text(json.dumps([d.to_dict() for d in sample_documents]))
        cfg.test_data.source_file = str(source)
        es_client.count_documents.return_value = 2

        run_seed.seed(cfg, "scratch", Printer())

        _, docs = es_client.bulk_index.call_args.args
        assert [d.uri for d in docs] == ["/go-tutorial-1", "/python-testing-2"]
        assert f"Loaded 2 documents from {source}" in capsys.readouterr().out

    def test_main_hints_at_connection_failures(self, cfg, es_client, capsys):
        es_client.ping.side_effect = ElasticsearchError(
            ElasticsearchError.CONNECTION, "failed to ping Elasticsearch"
        )

        with patch.object(run_seed, "load_config", return_value=cfg), \
                patch.object(sys, "argv", ["run_seed.py", "--count", "3"]):
            with pytest.raises(SystemExit) as exc_info:
                run_seed.main()

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "failed to ping Elasticsearch" in captured.err
        assert "Is Elasticsearch running at http://localhost:9200?" in captured.out
        assert cfg.test_data.document_count == 3


class TestGenerate:

    def test_generated_documents_are_labelled_with_seed(self, cfg):
        cfg.test_data.document_count = 4
        cfg.test_data.seed = 7

        docs, source = run_generate.documents_from_test_data(cfg, Printer())

        assert len(docs) == 4
        assert source == "generated:seed=7"

    def test_file_documents_are_labelled_with_path(self, tmp_path, cfg, sample_documents):
        source_file = tmp_path / "docs.json"
        source_file.write_text(json.dumps([d.to_dict() for d in sample_documents]))
        cfg.test_data.mode = "file"
        cfg.test_data.source_file = str(source_file)

        docs, source = run_generate.documents_from_test_data(cfg, Printer())

        assert docs == sample_documents
        assert source == f"file:{source_file}"

    def test_file_mode_needs_source_file(self, cfg):
        cfg.test_data.mode = "file"

        with pytest.raises(ConfigError):
            run_generate.documents_from_test_data(cfg, Printer())

    def test_description_shown_when_verbose(self, cfg, capsys):
        cfg.test_data.description = "Synthetic articles"
        cfg.test_data.document_count = 1

        run_generate.documents_from_test_data(cfg, Printer(verbose=True))

        assert "Test data: Synthetic articles" in capsys.readouterr().out

    def test_documents_from_es(self, cfg, es_client, sample_documents):
        es_client.fetch_documents.return_value = sample_documents

        docs = run_generate.documents_from_es(cfg, "prod", 2, Printer())

        assert docs == sample_documents
        es_client.ping.assert_called_once()
        es_client.fetch_documents.assert_called_once_with("prod", 2)

    def test_main_stores_index_in_new_run_folder(self, tmp_path, cfg, capsys):
        cfg.test_data.document_count = 3

        with patch.object(run_generate, "load_config", return_value=cfg), \
                patch.object(sys, "argv", ["run_generate.py"]):
            run_generate.main()

        [folder] = [p for p in tmp_path.iterdir() if p.is_dir()]
        data = json.loads((folder / "index.json").read_text(encoding="utf-8"))
        assert data["source_index"] == "generated:seed=42"
        assert len(data["documents"]) == 3
        assert (folder / "metadata.txt").is_file()
        assert "Stored 3 documents" in capsys.readouterr().out

    def test_main_hints_at_missing_source_index(self, cfg, es_client, capsys):
        es_client.fetch_documents.side_effect = ElasticsearchError(ElasticsearchError.QUERY, "search error")

        with patch.object(run_generate, "load_config", return_value=cfg), \
                patch.object(sys, "argv", ["run_generate.py", "--from-es", "--source-index", "gone"]):
            with pytest.raises(SystemExit):
                run_generate.main()

        assert "Check that the source index exists" in capsys.readouterr().out


class TestDebug:

    def test_missing_index_exits_with_hint(self, cfg, es_client, capsys):
        es_client.index_exists.return_value = False

        with patch.object(run_debug, "load_config", return_value=cfg), \
                patch.object(sys, "argv", ["run_debug.py", "--q1", "{}", "--q2", "{}"]):
            with pytest.raises(SystemExit) as exc_info:
                run_debug.main()

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "index 'search_test' does not exist" in captured.err
        assert "Seed it with run_seed.py" in captured.out

    def test_live_queries_report_overlap(self, cfg, es_client, capsys):
        es_client.index_exists.return_value = True
        es_client.search.side_effect = [
            {"hits": {"hits": [
                {"_id": "1", "_score": 2.0, "_source": {"title": "A"}},
                {"_id": "2", "_score": 1.0, "_source": {"title": "B"}},
            ]}},
            {"hits": {"hits": [{"_id": "2", "_score": 3.0, "_source": {"title": "B"}}]}},
        ]

        run_debug.debug_queries(cfg, '{"query": {"match_all": {}}}', '{"size": 1}', Printer())

        out = capsys.readouterr().out
        assert "Query 1 returned 2 results" in out
        assert "Common Results: 1" in out
        assert "Overlap: 50.0%" in out

    def test_results_file_pairs(self, tmp_path, sample_run, capsys):
        path = save_results(sample_run, tmp_path / "results.json")

        run_debug.debug_results(str(path), Printer())

        out = capsys.readouterr().out
        assert "Loaded 3 query results" in out
        assert "Pair 3:" in out
