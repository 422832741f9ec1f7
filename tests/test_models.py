from datetime import datetime, timedelta, timezone

import pytest

from search_testbed.errors import (
    ElasticsearchError,
    EmptyResultsError,
    PreconditionError,
    SearchTestbedError,
    is_connection_error,
    is_index_error,
)
from search_testbed.models import (
    Document,
    QueryConfig,
    QueryResults,
    SearchResult,
    parse_timestamp,
)


class TestParseTimestamp:

    def test_trailing_z(self):
        assert parse_timestamp("2024-01-05T10:00:00Z") == datetime(2024, 1, 5, 10, tzinfo=timezone.utc)

    def test_nanoseconds_are_truncated(self):
        ts = parse_timestamp("2024-01-05T10:00:00.987654321+01:00")
        assert ts.microsecond == 987654
        assert ts.utcoffset() == timedelta(hours=1)

    def test_short_fraction(self):
        assert parse_timestamp("2024-01-05T10:00:00.5Z").microsecond == 500000

    def test_datetime_passthrough(self, run_at):
        assert parse_timestamp(run_at) is run_at

    def test_missing_value_is_epoch(self):
        assert parse_timestamp(None) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestModels:

    def test_query_results_store_tuple(self, run_at):
        qr = QueryResults("q", "a", "", run_at, [SearchResult(1, "t", "/u")])
        assert isinstance(qr.results, tuple)

    def test_frozen(self):
        r = SearchResult(1, "t", "/u")
        with pytest.raises(AttributeError):
            r.rank = 2

    def test_document_from_dict_coerces_id(self):
        assert Document.from_dict({"id": 7, "title": "t", "uri": "/u"}).id == "7"

    def test_query_config_algorithm_override(self):
        cfg = QueryConfig.from_dict({"query": "q", "algorithm": "x", "es_query": {"size": 3}}, algorithm="y")
        assert cfg.algorithm == "y"
        assert cfg.es_query == {"size": 3}
        assert cfg.weights is None


class TestErrors:

    def test_str_includes_details_and_cause(self):
        err = SearchTestbedError("boom", details={"k": 1}, original_error=OSError("io"))
        assert str(err) == "boom | Details: {'k': 1} | Caused by: io"

    def test_precondition_defaults(self):
        err = EmptyResultsError()
        assert isinstance(err, PreconditionError)
        assert err.message == "no current results to compare"

    def test_kind_helpers(self):
        err = ElasticsearchError(ElasticsearchError.INDEX, "bad index")
        assert is_index_error(err)
        assert not is_connection_error(err)
        assert not is_index_error(ValueError("x"))
