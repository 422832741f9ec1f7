"""Shared fixtures for search_testbed tests."""

from datetime import datetime, timezone

import pytest

from search_testbed.models import Document, QueryResults, SearchResult

RUN_AT = datetime(2024, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def run_at() -> datetime:
    return RUN_AT


@pytest.fixture
def make_query():
    """Factory: make_query([("/a", 1), ("/b", 2)], query="q") -> QueryResults.

    Items are (uri, rank) or (uri, rank, score).
    """

    def _make(items, query="python tutorial", algorithm="baseline",
              description="", run_at=RUN_AT):
        results = []
        for item in items:
            uri, rank = item[0], item[1]
            score = item[2] if len(item) > 2 else 10.0 - rank
            results.append(SearchResult(
                rank=rank,
                title=f"Title {uri}",
                uri=uri,
                date="2024-01-02",
                content_type="article",
                algorithm=algorithm,
                score=score,
            ))
        return QueryResults(
            query=query,
            algorithm=algorithm,
            description=description,
            run_at=run_at,
            results=results,
        )

    return _make


@pytest.fixture
def sample_run(make_query) -> list[QueryResults]:
    return [
        make_query([("/a", 1), ("/b", 2), ("/c", 3)], query="python tutorial"),
        make_query([("/b", 1), ("/d", 2)], query="go performance"),
        make_query([("/e", 1)], query="rust security"),
    ]


@pytest.fixture
def sample_documents() -> list[Document]:
    return [
        Document(id="1", title="Go tutorial Guide", uri="/go-tutorial-1",
                 body="Learn about Go tutorial.", content_type="tutorial",
                 date="2024-01-02T10:00:00Z"),
        Document(id="2", title="Python testing Tips", uri="/python-testing-2",
                 body="Master Python testing.", content_type="article",
                 date="2024-01-03T10:00:00Z"),
    ]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment overrides that load_config honours."""
    for var in ("ES_URL", "ES_INDEX", "TESTBED_SEED", "TESTBED_SOURCE_FILE"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
