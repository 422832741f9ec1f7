"""Value objects for documents, queries and ranked results.

All types are frozen: they are built once from an Elasticsearch response or
a file on disk and never mutated afterwards. ``to_dict`` / ``from_dict`` use
the field names written to ``index.json`` and ``results.json``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


def parse_timestamp(value) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing ``Z``."""
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat only takes up to microseconds; drop extra fraction digits
    if "." in text:
        head, _, tail = text.partition(".")
        digits = ""
        while tail and tail[0].isdigit():
            digits += tail[0]
            tail = tail[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{tail}"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Document:
    id: str
    title: str
    uri: str
    body: str = ""
    content_type: str = ""
    date: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "uri": self.uri,
            "body": self.body,
            "content_type": self.content_type,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            uri=data.get("uri", ""),
            body=data.get("body", ""),
            content_type=data.get("content_type", ""),
            date=data.get("date", ""),
        )


@dataclass(frozen=True)
class StoredIndex:
    generated_at: datetime
    version: str
    source_index: str
    documents: tuple[Document, ...] = ()

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at.isoformat(),
            "version": self.version,
            "source_index": self.source_index,
            "documents": [d.to_dict() for d in self.documents],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StoredIndex":
        return cls(
            generated_at=parse_timestamp(data.get("generated_at")),
            version=data.get("version", ""),
            source_index=data.get("source_index", ""),
            documents=tuple(Document.from_dict(d) for d in data.get("documents") or []),
        )


@dataclass(frozen=True)
class QueryConfig:
    """One named query from queries.json. ``es_query`` is the raw request body."""

    query: str
    algorithm: str
    description: str = ""
    es_query: dict = field(default_factory=dict)
    weights: dict | None = None

    @classmethod
    def from_dict(cls, data: dict, algorithm: str | None = None) -> "QueryConfig":
        return cls(
            query=data.get("query", ""),
            algorithm=algorithm or data.get("algorithm", ""),
            description=data.get("description", ""),
            es_query=dict(data.get("es_query") or {}),
            weights=data.get("weights"),
        )


@dataclass(frozen=True)
class SearchResult:
    rank: int
    title: str
    uri: str
    date: str = ""
    content_type: str = ""
    algorithm: str = ""
    score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "title": self.title,
            "uri": self.uri,
            "date": self.date,
            "content_type": self.content_type,
            "algorithm": self.algorithm,
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SearchResult":
        return cls(
            rank=int(data.get("rank", 0)),
            title=data.get("title", ""),
            uri=data.get("uri", ""),
            date=data.get("date", ""),
            content_type=data.get("content_type", ""),
            algorithm=data.get("algorithm", ""),
            score=float(data.get("score") or 0.0),
        )


@dataclass(frozen=True)
class QueryResults:
    query: str
    algorithm: str
    description: str
    run_at: datetime
    results: tuple[SearchResult, ...] = ()

    def __post_init__(self):
        # Accept any iterable but store a tuple so the ranking cannot change
        if not isinstance(self.results, tuple):
            object.__setattr__(self, "results", tuple(self.results))

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "algorithm": self.algorithm,
            "description": self.description,
            "run_at": self.run_at.isoformat(),
            "results": [r.to_dict() for r in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QueryResults":
        return cls(
            query=data.get("query", ""),
            algorithm=data.get("algorithm", ""),
            description=data.get("description", ""),
            run_at=parse_timestamp(data.get("run_at")),
            results=tuple(SearchResult.from_dict(r) for r in data.get("results") or []),
        )


@dataclass(frozen=True)
class ComparisonStats:
    """Counts for one (current, previous) pair of the same query slot."""

    query: str
    algorithm: str
    total_results: int = 0
    new_results: int = 0
    removed_count: int = 0
    improved_count: int = 0
    worsened_count: int = 0
    unchanged_count: int = 0
    avg_rank_change: float = 0.0


@dataclass(frozen=True)
class CrossQueryStats:
    """Counts for two different queries of the same run."""

    query1_name: str
    query2_name: str
    common_results: int = 0
    only_in_query1: int = 0
    only_in_query2: int = 0
    ranking_diff_count: int = 0
    avg_ranking_diff: float = 0.0


@dataclass(frozen=True)
class Summary:
    mode: str
    new_results: int = 0
    removed_results: int = 0
    improved_rankings: int = 0
    worsened_rankings: int = 0
