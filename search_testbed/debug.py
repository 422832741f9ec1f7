"""Ad hoc diagnostics for why two queries rank differently."""

from dataclasses import dataclass

from search_testbed.calculator import calculate_cross_query
from search_testbed.models import CrossQueryStats, QueryResults, SearchResult

SAMPLE_SIZE = 3
TOP_HITS = 5


@dataclass(frozen=True)
class HitOverlap:
    common: int
    only_in_1: int
    only_in_2: int
    total_1: int

    @property
    def overlap_percent(self) -> str:
        """Share of query 1's hits also returned by query 2, e.g. ``"40.0%"``."""
        if not self.total_1:
            return "N/A"
        return f"{self.common / self.total_1 * 100:.1f}%"


@dataclass(frozen=True)
class PairOverview:
    number: int
    q1: QueryResults
    q2: QueryResults
    stats: CrossQueryStats
    q1_samples: tuple[str, ...]
    q2_samples: tuple[str, ...]


def hit_overlap(hits1: list[dict], hits2: list[dict]) -> HitOverlap:
    """Compare two raw Elasticsearch hit lists by document ``_id``."""
    ids1 = {hit.get("_id") for hit in hits1}
    ids2 = {hit.get("_id") for hit in hits2}
    common = len(ids1 & ids2)
    return HitOverlap(
        common=common,
        only_in_1=len(ids1) - common,
        only_in_2=len(ids2) - common,
        total_1=len(ids1),
    )


def top_hits(hits: list[dict], limit: int = TOP_HITS) -> list[str]:
    lines = []
    for i, hit in enumerate(hits[:limit], 1):
        title = (hit.get("_source") or {}).get("title")
        title = title if isinstance(title, str) else ""
        lines.append(f"#{i} (id: {hit.get('_id')}, score: {float(hit.get('_score') or 0.0):.2f}) {title}")
    return lines


def sample_uris(results: tuple[SearchResult, ...], count: int = SAMPLE_SIZE) -> tuple[str, ...]:
    return tuple(results[i].uri if i < len(results) else "N/A" for i in range(count))


def pairwise_overview(results: list[QueryResults]) -> list[PairOverview]:
    """Cross-query stats for every pair i < j, numbered from 1."""
    pairs = []
    number = 1
    for i in range(len(results) - 1):
        for j in range(i + 1, len(results)):
            q1, q2 = results[i], results[j]
            pairs.append(PairOverview(
                number=number,
                q1=q1,
                q2=q2,
                stats=calculate_cross_query(q1, q2),
                q1_samples=sample_uris(q1.results),
                q2_samples=sample_uris(q2.results),
            ))
            number += 1
    return pairs
