"""Pairwise ranking statistics.

Both calculations match documents by ``uri``. Lookups are plain dicts built
in list order, so when a uri appears twice in one list the later entry wins.
"""

from collections.abc import Iterable

from search_testbed.models import (
    ComparisonStats,
    CrossQueryStats,
    QueryResults,
    SearchResult,
)


def uri_lookup(results: Iterable[SearchResult]) -> dict[str, SearchResult]:
    """Map uri -> result. Duplicate uris collapse to the last occurrence."""
    lookup = {}
    for r in results:
        lookup[r.uri] = r
    return lookup


def calculate_historical(current: QueryResults, previous: QueryResults) -> ComparisonStats:
    """Compare one query's current run against its previous run.

    rank_change = previous.rank - current.rank:
      > 0  improved (moved towards #1)
      < 0  worsened
      == 0 unchanged
    avg_rank_change is the summed |rank_change| divided by the number of
    current results (0.0 when current is empty).
    """
    prev_map = uri_lookup(previous.results)

    seen = set()
    new = improved = worsened = unchanged = 0
    total_rank_change = 0

    for r in current.results:
        seen.add(r.uri)

        prev = prev_map.get(r.uri)
        if prev is None:
            new += 1
            continue

        rank_change = prev.rank - r.rank
        total_rank_change += abs(rank_change)
        if rank_change > 0:
            improved += 1
        elif rank_change < 0:
            worsened += 1
        else:
            unchanged += 1

    removed = sum(1 for r in previous.results if r.uri not in seen)

    total = len(current.results)
    avg = total_rank_change / total if total else 0.0

    return ComparisonStats(
        query=current.query,
        algorithm=current.algorithm,
        total_results=total,
        new_results=new,
        removed_count=removed,
        improved_count=improved,
        worsened_count=worsened,
        unchanged_count=unchanged,
        avg_rank_change=avg,
    )


def calculate_cross_query(q1: QueryResults, q2: QueryResults) -> CrossQueryStats:
    """Compare two different queries from the same run."""
    q1_map = uri_lookup(q1.results)
    q2_map = uri_lookup(q2.results)

    common = only_in_1 = only_in_2 = 0
    diff_count = 0
    total_diff = 0

    for r1 in q1.results:
        r2 = q2_map.get(r1.uri)
        if r2 is None:
            only_in_1 += 1
            continue
        common += 1
        if r1.rank != r2.rank:
            total_diff += abs(r1.rank - r2.rank)
            diff_count += 1

    for r2 in q2.results:
        if r2.uri not in q1_map:
            only_in_2 += 1

    return CrossQueryStats(
        query1_name=q1.query,
        query2_name=q2.query,
        common_results=common,
        only_in_query1=only_in_1,
        only_in_query2=only_in_2,
        ranking_diff_count=diff_count,
        avg_ranking_diff=total_diff / diff_count if diff_count else 0.0,
    )
