"""Render ranking statistics and itemised changes as a plain-text report.

The formatter writes to any object with a ``write(str)`` method. Output is a
pure function of its inputs: the only timestamp printed is the ``run_at`` of
the first current query, never the wall clock.
"""

from dataclasses import dataclass

from search_testbed.calculator import (
    calculate_cross_query,
    calculate_historical,
    uri_lookup,
)
from search_testbed.errors import ReportWriteError
from search_testbed.models import (
    ComparisonStats,
    CrossQueryStats,
    QueryResults,
    SearchResult,
)

ARROW_UP = "↑"
ARROW_DOWN = "↓"
TREND_UP = "📈"
TREND_DOWN = "📉"
ICON_NEW = "✨"
ICON_REMOVED = "❌"
ICON_WARNING = "⚠️"
NEW_LABEL = "[NEW]"
REMOVED_LABEL = "[REMOVED]"
UNCHANGED_LABEL = "[---]"
INFO_LABEL = "[INFO]"

SEPARATOR = "=" * 70
DASHES = "-" * 70

# Score drift below this is treated as noise for unchanged rows
SCORE_EPSILON = 0.0001

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Options:
    """Report rendering switches.

    max_rank_display <= 0 means every result is shown.
    """

    show_unchanged: bool = False
    highlight_new: bool = True
    show_scores: bool = True
    max_rank_display: int = 20


@dataclass(frozen=True)
class RankingChange:
    """Classification of one current result against the previous run."""

    result: SearchResult
    previous: SearchResult | None

    @property
    def is_new(self) -> bool:
        return self.previous is None

    @property
    def is_unchanged(self) -> bool:
        return self.previous is not None and self.previous.rank == self.result.rank

    @property
    def rank_diff(self) -> int:
        """previous.rank - current.rank; positive means moved up."""
        if self.previous is None:
            return 0
        return self.previous.rank - self.result.rank


def display_count(total: int, max_rank_display: int) -> int:
    if max_rank_display > 0 and max_rank_display < total:
        return max_rank_display
    return total


def rank_indicators(rank_diff: int) -> tuple[str, str]:
    """Return (arrow, trend symbol) for a signed rank difference."""
    if rank_diff > 0:
        return ARROW_UP, TREND_UP
    return ARROW_DOWN, TREND_DOWN


class Formatter:
    def __init__(self, sink, options: Options):
        self.sink = sink
        self.options = options

    def write(self, text: str) -> None:
        try:
            self.sink.write(text)
        except (OSError, ValueError) as e:
            raise ReportWriteError("failed to write report", original_error=e) from e

    # ── Historical ───────────────────────────────────────────────────────

    def format_historical(
        self, current: list[QueryResults], previous: list[QueryResults]
    ) -> None:
        """Write the current-vs-previous report, pairing queries by position."""
        if not current:
            self.write(f"{INFO_LABEL} No queries found in current results\n")
            return

        self._write_generated(current[0])

        compared = 0
        for i, curr in enumerate(current):
            if i >= len(previous):
                self.write(
                    f"\n{INFO_LABEL} Query {i + 1} exists in current but not in previous\n"
                )
                continue

            prev = previous[i]
            stats = calculate_historical(curr, prev)
            compared += 1

            self._write_query_header(curr, prev)
            self._write_stats(stats)
            self.write("\n")
            self._write_ranking_changes(curr, prev)
            self._write_removed_results(curr, prev)

        self._write_historical_summary(current, previous, compared)

    def _write_generated(self, query: QueryResults) -> None:
        self.write(f"Generated: {query.run_at.strftime(TIMESTAMP_FORMAT)}\n")
        self.write(f"{SEPARATOR}\n\n")

    def _write_query_header(self, curr: QueryResults, prev: QueryResults) -> None:
        self.write(f"\n{SEPARATOR}\n")
        self.write(f"Query: {curr.query}\n")
        self.write(f"Algorithm: {prev.algorithm} → {curr.algorithm}\n")
        if curr.description:
            self.write(f"Description: {curr.description}\n")
        self.write(f"{SEPARATOR}\n\n")

    def _write_stats(self, stats: ComparisonStats) -> None:
        self.write("Statistics:\n")
        self.write(f"  Total Results: {stats.total_results}\n")
        self.write(f"  New: {stats.new_results} | Removed: {stats.removed_count}\n")
        self.write(
            f"  Improved: {stats.improved_count} | Worsened: {stats.worsened_count}"
            f" | Unchanged: {stats.unchanged_count}\n"
        )
        self.write(f"  Avg Rank Change: {stats.avg_rank_change:.2f} positions\n")

    def _write_ranking_changes(self, curr: QueryResults, prev: QueryResults) -> None:
        prev_map = uri_lookup(prev.results)
        count = display_count(len(curr.results), self.options.max_rank_display)

        self.write("--- Ranking Changes ---\n\n")

        for r in curr.results[:count]:
            change = RankingChange(result=r, previous=prev_map.get(r.uri))
            if change.is_new:
                self._write_new_result(change)
            elif change.is_unchanged:
                self._write_unchanged_result(change)
            else:
                self._write_moved_result(change)

    def _write_new_result(self, change: RankingChange) -> None:
        r = change.result
        if self.options.highlight_new:
            self.write(f"{ICON_NEW} {NEW_LABEL} #{r.rank}: {r.title}\n")
        else:
            self.write(f"{NEW_LABEL} #{r.rank}: {r.title}\n")

        if self.options.show_scores:
            self.write(
                f"         Score: {r.score:.4f} | Type: {r.content_type} | Date: {r.date}\n"
            )
        self.write(f"         URI: {r.uri}\n\n")

    def _write_unchanged_result(self, change: RankingChange) -> None:
        if not self.options.show_unchanged:
            return

        r, prev = change.result, change.previous
        self.write(f"   {UNCHANGED_LABEL} #{r.rank}: {r.title}\n")

        if self.options.show_scores:
            score_diff = r.score - prev.score
            if abs(score_diff) > SCORE_EPSILON:
                self.write(
                    f"         Score: {prev.score:.4f} → {r.score:.4f} (Δ {score_diff:.4f})\n"
                )
        self.write(f"         URI: {r.uri}\n\n")

    def _write_moved_result(self, change: RankingChange) -> None:
        r, prev = change.result, change.previous
        rank_diff = change.rank_diff
        arrow, symbol = rank_indicators(rank_diff)

        self.write(
            f"{symbol} [{arrow}{abs(rank_diff)}] #{r.rank}: {r.title} (was #{prev.rank})\n"
        )
        if self.options.show_scores:
            score_diff = r.score - prev.score
            self.write(
                f"         Score: {prev.score:.4f} → {r.score:.4f} (Δ {score_diff:.4f})\n"
            )
        self.write(f"         URI: {r.uri}\n\n")

    def _write_removed_results(self, curr: QueryResults, prev: QueryResults) -> None:
        # Not capped by max_rank_display: every removed result is listed
        current_uris = {r.uri for r in curr.results}

        self.write("\n--- Removed from Results ---\n")

        removed = 0
        for r in prev.results:
            if r.uri in current_uris:
                continue
            self.write(f"{ICON_REMOVED} {REMOVED_LABEL} Was #{r.rank}: {r.title}\n")
            if self.options.show_scores:
                self.write(f"             Score: {r.score:.4f} | Type: {r.content_type}\n")
            self.write(f"             URI: {r.uri}\n\n")
            removed += 1

        if removed == 0:
            self.write("None\n")
        self.write("\n")

    def _write_historical_summary(
        self, current: list[QueryResults], previous: list[QueryResults], compared: int
    ) -> None:
        self.write(f"\n{SEPARATOR}\n")
        self.write("Historical Comparison Summary\n")
        self.write(f"{SEPARATOR}\n\n")

        totals = {"new": 0, "removed": 0, "improved": 0, "worsened": 0}
        for curr, prev in zip(current, previous):
            stats = calculate_historical(curr, prev)
            totals["new"] += stats.new_results
            totals["removed"] += stats.removed_count
            totals["improved"] += stats.improved_count
            totals["worsened"] += stats.worsened_count

        self.write(f"Total queries compared: {compared}\n")
        self.write(f"Total new results: {totals['new']}\n")
        self.write(f"Total removed results: {totals['removed']}\n")
        self.write(f"Total improved rankings: {totals['improved']}\n")
        self.write(f"Total worsened rankings: {totals['worsened']}\n")

    # ── Cross-query ──────────────────────────────────────────────────────

    def format_cross_query(self, queries: list[QueryResults]) -> None:
        """Write the report comparing every pair of queries i < j."""
        if len(queries) < 2:
            self.write(f"{ICON_WARNING} Need at least 2 queries to compare\n")
            return

        self._write_generated(queries[0])

        for i in range(len(queries) - 1):
            for j in range(i + 1, len(queries)):
                q1, q2 = queries[i], queries[j]
                self._write_cross_query_header(q1, q2)
                self._write_cross_query_stats(calculate_cross_query(q1, q2))
                self.write("\n")
                self._write_cross_query_results(q1, q2)

        self._write_cross_query_summary(len(queries))

    def _write_cross_query_header(self, q1: QueryResults, q2: QueryResults) -> None:
        self.write(f"\n{SEPARATOR}\n")
        self.write("Query Comparison\n")
        self.write(f"{SEPARATOR}\n")
        self.write(f"Query 1: {q1.query} ({q1.algorithm})\n")
        self.write(f"Query 2: {q2.query} ({q2.algorithm})\n")
        self.write(f"{DASHES}\n\n")

    def _write_cross_query_stats(self, stats: CrossQueryStats) -> None:
        self.write("Statistics:\n")
        self.write(f"  Common Results: {stats.common_results}\n")
        self.write(f"  Only in Query 1: {stats.only_in_query1}\n")
        self.write(f"  Only in Query 2: {stats.only_in_query2}\n")
        self.write(f"  Ranking Differences: {stats.ranking_diff_count}\n")
        if stats.ranking_diff_count > 0:
            self.write(
                f"  Avg Ranking Difference: {stats.avg_ranking_diff:.2f} positions\n"
            )

    def _write_cross_query_results(self, q1: QueryResults, q2: QueryResults) -> None:
        q1_map = uri_lookup(q1.results)
        q2_map = uri_lookup(q2.results)
        q1_shown = q1.results[: display_count(len(q1.results), self.options.max_rank_display)]
        q2_shown = q2.results[: display_count(len(q2.results), self.options.max_rank_display)]

        self.write("--- Results Only in Query 1 ---\n")
        only_in_1 = [r for r in q1_shown if r.uri not in q2_map]
        for r in only_in_1:
            self._write_single_result(ICON_REMOVED, r)
        self._write_none_if_empty(only_in_1)

        self.write("--- Results Only in Query 2 ---\n")
        only_in_2 = [r for r in q2_shown if r.uri not in q1_map]
        for r in only_in_2:
            self._write_single_result(ICON_NEW, r)
        self._write_none_if_empty(only_in_2)

        # Common results sharing a rank carry no signal and are left out
        self.write("--- Ranking Differences for Common Results ---\n")
        differing = [
            (r1, q2_map[r1.uri])
            for r1 in q1_shown
            if r1.uri in q2_map and q2_map[r1.uri].rank != r1.rank
        ]
        for r1, r2 in differing:
            self._write_ranking_difference(r1, r2)
        self._write_none_if_empty(differing)

    def _write_single_result(self, icon: str, r: SearchResult) -> None:
        self.write(f"{icon} #{r.rank}: {r.title}\n")
        if self.options.show_scores:
            self.write(f"    Score: {r.score:.4f}\n")
        self.write(f"    URI: {r.uri}\n\n")

    def _write_ranking_difference(self, r1: SearchResult, r2: SearchResult) -> None:
        change = r1.rank - r2.rank
        arrow, symbol = rank_indicators(change)

        self.write(f"{symbol} [{arrow}{abs(change)}] {r1.title}\n")
        self.write(f"    Query 1: #{r1.rank} | Query 2: #{r2.rank}\n")
        if self.options.show_scores:
            self.write(
                f"    Scores: {r1.score:.4f} → {r2.score:.4f} (Δ {r2.score - r1.score:.4f})\n"
            )
        self.write(f"    URI: {r1.uri}\n\n")

    def _write_none_if_empty(self, items: list) -> None:
        if not items:
            self.write("None\n")
        self.write("\n")

    def _write_cross_query_summary(self, query_count: int) -> None:
        self.write(f"\n{SEPARATOR}\n")
        self.write("Cross-Query Comparison Summary\n")
        self.write(f"{SEPARATOR}\n\n")
        self.write(f"Total queries analyzed: {query_count}\n")
        self.write(f"Total comparison pairs: {query_count * (query_count - 1) // 2}\n")
