"""Drive the calculator and formatter to produce one comparison report.

Three modes:
  historical   current run vs previous run, queries paired by position
  cross-query  every pair of queries inside the current run
  both         historical section, a divider, then the cross-query section

Everything is passed in already loaded; nothing here touches the network or
the filesystem.
"""

import io
from enum import Enum

from search_testbed.calculator import calculate_historical
from search_testbed.errors import EmptyResultsError, MissingPreviousResultsError
from search_testbed.formatter import Formatter, Options
from search_testbed.models import QueryResults, Summary

__all__ = ["Comparison", "Mode", "Options"]

BANNER = "=" * 80
DIVIDER = "#" * 80


class Mode(Enum):
    HISTORICAL = "historical"
    CROSS_QUERY = "cross-query"
    BOTH = "both"

    @property
    def label(self) -> str:
        return _MODE_LABELS[self]

    @classmethod
    def parse(cls, text: str) -> "Mode":
        key = text.strip().lower().replace("_", "-")
        if key == "crossquery":
            key = "cross-query"
        for mode in cls:
            if mode.value == key:
                return mode
        raise ValueError(
            f"Unknown comparison mode '{text}'. Choose from: {[m.value for m in cls]}"
        )


_MODE_LABELS = {
    Mode.HISTORICAL: "Historical",
    Mode.CROSS_QUERY: "Cross-Query",
    Mode.BOTH: "Both",
}


class Comparison:
    def __init__(
        self,
        current: list[QueryResults],
        previous: list[QueryResults] | None,
        options: Options,
        mode: Mode,
    ):
        self.current = list(current or [])
        self.previous = list(previous or [])
        self.options = options
        self.mode = mode

    def generate(self) -> str:
        """Return the full report text.

        Raises EmptyResultsError when there is no current data, and
        MissingPreviousResultsError for historical mode without a previous
        run. Cross-query mode with fewer than two queries yields a warning
        line instead of an error.
        """
        buf = io.StringIO()
        self.write_to(buf)
        return buf.getvalue()

    def write_to(self, sink) -> None:
        """Stream the report into ``sink`` (anything with ``write(str)``)."""
        if not self.current:
            raise EmptyResultsError()

        formatter = Formatter(sink, self.options)

        if self.mode is Mode.HISTORICAL:
            if not self.previous:
                raise MissingPreviousResultsError()
            formatter.format_historical(self.current, self.previous)
        elif self.mode is Mode.CROSS_QUERY:
            formatter.format_cross_query(self.current)
        else:
            self._write_both(formatter)

    def _write_both(self, formatter: Formatter) -> None:
        write = formatter.write

        write(f"{BANNER}\n")
        write("HISTORICAL COMPARISON (Current Run vs Previous Run)\n")
        write(f"{BANNER}\n\n")

        if self.previous:
            formatter.format_historical(self.current, self.previous)
        else:
            write("No previous results available for historical comparison.\n")

        write("\n\n")
        write(f"{DIVIDER}\n")
        write(f"{DIVIDER}\n")
        write("\n\n")

        write(f"{BANNER}\n")
        write("CROSS-QUERY COMPARISON (Queries Within Current Run)\n")
        write(f"{BANNER}\n\n")

        formatter.format_cross_query(self.current)

    def get_summary(self) -> Summary:
        """Numeric rollup of the historical pairs, independent of rendering."""
        if self.mode is Mode.CROSS_QUERY:
            return Summary(mode=self.mode.label)

        new = removed = improved = worsened = 0
        for curr, prev in zip(self.current, self.previous):
            stats = calculate_historical(curr, prev)
            new += stats.new_results
            removed += stats.removed_count
            improved += stats.improved_count
            worsened += stats.worsened_count

        return Summary(
            mode=self.mode.label,
            new_results=new,
            removed_results=removed,
            improved_rankings=improved,
            worsened_rankings=worsened,
        )
