"""Exception hierarchy for the search test bed.

Precondition failures (nothing to compare) are kept apart from report write
failures so callers can decide to fall back instead of aborting.
"""

from typing import Any


class SearchTestbedError(Exception):
    """Base class for every error raised by search_testbed."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        base = self.message
        if self.details:
            base += f" | Details: {self.details}"
        if self.original_error is not None:
            base += f" | Caused by: {self.original_error}"
        return base


class ConfigError(SearchTestbedError):
    """Config file missing (when given explicitly) or unparseable."""


class RunNotFoundError(SearchTestbedError):
    """No run folder / results file matched on disk."""


class PreconditionError(SearchTestbedError):
    """The comparison cannot start with the data it was given."""


class EmptyResultsError(PreconditionError):
    def __init__(self, message: str = "no current results to compare"):
        super().__init__(message)


class MissingPreviousResultsError(PreconditionError):
    def __init__(self, message: str = "no previous results to compare against"):
        super().__init__(message)


class ReportWriteError(SearchTestbedError):
    """Writing the rendered report to its sink failed."""


class ElasticsearchError(SearchTestbedError):
    """A call to the Elasticsearch REST API failed.

    ``kind`` is one of ``connection``, ``index`` or ``query``.
    """

    CONNECTION = "connection"
    INDEX = "index"
    QUERY = "query"

    def __init__(
        self,
        kind: str,
        message: str,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, details=details, original_error=original_error)
        self.kind = kind


def is_connection_error(err: BaseException) -> bool:
    return isinstance(err, ElasticsearchError) and err.kind == ElasticsearchError.CONNECTION


def is_index_error(err: BaseException) -> bool:
    return isinstance(err, ElasticsearchError) and err.kind == ElasticsearchError.INDEX


def is_query_error(err: BaseException) -> bool:
    return isinstance(err, ElasticsearchError) and err.kind == ElasticsearchError.QUERY
