"""Exception hierarchy for the Red Bank monitor."""


class MonitorError(Exception):
    """Base class for all monitor failures."""


class TransportError(MonitorError):
    """The chain gateway could not be reached or returned an unusable body."""


class PaginationLimitError(TransportError):
    """A paginated scan did not terminate within its bounds."""


class QueryError(MonitorError):
    """A smart-contract query failed or returned a malformed response."""

    def __init__(self, message: str, query: dict | None = None) -> None:
        super().__init__(message)
        self.query = query


class KeyDecodeError(MonitorError):
    """A raw storage key does not follow the expected layout."""
