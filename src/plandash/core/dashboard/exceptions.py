"""
Exception hierarchy for the planning dashboard.

Missing sources and malformed documents are not exceptions: parsers log a
warning and skip them. The exceptions here are the failures a caller has to
handle:

- StoreUnavailableError: the store cannot be reached (HTTP 500)
- PartialSyncError: some record batches of a sync failed (HTTP 500)
- InvalidPayloadError: a pushed payload is incomplete (HTTP 400)
- UnauthorizedError: cron secret mismatch (HTTP 401)
- ScanError: the planning directory could not be walked
"""


class DashboardError(Exception):
    """Base exception for dashboard errors."""

    pass


class ScanError(DashboardError):
    """Raised when walking the planning directory fails."""

    pass


class StoreError(DashboardError):
    """Raised when a store operation fails."""

    pass


class StoreUnavailableError(StoreError):
    """Raised when the store connection cannot be established."""

    pass


class PartialSyncError(StoreError):
    """
    Raised when one or more record batches failed during a full sync.

    Batches for different record kinds are independent, so some kinds may
    already be committed. Callers should retry the whole sync.

    Attributes:
        committed: Record kinds whose batch was committed
        failed: Mapping of record kind to the error message
    """

    def __init__(self, committed: list[str], failed: dict[str, str]) -> None:
        self.committed = committed
        self.failed = failed
        details = "; ".join(f"{kind}: {msg}" for kind, msg in failed.items())
        committed_str = ", ".join(committed) if committed else "none"
        super().__init__(f"Sync partially failed ({details}). Committed: {committed_str}")


class InvalidPayloadError(DashboardError):
    """Raised when a pushed sync payload is missing required fields."""

    pass


class UnauthorizedError(DashboardError):
    """Raised when the cron shared secret does not match."""

    pass
