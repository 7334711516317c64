"""Service-layer error types."""


class LedgerError(ValueError):
    """A ledger operation was rejected before anything was written."""


__all__ = ["LedgerError"]
