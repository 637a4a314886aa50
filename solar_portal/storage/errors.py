class StorageUnavailable(Exception):
    """A storage medium is missing, unsupported, full, or returned unreadable data."""


class StoreNotReady(RuntimeError):
    """A write reached the cache before its startup load finished."""
