"""Solar portal local persistence and domain repositories."""

from solar_portal.store import DataStore

__all__ = ["DataStore"]
