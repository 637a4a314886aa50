"""Simple string-keyed medium: one text file per key in a local directory."""

import asyncio
import logging
import os
import pathlib
import re
import tempfile
from typing import Dict, Optional

from solar_portal.storage.errors import StorageUnavailable

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
SUFFIX = ".json"


class FileMedium:
    """Directory-backed string store with an optional total-size quota.

    The *_now methods are synchronous so callers can read small values (the
    session mirror) before the event loop has finished starting the store.
    """

    def __init__(self, base_dir: str, quota_bytes: int = 0):
        self.base_dir = pathlib.Path(base_dir).resolve()
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> pathlib.Path:
        if not KEY_PATTERN.match(key):
            raise StorageUnavailable(f"Invalid storage key: {key!r}")
        return self.base_dir / f"{key}{SUFFIX}"

    def _used_bytes(self, excluding: pathlib.Path) -> int:
        total = 0
        for entry in self.base_dir.glob(f"*{SUFFIX}"):
            if entry != excluding:
                total += entry.stat().st_size
        return total

    # -----------------------------------------------------------------------
    # Synchronous API
    # -----------------------------------------------------------------------

    def read_now(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            data = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailable(f"Fallback read failed for {key}: {e}") from e
        return data or None

    def write_now(self, key: str, data: str):
        path = self._path(key)
        encoded = data.encode("utf-8")
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            if self.quota_bytes and self._used_bytes(path) + len(encoded) > self.quota_bytes:
                raise StorageUnavailable(
                    f"Fallback quota exceeded writing {key} ({len(encoded)} bytes)"
                )
            fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=".tmp-", suffix=SUFFIX + ".part")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(encoded)
                os.replace(tmp_name, path)
            except BaseException:
                pathlib.Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageUnavailable(f"Fallback write failed for {key}: {e}") from e

    def delete_now(self, key: str):
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Fallback delete failed for {key}: {e}") from e

    def clear_now(self):
        if not self.base_dir.exists():
            return
        try:
            for entry in self.base_dir.glob(f"*{SUFFIX}"):
                entry.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Fallback clear failed: {e}") from e

    # -----------------------------------------------------------------------
    # Async API
    # -----------------------------------------------------------------------

    async def read(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self.read_now, key)

    async def write(self, key: str, data: str):
        await asyncio.to_thread(self.write_now, key, data)

    async def write_many(self, items: Dict[str, str]):
        """Write key by key; there is no transaction in this medium."""
        for key, data in items.items():
            await self.write(key, data)

    async def delete(self, key: str):
        await asyncio.to_thread(self.delete_now, key)

    async def clear(self):
        await asyncio.to_thread(self.clear_now)
