"""Dual-medium key-value adapter.

Write policy: best-effort write to the structured medium, then always write
the fallback medium as well, then read the key back and report success if a
value is present. The read-back only checks presence, not equality.

Read policy: structured medium first, fallback medium second.

A fault in either medium is logged and the next medium is tried; callers only
ever see None / False.
"""

import json
import logging
from typing import Any, Dict, Optional

from solar_portal.storage.errors import StorageUnavailable
from solar_portal.storage.fallback import FileMedium
from solar_portal.storage.readiness import ReadinessGate
from solar_portal.storage.structured import StructuredMedium

logger = logging.getLogger(__name__)


class KeyValueAdapter:
    def __init__(
        self,
        structured: Optional[StructuredMedium],
        fallback: FileMedium,
        gate: Optional[ReadinessGate] = None,
    ):
        self.structured = structured
        self.fallback = fallback
        self.gate = gate or ReadinessGate()
        self._init_attempted = False

    @property
    def degraded(self) -> bool:
        """True when only the fallback medium is in use."""
        return self.structured is None or not self.structured.is_open

    async def init(self) -> bool:
        """Open the structured medium once, then open the gate regardless."""
        if self._init_attempted:
            await self.gate.on_ready()
            return not self.degraded
        self._init_attempted = True

        if self.structured is None:
            logger.info("Structured store disabled, using fallback medium only")
        else:
            try:
                await self.structured.open()
            except StorageUnavailable as e:
                logger.warning("Structured store failed, using fallback medium: %s", e)
                self.structured = None

        self.gate.mark_ready()
        return not self.degraded

    async def close(self):
        if self.structured is not None:
            await self.structured.close()

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def get(self, key: str) -> Any:
        if not self.degraded:
            try:
                data = await self.structured.read(key)
                if data:
                    return json.loads(data)
            except (StorageUnavailable, ValueError) as e:
                logger.warning("Structured get failed for %s: %s", key, e)

        try:
            data = await self.fallback.read(key)
            if data:
                return json.loads(data)
        except (StorageUnavailable, ValueError) as e:
            logger.warning("Fallback get failed for %s: %s", key, e)

        return None

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    async def set(self, key: str, value: Any) -> bool:
        return await self.set_many({key: value})

    async def set_many(self, values: Dict[str, Any]) -> bool:
        """Write several keys; the structured medium gets one transaction."""
        if not values:
            return True
        encoded = {key: json.dumps(value) for key, value in values.items()}

        if not self.degraded:
            try:
                await self.structured.write_many(encoded)
            except StorageUnavailable as e:
                logger.warning("Structured set failed, relying on fallback: %s", e)

        for key, data in encoded.items():
            try:
                await self.fallback.write(key, data)
            except StorageUnavailable as e:
                logger.warning("Fallback set failed for %s: %s", key, e)

        ok = True
        for key in encoded:
            if await self.get(key) is None:
                logger.error("Save verification failed for %s", key)
                ok = False
        return ok

    async def remove(self, key: str) -> bool:
        if not self.degraded:
            try:
                await self.structured.delete(key)
            except StorageUnavailable as e:
                logger.warning("Structured remove failed for %s: %s", key, e)
        try:
            await self.fallback.delete(key)
        except StorageUnavailable as e:
            logger.warning("Fallback remove failed for %s: %s", key, e)
        return True

    async def clear_all(self) -> bool:
        if not self.degraded:
            try:
                await self.structured.clear()
            except StorageUnavailable as e:
                logger.warning("Structured clear failed: %s", e)
        try:
            await self.fallback.clear()
        except StorageUnavailable as e:
            logger.warning("Fallback clear failed: %s", e)
        return True
