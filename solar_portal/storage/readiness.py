"""One-way NOT_READY -> READY barrier for storage initialization."""

import asyncio
import enum
import logging
from typing import Callable, List

logger = logging.getLogger(__name__)


class ReadyState(str, enum.Enum):
    NOT_READY = "not_ready"
    READY = "ready"


class ReadinessGate:
    def __init__(self):
        self.state = ReadyState.NOT_READY
        self._waiters: List[asyncio.Future] = []
        self._callbacks: List[Callable[[], None]] = []

    @property
    def is_ready(self) -> bool:
        return self.state is ReadyState.READY

    def on_ready(self) -> asyncio.Future:
        """Return a future that resolves once storage is ready.

        Must be called from a running event loop. The future is already done
        when the gate has opened.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        if self.is_ready:
            future.set_result(None)
        else:
            self._waiters.append(future)
        return future

    def on_ready_callback(self, callback: Callable[[], None]):
        if self.is_ready:
            callback()
        else:
            self._callbacks.append(callback)

    def mark_ready(self):
        if self.is_ready:
            return
        self.state = ReadyState.READY

        waiters, self._waiters = self._waiters, []
        callbacks, self._callbacks = self._callbacks, []

        for future in waiters:
            if not future.done():
                future.set_result(None)
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Storage ready callback failed")

        logger.info("Storage ready (%d waiters, %d callbacks released)", len(waiters), len(callbacks))
