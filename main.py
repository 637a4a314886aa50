"""Solar Portal local store entry point.

Opens the portal store with the configured mediums, logs what it holds, and
shuts it down again. Useful as a smoke check of a storage directory.
"""

import asyncio
import logging

from solar_portal.core.config import settings
from solar_portal.observability import setup_structured_logging
from solar_portal.store import DataStore

setup_structured_logging(settings)
logger = logging.getLogger(__name__)


async def main():
    store = DataStore(settings)
    logger.info("Solar Portal store starting up")

    bootstrap = store.bootstrap_session()
    if bootstrap is not None:
        logger.info("Mirrored session found for user %s", bootstrap.user_id)

    await store.initialize()
    try:
        session = store.auth.restore_session()
        summary = store.summary()
        logger.info(
            "Store ready: mode=%s session=%s counts=%s",
            "fallback" if store.degraded else "structured",
            session.user_id if session else None,
            summary.counts,
        )
    finally:
        await store.shutdown()
        logger.info("Solar Portal store shutting down")


if __name__ == "__main__":
    asyncio.run(main())
