import logging

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

load_dotenv()

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Point plain sqlite URLs at the aiosqlite driver."""
    if not url:
        raise ValueError("DATABASE_URL is not set.")

    if url.startswith("sqlite+pysqlite://"):
        return url.replace("sqlite+pysqlite://", "sqlite+aiosqlite://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def create_engine(database_url: str) -> AsyncEngine:
    url = normalize_database_url(database_url)
    logger.debug("Creating structured store engine for %s", url.split("://", 1)[0])
    return create_async_engine(url, pool_pre_ping=True)
