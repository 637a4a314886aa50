from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from solar_portal.database.base import Base


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


async def init_db(engine: AsyncEngine):
    """Create the key-value table (the store carries no migrations)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
