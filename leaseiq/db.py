from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings

engine: AsyncEngine = create_async_engine(settings.LEASEIQ_DB_URL, echo=False, future=True)

# Canonical async session factory
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models(target: AsyncEngine | None = None) -> None:
    from .models import Base

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
