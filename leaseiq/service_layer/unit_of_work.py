# leaseiq/service_layer/unit_of_work.py
from __future__ import annotations

from typing import Callable, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.repos.listings import ListingsRepo
from ..db import AsyncSessionLocal

SessionFactory = Callable[[], AsyncSession]


class UnitOfWork(Protocol):
    session: AsyncSession | None
    listings: ListingsRepo | None

    async def __aenter__(self) -> "UnitOfWork": ...
    async def __aexit__(self, exc_type, exc, tb) -> None: ...
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


class SqlAlchemyUnitOfWork:
    """
    One session, one transaction. Commits on clean exit, rolls back on any
    exception (cancellation included).
    """

    def __init__(self, session_factory: SessionFactory | None = None) -> None:
        self.session_factory = session_factory or AsyncSessionLocal
        self.session: AsyncSession | None = None
        self.listings: ListingsRepo | None = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self.session_factory()
        self.listings = ListingsRepo(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                await self.rollback()
            else:
                await self.commit()
        finally:
            if self.session:
                await self.session.close()

    async def commit(self) -> None:
        assert self.session is not None
        await self.session.commit()

    async def rollback(self) -> None:
        assert self.session is not None
        await self.session.rollback()
