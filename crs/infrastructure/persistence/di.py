from typing import AsyncIterable

from dishka import Provider, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from crs.config import Config
from crs.domain.search.port.store import StoreCapability
from crs.infrastructure.persistence.database import create_db_engine, create_session_factory
from crs.infrastructure.persistence.store import SQLAlchemyResourceStore
from crs.util.di.scope import Scope


class PersistenceProvider(Provider):
    # APP-scoped factories
    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config.database)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    # UOW-scoped session (one per unit of work); searches only read, so nothing is committed
    @provide(scope=Scope.UOW)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterable[AsyncSession]:
        async with session_factory() as session:
            yield session

    @provide(scope=Scope.UOW)
    def get_store(self, session: AsyncSession) -> StoreCapability:
        return SQLAlchemyResourceStore(session)
