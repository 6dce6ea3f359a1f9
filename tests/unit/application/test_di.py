"""Tests for container wiring."""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from crs.application.di import create_container
from crs.config import Config, CountCacheConfig, DatabaseConfig
from crs.domain.search.handler.invalidate_count_cache import InvalidateCountCache
from crs.domain.search.model.parameter import ParameterMap
from crs.domain.search.model.result import PageRequest, TotalCount
from crs.domain.search.port.count_cache import CountCache
from crs.domain.search.port.store import StoreCapability
from crs.domain.search.query.search_resources import SearchResources, SearchResourcesHandler
from crs.domain.search.service.orchestrator import SearchOrchestrator
from crs.infrastructure.persistence.database import create_schema
from crs.infrastructure.persistence.store import SQLAlchemyResourceStore
from crs.util.di.scope import Scope


def make_config(**overrides) -> Config:
    return Config(database=DatabaseConfig(url="sqlite+aiosqlite:///:memory:"), **overrides)


class TestContainer:
    @pytest.mark.asyncio
    async def test_resolves_search_handler_per_unit_of_work(self):
        # Arrange
        container = create_container(make_config())
        try:
            await create_schema(await container.get(AsyncEngine))

            # Act
            async with container(scope=Scope.UOW) as uow:
                handler = await uow.get(SearchResourcesHandler)
                store = await uow.get(StoreCapability)
                result = await handler.run(
                    SearchResources(
                        params=ParameterMap.builder("Patient").build(),
                        page=PageRequest(exact_total=True),
                    )
                )

            # Assert
            assert isinstance(store, SQLAlchemyResourceStore)
            assert result.results.total == TotalCount(value=0, exact=True)
        finally:
            await container.close()

    @pytest.mark.asyncio
    async def test_count_cache_is_shared(self):
        container = create_container(make_config())
        try:
            orchestrator = await container.get(SearchOrchestrator)
            handler = await container.get(InvalidateCountCache)

            assert orchestrator.count_cache is await container.get(CountCache)
            assert handler.count_cache is orchestrator.count_cache
        finally:
            await container.close()

    @pytest.mark.asyncio
    async def test_disabled_count_cache(self):
        container = create_container(make_config(count_cache=CountCacheConfig(enabled=False)))
        try:
            orchestrator = await container.get(SearchOrchestrator)

            assert orchestrator.count_cache is None
        finally:
            await container.close()
