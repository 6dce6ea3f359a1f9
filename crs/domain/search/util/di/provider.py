from dishka import Provider, provide

from crs.config import Config
from crs.domain.search.handler.invalidate_count_cache import InvalidateCountCache
from crs.domain.search.port.count_cache import CountCache
from crs.domain.search.query.search_resources import SearchResourcesHandler
from crs.domain.search.service.expander import GraphExpander
from crs.domain.search.service.orchestrator import SearchOrchestrator
from crs.infrastructure.cache.memory import InMemoryCountCache
from crs.util.di.scope import Scope


class SearchProvider(Provider):
    # Services
    @provide(scope=Scope.APP)
    def get_count_cache(self, config: Config) -> CountCache:
        return InMemoryCountCache.from_config(config.count_cache)

    @provide(scope=Scope.APP)
    def get_expander(self) -> GraphExpander:
        return GraphExpander()

    @provide(scope=Scope.APP)
    def get_orchestrator(
        self, expander: GraphExpander, count_cache: CountCache, config: Config
    ) -> SearchOrchestrator:
        return SearchOrchestrator(
            expander=expander,
            config=config.search,
            count_cache=count_cache if config.count_cache.enabled else None,
            count_ttl=config.count_cache.ttl_seconds,
        )

    # Query Handlers
    search_resources_handler = provide(SearchResourcesHandler, scope=Scope.UOW)

    # Event Handlers
    invalidate_count_cache = provide(InvalidateCountCache, scope=Scope.APP)
