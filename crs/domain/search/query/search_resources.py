"""SearchResources query - run one search, or a combined search over two parameter maps."""

from pydantic import InstanceOf

from crs.domain.search.model.parameter import ParameterMap
from crs.domain.search.model.result import ExpandedResultSet, PageRequest
from crs.domain.search.port.store import StoreCapability
from crs.domain.search.service.orchestrator import SearchOrchestrator
from crs.domain.shared.query import Query, QueryHandler, Result


class SearchResources(Query):
    params: ParameterMap
    page: PageRequest = PageRequest.create()
    # When set, matches of this map are paged after matches of params
    then: ParameterMap | None = None


class SearchResult(Result):
    results: InstanceOf[ExpandedResultSet]


class SearchResourcesHandler(QueryHandler[SearchResources, SearchResult]):
    orchestrator: SearchOrchestrator
    store: StoreCapability

    async def run(self, cmd: SearchResources) -> SearchResult:
        if cmd.then is None:
            results = await self.orchestrator.execute(cmd.params, self.store, cmd.page)
        else:
            results = await self.orchestrator.execute_combined(
                cmd.params, cmd.then, self.store, cmd.page
            )
        return SearchResult(results=results)
