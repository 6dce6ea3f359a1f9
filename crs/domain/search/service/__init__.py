from crs.domain.search.service.expander import GraphExpander
from crs.domain.search.service.orchestrator import SearchOrchestrator

__all__ = ["GraphExpander", "SearchOrchestrator"]
