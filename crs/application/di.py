from dishka import AsyncContainer, Provider, from_context, make_async_container

from crs.config import Config
from crs.domain.search.util.di import SearchProvider
from crs.infrastructure.persistence import PersistenceProvider
from crs.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()

    return make_async_container(
        ConfigProvider(),
        PersistenceProvider(),
        SearchProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
