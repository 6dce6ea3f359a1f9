"""Query and QueryHandler base classes."""

from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, dataclass_transform

from pydantic import BaseModel


class Query(BaseModel): ...


class Result(BaseModel): ...


C = TypeVar("C", bound=Query)
R = TypeVar("R", bound=Result)


@dataclass_transform()
class _QueryHandlerMeta(ABCMeta):
    """Metaclass that combines ABC with auto-dataclass for subclasses."""

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]):
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(b, mcs) for b in bases):
            cls = dataclass(cls)
        return cls


class QueryHandler(Generic[C, R], metaclass=_QueryHandlerMeta):
    """Base class for query handlers. Subclasses are automatically dataclasses.

    Dependencies are declared as fields and injected by the container:
        class MyHandler(QueryHandler[MyQuery, MyResult]):
            orchestrator: SearchOrchestrator
            store: StoreCapability

    Authorization is not evaluated here. Stores handed to a handler are
    expected to filter what the caller may see.
    """

    @abstractmethod
    async def run(self, cmd: C) -> R: ...
