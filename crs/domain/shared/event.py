"""Domain events and event handlers."""

from abc import ABCMeta
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, ClassVar, Generic, NewType, TypeVar, dataclass_transform, get_args, get_origin
from uuid import UUID

from pydantic import BaseModel, Field

EventId = NewType("EventId", UUID)

E = TypeVar("E", bound="Event")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Event(BaseModel):
    """Base class for domain events.

    Subclasses are automatically registered by name in Event._registry.
    """

    id: EventId
    created_at: datetime = Field(default_factory=_utc_now)

    _registry: ClassVar[dict[str, type["Event"]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._registry[cls.__name__] = cls


def _extract_event_type(cls: type) -> type["Event"] | None:
    """Extract the event type E from EventHandler[E] in class bases."""
    for base in getattr(cls, "__orig_bases__", []):
        origin = get_origin(base)
        origin_name = getattr(origin, "__name__", None)
        if origin is not None and origin_name == "EventHandler":
            args = get_args(base)
            if args and isinstance(args[0], type) and issubclass(args[0], Event):
                return args[0]
    return None


@dataclass_transform()
class _EventHandlerMeta(ABCMeta):
    """Metaclass that applies @dataclass and extracts __event_type__ from EventHandler[E]."""

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]) -> type:
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(b, mcs) for b in bases):
            cls = dataclass(cls)
            event_type = _extract_event_type(cls)
            if event_type is not None:
                cls.__event_type__ = event_type
        return cls


class EventHandler(Generic[E], metaclass=_EventHandlerMeta):
    """Base class for event handlers.

    Subclasses are automatically dataclasses with DI-injected dependencies.
    The __event_type__ is extracted from the generic parameter.

    Example:
        class InvalidateCountCache(EventHandler[ResourcesChanged]):
            cache: CountCache

            async def handle(self, event: ResourcesChanged) -> None:
                self.cache.invalidate_all()
    """

    __event_type__: ClassVar[type[Event]]

    async def handle(self, event: E) -> None:
        """Handle a single event.

        Raises:
            NotImplementedError: If neither handle() nor handle_batch() is overridden.
        """
        raise NotImplementedError(
            f"{type(self).__name__} must implement handle() or handle_batch()"
        )

    async def handle_batch(self, events: list[E]) -> None:
        """Handle a batch of events. Default implementation loops over handle()."""
        for event in events:
            await self.handle(event)
