from dataclasses import dataclass
from typing import dataclass_transform


@dataclass_transform()
class _ServiceMeta(type):
    """Turns every Service subclass into a dataclass."""

    def __new__(mcs, name: str, bases: tuple, namespace: dict):
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(b, mcs) for b in bases):
            return dataclass(cls)
        return cls


class Service(metaclass=_ServiceMeta):
    """Base class for domain services.

    Collaborators are declared as annotated fields and passed by keyword,
    either by hand in tests or by the DI container:
        class SearchOrchestrator(Service):
            expander: GraphExpander
            config: SearchConfig
    """
