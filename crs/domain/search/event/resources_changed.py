"""ResourcesChanged event - emitted after records are created, updated or voided."""

from crs.domain.shared.event import Event


class ResourcesChanged(Event):
    """Records of ``resource_types`` changed; cached counts may be stale."""

    resource_types: frozenset[str] = frozenset()
