"""Custom Dishka scopes for CRS."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """CRS dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (engine, count cache, search services)
    - UOW: Unit of Work (one session and store per search or event batch)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
