"""Error hierarchy for CRS.

Error layers:
- CRSError: Base class for all CRS errors
- DomainError: Malformed search input, unsupported relationships
- InfrastructureError: Cache or configuration failures

Failures raised by a StoreCapability implementation are not part of this
hierarchy. They propagate to the caller exactly as the store raised them.
"""


class CRSError(Exception):
    """Base class for all CRS errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(CRSError):
    """Base class for domain errors."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidSpecificationError(ValidationError):
    """An include spec, parameter entry or page request is structurally malformed.

    Raised at construction time, before anything reaches the orchestrator.
    """


class UnknownRelationshipError(DomainError):
    """A store does not support the requested relationship.

    Stores raise this from fetch_related; the graph expander treats it as
    zero matches.
    """

    def __init__(self, related_type: str, search_param: str) -> None:
        super().__init__(
            f"Unknown relationship {related_type}:{search_param}",
            code="UNKNOWN_RELATIONSHIP",
        )
        self.related_type = related_type
        self.search_param = search_param


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(CRSError):
    """Base class for infrastructure/system errors."""


class CacheUnavailableError(InfrastructureError):
    """Count cache backend is missing or failed. Never fatal to a search."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
