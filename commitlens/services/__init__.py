"""Service layer — business logic orchestration."""


class ServiceError(Exception):
    """Base service exception."""


class NotFoundError(ServiceError):
    """Resource not found (-> HTTP 404)."""


class ConflictError(ServiceError):
    """Request matches more than one resource (-> HTTP 409)."""


class ValidationError(ServiceError):
    """Input validation error (-> HTTP 422)."""


class InvalidFilter(ValidationError):
    """Fact filter cannot be satisfied, e.g. ``date_from`` after ``date_to``."""


class InvalidWeight(ValidationError):
    """Commit or category weight outside [0, 100].

    Raised both by the mutation path (rejecting input) and by the weight
    resolver (surfacing a corrupt stored value). Weights are never clamped.
    """


class AmbiguousCommit(ConflictError):
    """A commit hash exists in several repositories and none was named."""
