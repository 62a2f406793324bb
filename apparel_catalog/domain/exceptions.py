"""Domain exceptions.

All domain-level errors that represent business rule violations or
failed collaborators. The API layer maps each type to a distinct,
typed response.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """Raised for malformed or out-of-range input (size, type, numeric bounds)."""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Human-readable error message.
            field: Name of the offending input field, if any.
            details: Optional additional context.
        """
        context = dict(details or {})
        if field is not None:
            context["field"] = field
        super().__init__(message, details=context)
        self.field = field


class NotFoundOrUnauthorizedError(DomainError):
    """Raised when a design is absent or the caller does not own it.

    Both outcomes share one error so that non-owners cannot probe
    for the existence of other sellers' designs.
    """

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str) -> None:
        """Initialize not-found error.

        Args:
            entity_type: Type of entity (e.g., "Design").
            entity_id: ID that was looked up.
        """
        super().__init__(
            f"{entity_type} {entity_id} not found or unauthorized",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


class ConflictError(DomainError):
    """Raised when a size would be duplicated within one design."""

    error_code = "CONFLICT"

    def __init__(self, size: str, design_id: str | None = None) -> None:
        """Initialize conflict error.

        Args:
            size: The duplicated size name.
            design_id: Design the duplicate belongs to, if already persisted.
        """
        if design_id is None:
            message = f"Duplicate size '{size}' in request"
        else:
            message = f"Design {design_id} already has a variant of size '{size}'"
        super().__init__(message, details={"size": size, "design_id": design_id})
        self.size = size


class UpstreamUnavailableError(DomainError):
    """Raised by cache or queue adapters when their backing service fails.

    Never escapes the adapter that raised it.
    """

    error_code = "UPSTREAM_UNAVAILABLE"

    def __init__(self, upstream: str, reason: str) -> None:
        """Initialize upstream error.

        Args:
            upstream: Name of the failing collaborator (e.g., "cache").
            reason: Underlying error description.
        """
        super().__init__(
            f"{upstream} unavailable: {reason}",
            details={"upstream": upstream, "reason": reason},
        )
        self.upstream = upstream


class PartialWriteError(DomainError):
    """Raised when a multi-record write stopped part way through.

    Records written before the failure stay committed. The details
    describe what was applied so the caller can retry the remainder.
    """

    error_code = "PARTIAL_WRITE"

    def __init__(
        self,
        design_id: str,
        reason: str,
        applied: list[str] | None = None,
        compensated: bool = False,
    ) -> None:
        """Initialize partial write error.

        Args:
            design_id: Design whose write was interrupted.
            reason: Underlying error description.
            applied: Sizes already written before the failure.
            compensated: Whether a compensating action undid the design write.
        """
        super().__init__(
            f"Write for design {design_id} was interrupted: {reason}",
            details={
                "design_id": design_id,
                "applied": applied or [],
                "compensated": compensated,
            },
        )
        self.design_id = design_id
        self.compensated = compensated
