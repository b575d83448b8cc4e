"""Service layer — business logic orchestration."""


class ServiceError(Exception):
    """Base service exception."""


class NotFoundError(ServiceError):
    """Resource not found (-> HTTP 404)."""


class ValidationError(ServiceError):
    """Input validation or state transition error (-> HTTP 422)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ExternalServiceError(ServiceError):
    """Extraction service or text generator unreachable/erroring (-> HTTP 502)."""


class ReportSerializationError(ServiceError):
    """Report could not be loaded, rendered or stored; nothing was persisted."""
