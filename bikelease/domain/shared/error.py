"""Error hierarchy and classification for bikelease.

Error layers:
- OrderError: Base class for all bikelease errors
- DomainError: Malformed or invalid input (4xx responses)
- InfrastructureError: Configuration and gateway failures (500 responses)

Every failure that leaves the submission pipeline is turned into exactly one
ClassifiedError by `classify`. Classification looks at the exception type only;
messages of foreign exceptions are never copied into the result.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class OrderError(Exception):
    """Base class for all bikelease errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (caller mistakes - typically 4xx)
# =============================================================================


class DomainError(OrderError):
    """Base class for domain/business errors."""


class MalformedInputError(DomainError):
    """Request body is empty or cannot be parsed as structured data."""


class ValidationError(DomainError):
    """Input parsed but failed schema or business rules."""

    def __init__(self, message: str, violations: list[str]) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.violations = violations


# =============================================================================
# Infrastructure Errors (system-level failures - typically 500)
# =============================================================================


class InfrastructureError(OrderError):
    """Base class for infrastructure/system errors."""


class ConfigurationError(InfrastructureError):
    """A required connection descriptor is missing or malformed."""

    def __init__(self, message: str, code: str = "CONFIGURATION_ERROR") -> None:
        super().__init__(message, code=code)


class GatewayError(InfrastructureError):
    """A downstream gateway call failed."""

    gateway: str = "unknown"


class StorageError(GatewayError):
    """Order storage is unavailable or rejected the operation."""

    gateway = "storage"


class NotificationError(GatewayError):
    """Order notification could not be delivered."""

    gateway = "notification"


# =============================================================================
# Classification
# =============================================================================


class ErrorCategory(StrEnum):
    INPUT_MALFORMED = "input_malformed"
    INPUT_INVALID = "input_invalid"
    CONFIGURATION_ERROR = "configuration_error"
    DEPENDENCY_ERROR = "dependency_error"
    UNCLASSIFIED = "unclassified"


CATEGORY_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.INPUT_MALFORMED: 400,
    ErrorCategory.INPUT_INVALID: 400,
    ErrorCategory.CONFIGURATION_ERROR: 500,
    ErrorCategory.DEPENDENCY_ERROR: 500,
    ErrorCategory.UNCLASSIFIED: 500,
}

CONFIGURATION_MESSAGE = "Service configuration error"
INTERNAL_MESSAGE = "Internal server error"

# Caller-facing messages for gateway failures, keyed by machine code.
GATEWAY_MESSAGES: dict[str, str] = {
    "STORAGE_INIT_ERROR": "Failed to initialize order storage",
    "STORAGE_ERROR": "Failed to store order",
    "NOTIFICATION_ERROR": "Failed to send order notification",
}


class ClassifiedError(BaseModel):
    """Caller-safe description of a failed request."""

    model_config = ConfigDict(frozen=True)

    category: ErrorCategory
    message: str
    code: str
    http_status: int
    field_violations: tuple[str, ...] | None = None
    gateway: str | None = None

    def to_body(self) -> dict:
        """Render the failure response body."""
        body: dict = {"success": False, "message": self.message}
        if self.category == ErrorCategory.INPUT_INVALID:
            body["errors"] = list(self.field_violations or ())
        elif self.category in (
            ErrorCategory.CONFIGURATION_ERROR,
            ErrorCategory.DEPENDENCY_ERROR,
        ):
            body["code"] = self.code
        return body


def _classified(category: ErrorCategory, message: str, code: str, **extra) -> ClassifiedError:
    return ClassifiedError(
        category=category,
        message=message,
        code=code,
        http_status=CATEGORY_STATUS[category],
        **extra,
    )


def classify(error: BaseException) -> ClassifiedError:
    """Map any raised failure to exactly one ClassifiedError.

    Order of the checks does not matter: the handled types are disjoint.
    """
    if isinstance(error, MalformedInputError):
        return _classified(ErrorCategory.INPUT_MALFORMED, error.message, error.code)

    if isinstance(error, ValidationError):
        return _classified(
            ErrorCategory.INPUT_INVALID,
            error.message,
            error.code,
            field_violations=tuple(error.violations),
        )

    if isinstance(error, ConfigurationError):
        return _classified(
            ErrorCategory.CONFIGURATION_ERROR, CONFIGURATION_MESSAGE, "CONFIGURATION_ERROR"
        )

    if isinstance(error, GatewayError):
        code = error.code if error.code in GATEWAY_MESSAGES else _default_code(error)
        return _classified(
            ErrorCategory.DEPENDENCY_ERROR,
            GATEWAY_MESSAGES[code],
            code,
            gateway=error.gateway,
        )

    return _classified(ErrorCategory.UNCLASSIFIED, INTERNAL_MESSAGE, "INTERNAL_ERROR")


def _default_code(error: GatewayError) -> str:
    if isinstance(error, NotificationError):
        return "NOTIFICATION_ERROR"
    return "STORAGE_ERROR"
