"""Error types and exception classes for resalloc-kubernetes."""

from enum import Enum
from typing import List, Optional


class ErrorType(str, Enum):
    """Error type enumeration."""

    VALIDATION = "validation"
    INVALID_STATE = "invalid_state"
    EXTERNAL_SERVICE = "external_service"
    PROVISIONING_FAILED = "provisioning_failed"
    TIMEOUT = "timeout"
    ADDRESS_UNAVAILABLE = "address_unavailable"
    RESOURCE_NOT_FOUND = "resource_not_found"


# Custom Exception Classes


class ResallocException(Exception):
    """Base exception for resalloc-kubernetes."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.PROVISIONING_FAILED,
        exit_code: int = 1,
    ):
        self.message = message
        self.error_type = error_type
        self.exit_code = exit_code
        super().__init__(message)


class InvalidRequest(ResallocException):
    """Malformed or contradictory provisioning input."""

    def __init__(self, message: str = "Invalid request", **kwargs):
        kwargs.setdefault("error_type", ErrorType.VALIDATION)
        super().__init__(message=message, exit_code=2, **kwargs)


class InvalidState(InvalidRequest):
    """A manifest field that must start empty was already populated."""

    def __init__(self, message: str = "Invalid manifest state"):
        super().__init__(message, error_type=ErrorType.INVALID_STATE)


class GatewayError(ResallocException):
    """A call to the cluster API failed."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        self.status = status
        self.reason = reason
        super().__init__(message=message, error_type=ErrorType.EXTERNAL_SERVICE)

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_conflict(self) -> bool:
        return self.status == 409


class ProvisioningFailed(ResallocException):
    """Provisioning failed after resources were submitted.

    ``cause`` is the error that triggered the rollback. ``rollback_errors``
    holds any compensating delete that failed in turn.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        error_type: ErrorType = ErrorType.PROVISIONING_FAILED,
    ):
        self.cause = cause
        self.rollback_errors: List[GatewayError] = []
        super().__init__(message=message, error_type=error_type)


class ProvisioningTimedOut(ProvisioningFailed):
    """The sandbox did not become ready before the deadline."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause, error_type=ErrorType.TIMEOUT)


class AddressUnavailable(ProvisioningFailed):
    """The pod is running but reports no network address."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(
            message, cause=cause, error_type=ErrorType.ADDRESS_UNAVAILABLE
        )


class NotFound(ResallocException):
    """No resource matched a delete request."""

    def __init__(self, target: str, message: Optional[str] = None):
        self.target = target
        error_message = message or f"Failed to find any pods for {target}"
        super().__init__(
            message=error_message, error_type=ErrorType.RESOURCE_NOT_FOUND
        )
