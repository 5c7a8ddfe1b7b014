"""Data models for resalloc-kubernetes."""

from .errors import (
    ErrorType,
    ResallocException,
    InvalidRequest,
    InvalidState,
    GatewayError,
    ProvisioningFailed,
    ProvisioningTimedOut,
    AddressUnavailable,
    NotFound,
)
from .request import ProvisionRequest, SecretMount, VolumeRequest
from .resources import (
    PodStatusSnapshot,
    ProvisionOutcome,
    ProvisionState,
    ResourceKind,
    ResourceSnapshot,
    SandboxIdentity,
)

__all__ = [
    # Error models
    "ErrorType",
    "ResallocException",
    "InvalidRequest",
    "InvalidState",
    "GatewayError",
    "ProvisioningFailed",
    "ProvisioningTimedOut",
    "AddressUnavailable",
    "NotFound",
    # Request models
    "ProvisionRequest",
    "SecretMount",
    "VolumeRequest",
    # Resource models
    "PodStatusSnapshot",
    "ProvisionOutcome",
    "ProvisionState",
    "ResourceKind",
    "ResourceSnapshot",
    "SandboxIdentity",
]
