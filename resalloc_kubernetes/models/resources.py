"""Cluster resource models.

These are read-only views of what the cluster reports, plus the identifiers
and outcome of a single allocation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class ResourceKind(str, Enum):
    """Kinds of cluster resources the tool manages."""

    POD = "Pod"
    PERSISTENT_VOLUME_CLAIM = "PersistentVolumeClaim"


class ProvisionState(str, Enum):
    """States of a single allocation."""

    BUILDING = "building"
    SUBMITTING = "submitting"
    WAITING = "waiting"
    RESOLVING = "resolving"
    READY = "ready"
    ROLLING_BACK = "rolling_back"
    FAILED = "failed"


@dataclass(frozen=True)
class PodStatusSnapshot:
    """Subset of a pod's status."""

    phase: Optional[str] = None
    pod_ip: Optional[str] = None


@dataclass(frozen=True)
class ResourceSnapshot:
    """A resource as last reported by the cluster."""

    kind: ResourceKind
    name: str
    namespace: str
    labels: Dict[str, str] = field(default_factory=dict)
    status: Optional[PodStatusSnapshot] = None
    claim_names: Tuple[str, ...] = ()  # PVCs referenced by a pod's volumes

    @property
    def address(self) -> Optional[str]:
        """Assigned pod IP, if any."""
        if self.status is None:
            return None
        return self.status.pod_ip


@dataclass(frozen=True)
class SandboxIdentity:
    """Names assigned to one allocation."""

    pod_name: str
    namespace: str
    claim_name: Optional[str] = None


@dataclass
class ProvisionOutcome:
    """Result of a successful ``add``."""

    identity: SandboxIdentity
    address: Optional[str] = None
    rendered: Optional[str] = None  # YAML documents for dry runs
    dry_run: bool = False
