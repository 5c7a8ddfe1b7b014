"""Cluster gateway interface.

The sandbox manager talks to the cluster only through this surface, which
keeps it testable against an in-memory implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ...models.resources import ResourceKind, ResourceSnapshot

ResourcePredicate = Callable[[ResourceSnapshot], bool]


def is_pod_running(snapshot: ResourceSnapshot) -> bool:
    """The pod has been scheduled and its phase is Running."""
    return snapshot.status is not None and snapshot.status.phase == "Running"


class ClusterGateway(ABC):
    """Capability interface over the orchestration API.

    Every call is a single remote operation that either succeeds or raises
    ``GatewayError``.
    """

    namespace: str

    @abstractmethod
    async def create_resource(self, kind: ResourceKind, manifest) -> None:
        """Submit a manifest."""

    @abstractmethod
    async def get_resource(self, kind: ResourceKind, name: str) -> ResourceSnapshot:
        """Fetch a resource by name."""

    @abstractmethod
    async def list_resources(
        self, kind: ResourceKind, field_selector: str
    ) -> List[ResourceSnapshot]:
        """List resources matching a field selector such as ``status.podIP=1.2.3.4``."""

    @abstractmethod
    async def delete_resource(self, kind: ResourceKind, name: str) -> None:
        """Delete a resource by name."""

    @abstractmethod
    async def await_condition(
        self,
        kind: ResourceKind,
        name: str,
        predicate: ResourcePredicate,
        timeout: Optional[float] = None,
    ) -> None:
        """Block until ``predicate`` holds for the resource.

        Raises:
            ProvisioningTimedOut: If ``timeout`` seconds elapse first
            GatewayError: If the resource cannot be read
        """

    def close(self) -> None:
        """Release client resources."""
