"""Pytest configuration and shared fixtures."""

import asyncio
import os
from typing import Dict, List, Optional, Tuple

import pytest

# Set test environment before importing config
os.environ.setdefault("RESALLOC_NAMESPACE", "default")
os.environ.setdefault("RESALLOC_POD_POLL_INTERVAL", "0.01")

from resalloc_kubernetes.models.errors import GatewayError
from resalloc_kubernetes.models.request import (
    ProvisionRequest,
    SecretMount,
    VolumeRequest,
)
from resalloc_kubernetes.models.resources import (
    PodStatusSnapshot,
    ResourceKind,
    ResourceSnapshot,
)
from resalloc_kubernetes.services.cluster.gateway import ClusterGateway
from resalloc_kubernetes.services.sandbox.manager import SandboxManager

POD = ResourceKind.POD
PVC = ResourceKind.PERSISTENT_VOLUME_CLAIM


class FakeGateway(ClusterGateway):
    """In-memory gateway recording every call it receives."""

    def __init__(self, namespace: str = "test_ns", pod_ip: Optional[str] = "10.0.0.12"):
        self.namespace = namespace
        self.pod_ip = pod_ip
        self.calls: List[Tuple[str, ResourceKind, str]] = []
        self.created: Dict[Tuple[ResourceKind, str], object] = {}
        self.list_result: List[ResourceSnapshot] = []
        self.errors: Dict[Tuple[str, ResourceKind], Exception] = {}
        self.wait_forever = False
        self.wait_error: Optional[Exception] = None
        self.closed = False

    def fail(self, method: str, kind: ResourceKind, error: Exception) -> None:
        self.errors[(method, kind)] = error

    def _maybe_fail(self, method: str, kind: ResourceKind) -> None:
        error = self.errors.get((method, kind))
        if error is not None:
            raise error

    def calls_to(self, method: str, kind: Optional[ResourceKind] = None):
        return [
            call
            for call in self.calls
            if call[0] == method and (kind is None or call[1] == kind)
        ]

    async def create_resource(self, kind, manifest):
        name = manifest.metadata.name
        self.calls.append(("create", kind, name))
        self._maybe_fail("create", kind)
        self.created[(kind, name)] = manifest

    async def get_resource(self, kind, name):
        self.calls.append(("get", kind, name))
        self._maybe_fail("get", kind)
        return ResourceSnapshot(
            kind=kind,
            name=name,
            namespace=self.namespace,
            labels={"app": "resalloc-kubernetes"},
            status=PodStatusSnapshot(phase="Running", pod_ip=self.pod_ip),
        )

    async def list_resources(self, kind, field_selector):
        self.calls.append(("list", kind, field_selector))
        self._maybe_fail("list", kind)
        return list(self.list_result)

    async def delete_resource(self, kind, name):
        self.calls.append(("delete", kind, name))
        self._maybe_fail("delete", kind)

    async def await_condition(self, kind, name, predicate, timeout=None):
        self.calls.append(("wait", kind, name))
        if self.wait_error is not None:
            raise self.wait_error
        if self.wait_forever:
            await asyncio.Event().wait()

    def close(self):
        self.closed = True


def make_pod_snapshot(
    name: str,
    labels: Dict[str, str],
    pod_ip: str = "10.0.0.12",
    claim_names: Tuple[str, ...] = (),
) -> ResourceSnapshot:
    return ResourceSnapshot(
        kind=POD,
        name=name,
        namespace="test_ns",
        labels=labels,
        status=PodStatusSnapshot(phase="Running", pod_ip=pod_ip),
        claim_names=claim_names,
    )


@pytest.fixture
def fake_gateway():
    """Fake cluster gateway with a running pod at 10.0.0.12."""
    return FakeGateway()


@pytest.fixture
def manager(fake_gateway):
    """SandboxManager wired to the fake gateway."""
    return SandboxManager(gateway=fake_gateway)


@pytest.fixture
def basic_request():
    """Request without volume or secret."""
    return ProvisionRequest(
        image="x:1",
        cpu="100m",
        memory="500Mi",
        namespace="test_ns",
        timeout=5,
    )


@pytest.fixture
def volume_request():
    """Request with a persistent volume."""
    return ProvisionRequest(
        image="openeuler/openeuler:22.03",
        cpu="100m",
        memory="500Mi",
        namespace="test_ns",
        timeout=5,
        volume=VolumeRequest(
            size="10Gi", storage_class="test_pvc", mount_path="/etc/test_mount"
        ),
    )


@pytest.fixture
def secret_mount():
    return SecretMount(
        mount_path="/home/copr/server.crt", name="copr-secrets", sub_path="server-crt"
    )


@pytest.fixture
def not_found_error():
    return GatewayError("Not Found", status=404, reason="Not Found")


@pytest.fixture
def pod_snapshot():
    """Factory for pod snapshots returned by list_resources."""
    return make_pod_snapshot
