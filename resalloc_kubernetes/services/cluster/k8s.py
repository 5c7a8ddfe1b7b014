"""Kubernetes implementation of the cluster gateway.

Wraps the official client's CoreV1Api. Client calls are blocking, so each
one runs in a worker thread to keep the readiness wait cancellable.
"""

import asyncio
from typing import Any, Callable, List, Optional

import structlog
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as TransportError

from ...config import KubernetesConfig, settings
from ...models.errors import GatewayError, ProvisioningTimedOut
from ...models.resources import PodStatusSnapshot, ResourceKind, ResourceSnapshot
from .gateway import ClusterGateway, ResourcePredicate

logger = structlog.get_logger(__name__)


def snapshot_from_object(kind: ResourceKind, obj: Any) -> ResourceSnapshot:
    """Build a ResourceSnapshot from a V1Pod or V1PersistentVolumeClaim."""
    metadata = obj.metadata
    status = None
    claim_names = ()

    if kind == ResourceKind.POD:
        if obj.status is not None:
            status = PodStatusSnapshot(
                phase=obj.status.phase,
                pod_ip=obj.status.pod_ip,
            )
        if obj.spec is not None and obj.spec.volumes:
            claim_names = tuple(
                volume.persistent_volume_claim.claim_name
                for volume in obj.spec.volumes
                if volume.persistent_volume_claim is not None
            )

    return ResourceSnapshot(
        kind=kind,
        name=metadata.name,
        namespace=metadata.namespace,
        labels=dict(metadata.labels or {}),
        status=status,
        claim_names=claim_names,
    )


class KubernetesGateway(ClusterGateway):
    """Cluster gateway backed by the Kubernetes API.

    Loads configuration lazily from:
    1. An explicit kubeconfig file, when configured
    2. In-cluster config (when running in Kubernetes)
    3. The default ~/.kube/config or KUBECONFIG
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        k8s_config: Optional[KubernetesConfig] = None,
        core_v1: Optional[client.CoreV1Api] = None,
    ):
        self._config = k8s_config or settings.kubernetes
        self.namespace = namespace or self._config.namespace
        self._core_v1: Optional[client.CoreV1Api] = core_v1
        self._loaded = core_v1 is not None

    def _ensure_loaded(self) -> None:
        """Lazy-load Kubernetes configuration."""
        if self._loaded:
            return

        try:
            if self._config.kubeconfig:
                config.load_kube_config(
                    config_file=self._config.kubeconfig,
                    context=self._config.kube_context,
                )
                logger.debug("Loaded kubeconfig", path=self._config.kubeconfig)
            else:
                try:
                    config.load_incluster_config()
                    logger.debug("Loaded in-cluster config")
                except config.ConfigException:
                    config.load_kube_config(context=self._config.kube_context)
                    logger.debug("Loaded default kubeconfig")
        except config.ConfigException as e:
            logger.error("Failed to load Kubernetes config", error=str(e))
            raise GatewayError(f"Failed to load Kubernetes config: {e}")

        self._core_v1 = client.CoreV1Api()
        self._loaded = True

    @property
    def core_v1(self) -> client.CoreV1Api:
        self._ensure_loaded()
        return self._core_v1  # type: ignore

    async def _call(
        self, action: str, kind: ResourceKind, target: str, fn: Callable, **kwargs
    ):
        """Run a client call in a worker thread and translate its errors."""
        kwargs.setdefault("_request_timeout", self._config.k8s_api_timeout)
        try:
            return await asyncio.to_thread(fn, **kwargs)
        except ApiException as e:
            raise GatewayError(
                f"Failed to {action} {kind.value} {target}: {e.reason}",
                status=e.status,
                reason=e.reason,
            ) from e
        except TransportError as e:
            raise GatewayError(
                f"Failed to {action} {kind.value} {target}: {e}"
            ) from e

    async def create_resource(self, kind: ResourceKind, manifest) -> None:
        name = manifest.metadata.name
        if kind == ResourceKind.POD:
            fn = self.core_v1.create_namespaced_pod
        else:
            fn = self.core_v1.create_namespaced_persistent_volume_claim
        await self._call("create", kind, name, fn, namespace=self.namespace, body=manifest)
        logger.debug("Created resource", kind=kind.value, name=name)

    async def get_resource(self, kind: ResourceKind, name: str) -> ResourceSnapshot:
        if kind == ResourceKind.POD:
            fn = self.core_v1.read_namespaced_pod
        else:
            fn = self.core_v1.read_namespaced_persistent_volume_claim
        obj = await self._call("read", kind, name, fn, name=name, namespace=self.namespace)
        return snapshot_from_object(kind, obj)

    async def list_resources(
        self, kind: ResourceKind, field_selector: str
    ) -> List[ResourceSnapshot]:
        if kind == ResourceKind.POD:
            fn = self.core_v1.list_namespaced_pod
        else:
            fn = self.core_v1.list_namespaced_persistent_volume_claim
        result = await self._call(
            "list",
            kind,
            field_selector,
            fn,
            namespace=self.namespace,
            field_selector=field_selector,
        )
        return [snapshot_from_object(kind, item) for item in result.items]

    async def delete_resource(self, kind: ResourceKind, name: str) -> None:
        if kind == ResourceKind.POD:
            fn = self.core_v1.delete_namespaced_pod
        else:
            fn = self.core_v1.delete_namespaced_persistent_volume_claim
        await self._call("delete", kind, name, fn, name=name, namespace=self.namespace)
        logger.debug("Deleted resource", kind=kind.value, name=name)

    async def await_condition(
        self,
        kind: ResourceKind,
        name: str,
        predicate: ResourcePredicate,
        timeout: Optional[float] = None,
    ) -> None:
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while True:
            snapshot = await self.get_resource(kind, name)
            if predicate(snapshot):
                return

            phase = snapshot.status.phase if snapshot.status else None
            logger.debug("Waiting for resource", kind=kind.value, name=name, phase=phase)

            if deadline is not None and loop.time() >= deadline:
                raise ProvisioningTimedOut(
                    f"Timed out after {timeout} seconds waiting for {kind.value} {name}"
                )
            await asyncio.sleep(self._config.pod_poll_interval)

    def close(self) -> None:
        if self._core_v1 is not None:
            self._core_v1.api_client.close()
