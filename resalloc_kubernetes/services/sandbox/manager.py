"""Sandbox lifecycle management on Kubernetes.

An allocation moves through BUILDING, SUBMITTING, WAITING and RESOLVING to
READY. Any failure once the pod has been submitted runs compensating deletes
before the error reaches the caller. Teardown looks sandboxes up by address
and only removes resources carrying the ownership label.
"""

import asyncio
import ipaddress
from contextlib import asynccontextmanager
from typing import List, Optional

import structlog

from ...config import settings
from ...models.errors import (
    AddressUnavailable,
    GatewayError,
    NotFound,
    ProvisioningFailed,
    ProvisioningTimedOut,
)
from ...models.request import ProvisionRequest
from ...models.resources import (
    ProvisionOutcome,
    ProvisionState,
    ResourceKind,
    SandboxIdentity,
)
from ..cluster.gateway import ClusterGateway, is_pod_running
from .identity import assign_identity
from .manifest import ManifestBuilder, render_manifests

logger = structlog.get_logger(__name__)


class SandboxManager:
    """Allocates and releases sandbox pods.

    The gateway is created on first use unless one is injected, so dry runs
    never need cluster credentials.
    """

    def __init__(
        self,
        gateway: Optional[ClusterGateway] = None,
        builder: Optional[ManifestBuilder] = None,
    ):
        self._gateway = gateway
        self._builder = builder or ManifestBuilder()
        self._state: Optional[ProvisionState] = None

    @property
    def state(self) -> Optional[ProvisionState]:
        """State of the most recent allocation."""
        return self._state

    def _transition(self, state: ProvisionState, identity: SandboxIdentity) -> None:
        self._state = state
        logger.debug(
            "Provisioning state changed",
            state=state.value,
            pod_name=identity.pod_name,
        )

    def _get_gateway(self, namespace: str) -> ClusterGateway:
        if self._gateway is None:
            from ..cluster.k8s import KubernetesGateway

            self._gateway = KubernetesGateway(namespace=namespace)
        return self._gateway

    async def add(self, request: ProvisionRequest) -> ProvisionOutcome:
        """Allocate a sandbox and return its address.

        Args:
            request: Validated provisioning request

        Returns:
            ProvisionOutcome with the pod IP, or the rendered manifests for
            a dry run

        Raises:
            InvalidRequest: If the request cannot be turned into manifests
            GatewayError: If the claim cannot be created
            ProvisioningTimedOut: If the pod is not running before the timeout
            AddressUnavailable: If the running pod reports no IP
            ProvisioningFailed: For any other failure after submission
        """
        identity = assign_identity(request)
        self._transition(ProvisionState.BUILDING, identity)

        claim = None
        if request.volume is not None:
            claim = self._builder.build_claim(request, identity.claim_name)
        pod = self._builder.build_pod(
            request,
            identity.pod_name,
            claim_name=identity.claim_name,
            has_volume=request.has_volume,
        )

        if request.dry_run:
            logger.info(
                "Dry run, manifests not submitted",
                pod_name=identity.pod_name,
                claim_name=identity.claim_name,
            )
            return ProvisionOutcome(
                identity=identity,
                rendered=render_manifests(claim, pod),
                dry_run=True,
            )

        gateway = self._get_gateway(request.namespace)

        self._transition(ProvisionState.SUBMITTING, identity)
        claim_created = False
        if claim is not None:
            claim_created = await self._submit_claim(gateway, claim)

        async with self._rollback_on_failure(gateway, identity, claim_created):
            await gateway.create_resource(ResourceKind.POD, pod)
            logger.info(
                "Pod submitted",
                pod_name=identity.pod_name,
                namespace=identity.namespace,
                image=request.image,
            )

            self._transition(ProvisionState.WAITING, identity)
            await self._wait_until_running(gateway, identity, request.timeout)

            self._transition(ProvisionState.RESOLVING, identity)
            address = await self._resolve_address(gateway, identity)

        self._transition(ProvisionState.READY, identity)
        logger.info("Sandbox ready", pod_name=identity.pod_name, address=address)
        return ProvisionOutcome(identity=identity, address=address)

    async def _submit_claim(self, gateway: ClusterGateway, claim) -> bool:
        """Create the claim, returning whether this call created it.

        Claims are shared per namespace and storage class, so an existing
        claim of the same name is reused.
        """
        name = claim.metadata.name
        try:
            await gateway.create_resource(ResourceKind.PERSISTENT_VOLUME_CLAIM, claim)
        except GatewayError as e:
            if not e.is_conflict:
                raise
            logger.info("Reusing existing claim", claim_name=name)
            return False
        logger.info("Claim submitted", claim_name=name)
        return True

    async def _wait_until_running(
        self, gateway: ClusterGateway, identity: SandboxIdentity, timeout: int
    ) -> None:
        try:
            await asyncio.wait_for(
                gateway.await_condition(
                    ResourceKind.POD, identity.pod_name, is_pod_running, timeout
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProvisioningTimedOut(
                f"Pod {identity.pod_name} was not running after {timeout} seconds",
                cause=e,
            ) from e

    async def _resolve_address(
        self, gateway: ClusterGateway, identity: SandboxIdentity
    ) -> str:
        snapshot = await gateway.get_resource(ResourceKind.POD, identity.pod_name)
        if not snapshot.address:
            raise AddressUnavailable(
                f"Container IP address empty for pod {identity.pod_name}"
            )
        return snapshot.address

    @asynccontextmanager
    async def _rollback_on_failure(
        self,
        gateway: ClusterGateway,
        identity: SandboxIdentity,
        claim_created: bool,
    ):
        """Run compensating deletes on every non-success exit of the block."""
        try:
            yield
        except Exception as e:
            failed_state = self._state
            self._transition(ProvisionState.ROLLING_BACK, identity)
            rollback_errors = await self._rollback(gateway, identity, claim_created)
            self._transition(ProvisionState.FAILED, identity)

            if isinstance(e, ProvisioningFailed):
                error = e
            else:
                error = ProvisioningFailed(
                    f"Failed to create pod {identity.pod_name} while {failed_state.value}",
                    cause=e,
                )
            error.rollback_errors.extend(rollback_errors)
            logger.error(
                "Provisioning failed",
                pod_name=identity.pod_name,
                state=failed_state.value,
                error=str(e),
                rollback_errors=len(rollback_errors),
            )
            if error is e:
                raise
            raise error from e
        except BaseException:
            # Interrupted, still release what was created
            self._transition(ProvisionState.ROLLING_BACK, identity)
            await self._rollback(gateway, identity, claim_created)
            self._transition(ProvisionState.FAILED, identity)
            raise

    async def _rollback(
        self,
        gateway: ClusterGateway,
        identity: SandboxIdentity,
        claim_created: bool,
    ) -> List[GatewayError]:
        """Delete the pod and, when this allocation created it, the claim."""
        targets = [(ResourceKind.POD, identity.pod_name)]
        if claim_created and identity.claim_name:
            targets.append((ResourceKind.PERSISTENT_VOLUME_CLAIM, identity.claim_name))

        errors: List[GatewayError] = []
        for kind, name in targets:
            try:
                await gateway.delete_resource(kind, name)
                logger.info("Rolled back resource", kind=kind.value, name=name)
            except Exception as e:
                if isinstance(e, GatewayError) and e.is_not_found:
                    logger.debug("Resource already gone", kind=kind.value, name=name)
                    continue
                logger.error(
                    "Failed to roll back resource",
                    kind=kind.value,
                    name=name,
                    error=str(e),
                )
                if not isinstance(e, GatewayError):
                    wrapped = GatewayError(f"Failed to delete {kind.value} {name}: {e}")
                    wrapped.__cause__ = e
                    e = wrapped
                errors.append(e)
        return errors

    @staticmethod
    def field_selector_for(target: str) -> str:
        """Select pods by IP when ``target`` is an address, by name otherwise."""
        try:
            ipaddress.ip_address(target)
        except ValueError:
            return f"metadata.name={target}"
        return f"status.podIP={target}"

    async def delete(self, target: str, namespace: Optional[str] = None) -> List[str]:
        """Delete the sandboxes matching an address or pod name.

        Args:
            target: Pod IP address or pod name
            namespace: Namespace to search, defaults to the configured one

        Returns:
            Names of the deleted pods

        Raises:
            NotFound: If no pod matches
            GatewayError: On the first failed call, without trying further pods
        """
        logger.info("Starting to delete sandbox", target=target)
        gateway = self._get_gateway(namespace or settings.namespace)

        pods = await gateway.list_resources(
            ResourceKind.POD, self.field_selector_for(target)
        )
        if not pods:
            raise NotFound(target)

        deleted: List[str] = []
        for pod in pods:
            # Confirm it was created by this tool
            if pod.labels.get("app") != self._builder.app_marker:
                logger.info("Skipping pod not owned by resalloc", pod_name=pod.name)
                continue

            await gateway.delete_resource(ResourceKind.POD, pod.name)
            deleted.append(pod.name)
            logger.info("Pod has been deleted", pod_name=pod.name)

            if pod.labels.get("has_volume") == "true":
                for claim_name in pod.claim_names:
                    await self._delete_claim(gateway, claim_name)

        return deleted

    async def _delete_claim(self, gateway: ClusterGateway, claim_name: str) -> None:
        try:
            await gateway.delete_resource(
                ResourceKind.PERSISTENT_VOLUME_CLAIM, claim_name
            )
        except GatewayError as e:
            if not e.is_not_found:
                raise
            logger.info("Claim already released", claim_name=claim_name)
            return
        logger.info("Pod's claim has been deleted", claim_name=claim_name)

    def close(self) -> None:
        """Release the gateway's client resources."""
        if self._gateway is not None:
            self._gateway.close()
