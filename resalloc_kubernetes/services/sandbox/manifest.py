"""Pod and persistent volume claim manifests.

ManifestBuilder turns a ProvisionRequest into Kubernetes API objects
without contacting the cluster. The same request and names always yield
the same documents.
"""

from typing import Dict, Iterable, List, Optional, Union

import structlog
import yaml
from kubernetes import client

from ...config import settings
from ...models.errors import InvalidRequest, InvalidState
from ...models.request import ProvisionRequest
from ...utils.selectors import format_pairs, parse_pairs

logger = structlog.get_logger(__name__)

Manifest = Union[client.V1Pod, client.V1PersistentVolumeClaim]

READ_WRITE_ONCE = "ReadWriteOnce"


class ManifestBuilder:
    """Builds pod and claim manifests for a sandbox.

    Labels every resource with ``app=<marker>`` so that teardown only
    touches what this tool created.
    """

    def __init__(
        self,
        app_marker: Optional[str] = None,
        image_pull_policy: Optional[str] = None,
        strict_selectors: Optional[bool] = None,
    ):
        self.app_marker = app_marker or settings.app_marker
        self.image_pull_policy = image_pull_policy or settings.image_pull_policy
        if strict_selectors is None:
            strict_selectors = settings.strict_selectors
        self.strict_selectors = strict_selectors

    def build_claim(
        self, request: ProvisionRequest, claim_name: str
    ) -> client.V1PersistentVolumeClaim:
        """Build the persistent volume claim for a volume request.

        Raises:
            InvalidRequest: If the request carries no volume
        """
        if request.volume is None:
            raise InvalidRequest(
                "A claim can only be built for a request with all volume options set"
            )

        return client.V1PersistentVolumeClaim(
            api_version="v1",
            kind="PersistentVolumeClaim",
            metadata=client.V1ObjectMeta(
                name=claim_name,
                namespace=request.namespace,
                labels={"app": self.app_marker},
            ),
            spec=client.V1PersistentVolumeClaimSpec(
                access_modes=[READ_WRITE_ONCE],
                resources=client.V1VolumeResourceRequirements(
                    requests={"storage": request.volume.size},
                ),
                storage_class_name=request.volume.storage_class,
            ),
        )

    def build_pod(
        self,
        request: ProvisionRequest,
        pod_name: str,
        claim_name: Optional[str] = None,
        has_volume: bool = False,
    ) -> client.V1Pod:
        """Build the sandbox pod.

        Args:
            request: Validated provisioning request
            pod_name: Generated sandbox name, also used for the container
            claim_name: Name of the claim to mount when ``has_volume`` is set
            has_volume: Whether the claim is mounted into the container

        Returns:
            V1Pod ready to submit

        Raises:
            InvalidRequest: If a volume is wanted but not fully described
            InvalidState: If the node selector was already populated
        """
        if has_volume and (request.volume is None or not claim_name):
            raise InvalidRequest(
                "A pod with a volume needs a complete volume request and a claim name"
            )

        labels = {
            "app": self.app_marker,
            "has_volume": "true" if has_volume else "false",
        }

        volumes: List[client.V1Volume] = []
        volume_mounts: List[client.V1VolumeMount] = []

        # Secret entries are listed before the claim entries
        if request.secret is not None:
            secret = request.secret
            volumes.append(
                client.V1Volume(
                    name=secret.name,
                    secret=client.V1SecretVolumeSource(secret_name=secret.name),
                )
            )
            volume_mounts.append(
                client.V1VolumeMount(
                    mount_path=secret.mount_path,
                    name=secret.name,
                    sub_path=secret.sub_path,
                )
            )

        if has_volume:
            volumes.append(
                client.V1Volume(
                    name=claim_name,
                    persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(
                        claim_name=claim_name,
                    ),
                )
            )
            volume_mounts.append(
                client.V1VolumeMount(
                    mount_path=request.volume.mount_path,
                    name=claim_name,
                )
            )

        quantities = {"cpu": request.cpu, "memory": request.memory}
        container = client.V1Container(
            name=pod_name,
            image=request.image,
            image_pull_policy=self.image_pull_policy,
            security_context=client.V1SecurityContext(privileged=request.privileged),
            resources=client.V1ResourceRequirements(
                limits=dict(quantities),
                requests=dict(quantities),
            ),
            volume_mounts=volume_mounts or None,
        )

        pod = client.V1Pod(
            api_version="v1",
            kind="Pod",
            metadata=client.V1ObjectMeta(
                name=pod_name,
                namespace=request.namespace,
                labels=labels,
            ),
            spec=client.V1PodSpec(
                containers=[container],
                volumes=volumes or None,
            ),
        )

        if request.additional_labels:
            pod.metadata.labels.update(
                parse_pairs(request.additional_labels, strict=self.strict_selectors)
            )

        self.install_node_selectors(pod, request.node_selectors)

        logger.debug(
            "Built pod manifest",
            pod_name=pod_name,
            namespace=request.namespace,
            has_volume=has_volume,
            has_secret=request.secret is not None,
            labels=format_pairs(pod.metadata.labels),
        )
        return pod

    def install_node_selectors(self, pod: client.V1Pod, entries: Iterable[str]) -> None:
        """Install parsed node selectors on a pod.

        Raises:
            InvalidState: If the pod already has a node selector
        """
        entries = list(entries)
        if not entries:
            return
        if pod.spec.node_selector is not None:
            raise InvalidState("Generated pod resource node selector should be empty")
        pod.spec.node_selector = parse_pairs(entries, strict=self.strict_selectors)


def to_document(manifest: Manifest) -> Dict:
    """Convert an API object to its plain document form."""
    return client.ApiClient().sanitize_for_serialization(manifest)


def to_yaml(manifest: Manifest) -> str:
    """Render one manifest as YAML with sorted keys."""
    return yaml.safe_dump(
        to_document(manifest), default_flow_style=False, sort_keys=True
    )


def render_manifests(*manifests: Optional[Manifest]) -> str:
    """Render manifests as a stream of ``---`` separated YAML documents."""
    return "".join(
        f"---\n{to_yaml(manifest)}" for manifest in manifests if manifest is not None
    )
