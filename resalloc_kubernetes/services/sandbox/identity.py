"""Sandbox and claim naming."""

import uuid

from ...config import settings
from ...models.request import ProvisionRequest
from ...models.resources import SandboxIdentity


def new_sandbox_id() -> str:
    """Generate a unique pod name, ``resalloc-<uuid4>``.

    No collision check is made against the cluster.
    """
    return f"{settings.name_prefix}-{uuid.uuid4()}"


def claim_name(namespace: str, storage_class: str) -> str:
    """Derive the claim name shared by all sandboxes of a namespace and class."""
    return f"{settings.name_prefix}-{namespace}-{storage_class}"


def assign_identity(request: ProvisionRequest) -> SandboxIdentity:
    """Assign the names used by one allocation."""
    claim = None
    if request.volume is not None:
        claim = claim_name(request.namespace, request.volume.storage_class)
    return SandboxIdentity(
        pod_name=new_sandbox_id(),
        namespace=request.namespace,
        claim_name=claim,
    )
