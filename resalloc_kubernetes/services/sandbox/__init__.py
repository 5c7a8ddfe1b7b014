"""Sandbox provisioning services.

This package provides:
- identity.py: pod and claim naming
- manifest.py: ManifestBuilder for pod and claim manifests
- manager.py: SandboxManager allocation and teardown lifecycle
"""

from .identity import assign_identity, claim_name, new_sandbox_id
from .manifest import ManifestBuilder, render_manifests, to_yaml
from .manager import SandboxManager

__all__ = [
    "SandboxManager",
    "ManifestBuilder",
    "render_manifests",
    "to_yaml",
    "assign_identity",
    "claim_name",
    "new_sandbox_id",
]
