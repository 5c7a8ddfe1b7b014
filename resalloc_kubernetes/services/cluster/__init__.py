"""Cluster access.

- gateway.py: ClusterGateway interface and readiness predicates
- k8s.py: KubernetesGateway backed by the official client
"""

from .gateway import ClusterGateway, is_pod_running
from .k8s import KubernetesGateway

__all__ = ["ClusterGateway", "KubernetesGateway", "is_pod_running"]
