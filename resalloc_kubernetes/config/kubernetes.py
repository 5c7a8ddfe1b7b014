"""Kubernetes API access configuration."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class KubernetesConfig(BaseSettings):
    """Cluster connection and polling settings."""

    namespace: str = Field(default="default", min_length=1)
    kubeconfig: Optional[str] = Field(default=None)
    kube_context: Optional[str] = Field(default=None)
    k8s_api_timeout: int = Field(default=15, ge=1, le=300)
    pod_poll_interval: float = Field(default=1.0, gt=0, le=60)

    class Config:
        env_prefix = "RESALLOC_"
        extra = "ignore"
