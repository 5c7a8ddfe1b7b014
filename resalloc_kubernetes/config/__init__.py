"""Configuration management for resalloc-kubernetes.

Settings are read from ``RESALLOC_*`` environment variables and an optional
``.env`` file. Command-line flags override them per invocation.

Usage:
    from resalloc_kubernetes.config import settings

    # Grouped access
    settings.kubernetes.pod_poll_interval
    settings.logging.log_format

    # Flat access
    settings.namespace
    settings.default_timeout
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .kubernetes import KubernetesConfig
from .logging import LoggingConfig


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="RESALLOC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # SANDBOX DEFAULTS
    # ========================================================================

    namespace: str = Field(default="default", min_length=1)
    default_timeout: int = Field(
        default=90,
        ge=1,
        le=3600,
        description="Seconds to wait for a new pod to become ready",
    )
    app_marker: str = Field(
        default="resalloc-kubernetes",
        description="Value of the 'app' label marking resources owned by this tool",
    )
    name_prefix: str = Field(default="resalloc", min_length=1)
    image_pull_policy: str = Field(default="IfNotPresent")
    strict_selectors: bool = Field(
        default=False,
        description="Reject malformed KEY=VALUE entries instead of dropping them",
    )

    # ========================================================================
    # KUBERNETES
    # ========================================================================

    kubeconfig: Optional[str] = Field(default=None)
    kube_context: Optional[str] = Field(default=None)
    k8s_api_timeout: int = Field(default=15, ge=1, le=300)
    pod_poll_interval: float = Field(default=1.0, gt=0, le=60)

    # ========================================================================
    # LOGGING
    # ========================================================================

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept log levels in any case."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Only console and json renderers are available."""
        if v not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return v

    @field_validator("image_pull_policy")
    @classmethod
    def validate_image_pull_policy(cls, v):
        """Ensure the pull policy is one Kubernetes understands."""
        if v not in ("Always", "IfNotPresent", "Never"):
            raise ValueError(f"Invalid image pull policy: {v}")
        return v

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def kubernetes(self) -> KubernetesConfig:
        """Access Kubernetes configuration group."""
        return KubernetesConfig(
            namespace=self.namespace,
            kubeconfig=self.kubeconfig,
            kube_context=self.kube_context,
            k8s_api_timeout=self.k8s_api_timeout,
            pod_poll_interval=self.pod_poll_interval,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(log_level=self.log_level, log_format=self.log_format)


# Global settings instance
settings = Settings()


__all__ = ["Settings", "settings", "KubernetesConfig", "LoggingConfig"]
