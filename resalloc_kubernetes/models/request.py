"""Provisioning request models.

A ``ProvisionRequest`` is built once at the command-line boundary and is
never mutated afterwards.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import InvalidRequest


@dataclass(frozen=True)
class SecretMount:
    """A secret mounted into the sandbox container."""

    mount_path: str
    name: str
    sub_path: str

    @classmethod
    def parse(cls, value: str) -> "SecretMount":
        """Parse ``<mountPath>:<name>:<subPath>``."""
        parts = value.split(":")
        if len(parts) != 3 or not all(parts):
            raise InvalidRequest(
                f"Secret must be given as <mountPath>:<name>:<subPath>, got '{value}'"
            )
        return cls(mount_path=parts[0], name=parts[1], sub_path=parts[2])


@dataclass(frozen=True)
class VolumeRequest:
    """A persistent volume claim requested for the sandbox."""

    size: str
    storage_class: str
    mount_path: str

    @classmethod
    def from_fields(
        cls,
        size: Optional[str] = None,
        storage_class: Optional[str] = None,
        mount_path: Optional[str] = None,
    ) -> Optional["VolumeRequest"]:
        """Build a volume request from the three optional fields.

        The fields are all-or-nothing: all three yield a request, none yields
        ``None`` and anything in between raises ``InvalidRequest``.
        """
        fields = {
            "additional-volume-size": size,
            "additional-volume-class": storage_class,
            "additional-volume-mount-path": mount_path,
        }
        present = [name for name, value in fields.items() if value]
        if not present:
            return None
        if len(present) != len(fields):
            missing = sorted(set(fields) - set(present))
            raise InvalidRequest(
                "Volume options must be used together, missing: "
                + ", ".join(f"--{name}" for name in missing)
            )
        return cls(size=size, storage_class=storage_class, mount_path=mount_path)


@dataclass(frozen=True)
class ProvisionRequest:
    """Validated input for one sandbox allocation."""

    image: str
    cpu: str
    memory: str
    namespace: str = "default"
    timeout: int = 90
    privileged: bool = False
    additional_labels: Tuple[str, ...] = ()
    node_selectors: Tuple[str, ...] = ()
    secret: Optional[SecretMount] = None
    volume: Optional[VolumeRequest] = None
    dry_run: bool = False

    @property
    def has_volume(self) -> bool:
        return self.volume is not None
