"""Command-line interface for allocating Kubernetes pods for resalloc.

Usage:
  resalloc-kubernetes add --image-tag IMAGE --cpu-resource 1 --memory-resource 2Gi
  resalloc-kubernetes delete --name 10.0.0.12
  resalloc-kubernetes --namespace copr add ... --dry-run

On success ``add`` prints the pod IP address on stdout; ``delete`` prints
nothing. Failures exit non-zero with the cause on stderr.
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

import structlog
from dotenv import load_dotenv
from rich.console import Console

from . import __version__
from .config import settings
from .models.errors import ResallocException
from .models.request import ProvisionRequest, SecretMount, VolumeRequest
from .services.sandbox.manager import SandboxManager
from .utils.error_handlers import handle_cli_exception
from .utils.logging import setup_logging

logger = structlog.get_logger(__name__)

err_console = Console(stderr=True)


# ============================================================================
# Argument Parsing
# ============================================================================


def _secret_mount(value: str) -> SecretMount:
    try:
        return SecretMount.parse(value)
    except ResallocException as e:
        raise argparse.ArgumentTypeError(e.message)


def _timeout(value: str) -> int:
    try:
        seconds = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timeout: '{value}'")
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"timeout must not be negative, got {seconds}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="resalloc-kubernetes",
        description="Allocate kubernetes pod for resalloc framework",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument(
        "--namespace",
        default=None,
        help=f"kubernetes namespace (default: {settings.namespace})",
    )

    # Lets --namespace also follow the subcommand
    namespace_parent = argparse.ArgumentParser(add_help=False)
    namespace_parent.add_argument(
        "--namespace", default=argparse.SUPPRESS, help=argparse.SUPPRESS
    )

    subparsers = parser.add_subparsers(dest="command")

    add = subparsers.add_parser(
        "add", parents=[namespace_parent], help="Create new pod resource"
    )
    add.add_argument(
        "--timeout",
        type=_timeout,
        default=settings.default_timeout,
        help="timeout for waiting pod to be ready",
    )
    add.add_argument(
        "--image-tag",
        required=True,
        help="specify the image tag used for generating, "
        "for example: docker.io/organization/image:tag",
    )
    add.add_argument(
        "--cpu-resource",
        required=True,
        help="specify the request and limit cpu resource, '1', '2000m' and etc.",
    )
    add.add_argument(
        "--memory-resource",
        required=True,
        help="specify the request and limit memory resource, '1024Mi', '2Gi' and etc.",
    )
    add.add_argument(
        "--node-selector",
        action="append",
        default=[],
        help="specify the node selector for pod resource in the format of "
        "'NAME=VALUE', can be specified with multiple times",
    )
    add.add_argument(
        "--privileged", action="store_true", help="run pod in privileged mode"
    )
    add.add_argument(
        "--additional-labels",
        action="append",
        default=[],
        help="specify the additional labels for pod resource in the format of "
        "'NAME=VALUE', can be specified with multiple times",
    )
    add.add_argument(
        "--additional-volume-size",
        help="specify the additional persistent volume size, use in group("
        "additional_volume_size, additional_volume_class, additional_volume_mount_path).",
    )
    add.add_argument(
        "--additional-volume-class",
        help="specify the additional persistent volume class, use in group("
        "additional_volume_size, additional_volume_class, additional_volume_mount_path).",
    )
    add.add_argument(
        "--additional-volume-mount-path",
        help="specify mount point for persistent volume, use in group("
        "additional_volume_size, additional_volume_class, additional_volume_mount_path).",
    )
    add.add_argument(
        "--dry-run",
        action="store_true",
        help="just dry run and print the resources to create as yaml",
    )
    add.add_argument(
        "--secret",
        type=_secret_mount,
        help="specify secret in <mountPath>:<name>:<subPath> form",
    )

    default_name = os.environ.get("RESALLOC_NAME")
    delete = subparsers.add_parser(
        "delete",
        parents=[namespace_parent],
        help="Delete existing pod resource by IP address",
    )
    delete.add_argument(
        "--name",
        default=default_name,
        required=default_name is None,
        help="specify ip address of pod to delete (env: RESALLOC_NAME)",
    )

    return parser


def build_request(args: argparse.Namespace) -> ProvisionRequest:
    """Turn parsed ``add`` arguments into a ProvisionRequest.

    Raises:
        InvalidRequest: If the volume options are only partially given
    """
    volume = VolumeRequest.from_fields(
        size=args.additional_volume_size,
        storage_class=args.additional_volume_class,
        mount_path=args.additional_volume_mount_path,
    )
    return ProvisionRequest(
        image=args.image_tag,
        cpu=args.cpu_resource,
        memory=args.memory_resource,
        namespace=args.namespace or settings.namespace,
        timeout=args.timeout,
        privileged=args.privileged,
        additional_labels=tuple(args.additional_labels),
        node_selectors=tuple(args.node_selector),
        secret=args.secret,
        volume=volume,
        dry_run=args.dry_run,
    )


# ============================================================================
# Commands
# ============================================================================


async def run_add(args: argparse.Namespace, manager: SandboxManager) -> None:
    request = build_request(args)
    outcome = await manager.add(request)
    if outcome.dry_run:
        sys.stdout.write(outcome.rendered)
    else:
        print(outcome.address)


async def run_delete(args: argparse.Namespace, manager: SandboxManager) -> None:
    deleted = await manager.delete(args.name, namespace=args.namespace)
    logger.info("Delete finished", target=args.name, deleted=len(deleted))


COMMANDS = {
    "add": run_add,
    "delete": run_delete,
}


def main(argv: Optional[List[str]] = None, manager: Optional[SandboxManager] = None) -> int:
    """Entry point. Returns the process exit code."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.debug else None)

    if args.command is None:
        parser.print_help(sys.stderr)
        return 2

    manager = manager or SandboxManager()
    try:
        asyncio.run(COMMANDS[args.command](args, manager))
    except Exception as e:
        return handle_cli_exception(e, err_console)
    finally:
        manager.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
