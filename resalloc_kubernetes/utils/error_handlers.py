"""Error reporting for the command-line interface."""

# Standard library imports
import traceback

# Third-party imports
import structlog
from rich.console import Console
from rich.markup import escape

# Local application imports
from ..models.errors import (
    GatewayError,
    InvalidRequest,
    ProvisioningFailed,
    ResallocException,
)

logger = structlog.get_logger(__name__)


def format_exception(exc: ResallocException) -> str:
    """Build the human-readable message for a known failure."""
    message = exc.message
    if isinstance(exc, GatewayError) and exc.status is not None:
        message = f"{message} (status {exc.status})"
    if isinstance(exc, ProvisioningFailed) and exc.cause is not None:
        if str(exc.cause) and str(exc.cause) not in message:
            message = f"{message}, due to {exc.cause}"
    return message


def handle_resalloc_exception(exc: ResallocException, console: Console) -> int:
    """Report a ResallocException and return the process exit code."""
    log_data = {
        "error_type": exc.error_type.value,
        "exit_code": exc.exit_code,
        "message": exc.message,
    }
    if isinstance(exc, GatewayError):
        log_data["status"] = exc.status
        log_data["reason"] = exc.reason

    # Log with appropriate level based on error type
    if isinstance(exc, InvalidRequest):
        logger.warning("Invalid request", **log_data)
    else:
        logger.error("Operation failed", **log_data)

    console.print(f"[red]Error:[/red] {escape(format_exception(exc))}")

    if isinstance(exc, ProvisioningFailed):
        for rollback_error in exc.rollback_errors:
            console.print(
                f"[yellow]Rollback error:[/yellow] "
                f"{escape(format_exception(rollback_error))}"
            )

    return exc.exit_code


def handle_unexpected_exception(exc: Exception, console: Console) -> int:
    """Report an exception outside the known taxonomy."""
    logger.error(
        "Unexpected exception occurred",
        exception_type=type(exc).__name__,
        exception_message=str(exc),
    )
    logger.debug("Traceback", traceback=traceback.format_exc())
    console.print(f"[red]Error:[/red] {escape(str(exc) or type(exc).__name__)}")
    return 1


def handle_cli_exception(exc: Exception, console: Console) -> int:
    """Dispatch to the matching handler and return the exit code."""
    if isinstance(exc, ResallocException):
        return handle_resalloc_exception(exc, console)
    return handle_unexpected_exception(exc, console)
