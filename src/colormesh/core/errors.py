"""
Unified error handling for colormesh.

Construction-time errors (naming, plan building) abort before any provider
is called. Submission-time failures are reported as ProvisioningFailure with
the resources that were created before the failure.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Provider error (external provisioning failure)
- 12: Validation error (bad variant, empty topology, dangling reference, cycle)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, Sequence, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class ColorMeshError(Exception):
    """Base exception for colormesh errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ColorMeshError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ProviderError(ColorMeshError):
    """Raised when an external provider fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class ValidationError(ColorMeshError):
    """Raised for validation failures."""

    exit_code = ExitCode.VALIDATION_ERROR


class InvalidVariantError(ValidationError):
    """Variant identifier is empty or not usable as a DNS label."""

    def __init__(self, variant: str, reason: str):
        super().__init__(
            f"Invalid variant {variant!r}: {reason}",
            details={"variant": variant},
        )
        self.variant = variant


class EmptyTopologyError(ValidationError):
    """No variants were supplied."""

    def __init__(self) -> None:
        super().__init__("At least one variant is required to build a topology")


class DanglingReferenceError(ValidationError):
    """A route or virtual service references a node missing from the plan."""

    def __init__(self, referrer: str, missing: str):
        super().__init__(
            f"{referrer} references unknown virtual node {missing!r}",
            details={"referrer": referrer, "missing": missing},
        )
        self.referrer = referrer
        self.missing = missing


class InvalidWeightError(ValidationError):
    """Weighted targets are negative, non-integer, or sum to zero."""


class CyclicDependencyError(ValidationError):
    """The dependency graph contains a cycle."""

    def __init__(self, unresolved: Sequence[str]):
        super().__init__(
            "Dependency cycle detected among: " + ", ".join(unresolved),
            details={"unresolved": list(unresolved)},
        )
        self.unresolved = list(unresolved)


class ProvisioningFailure(ProviderError):
    """A provider call failed while submitting the plan.

    ``created`` lists the resource ids that were provisioned, in order,
    before the failure. Nothing is rolled back.
    """

    def __init__(self, resource_id: str, cause: BaseException, created: Sequence[str]):
        super().__init__(
            f"Provisioning failed at {resource_id}: {cause}",
            details={"resource_id": resource_id, "created": list(created)},
        )
        self.resource_id = resource_id
        self.cause = cause
        self.created = list(created)


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
    show_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI commands that provides unified error handling.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog
        show_errors: If True, print the error message on the console

    Exit codes:
        - ColorMeshError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except ColorMeshError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if show_errors:
                    report_error(e)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_errors:
                    report_error(ColorMeshError(f"Unexpected error: {e}"))
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: ColorMeshError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg


def report_error(error: ColorMeshError) -> None:
    """Print error on the CLI console."""
    from rich.markup import escape

    from colormesh.cli.ux import error as print_error

    print_error(escape(format_error_message(error)))
