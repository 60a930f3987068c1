"""procwarden exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path


class ProcwardenError(Exception):
    """Base exception for procwarden errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(ProcwardenError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(ProcwardenError):
    """Base exception for supervisor errors."""


class LaunchError(SupervisorError):
    """Raised when the supervised executable cannot be started.

    Attributes:
        process_name: Name of the process that failed to launch.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        process_name: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and launch context.

        Args:
            message: Human-readable error message.
            process_name: Name of the process that failed to launch.
            cause: The underlying exception, if any.
        """
        super().__init__(message)
        self.process_name: str = process_name
        self.cause: Exception | None = cause


class ProbeError(SupervisorError):
    """Raised when liveness cannot be determined at all.

    Timeouts are not errors: they yield ``ProcessState.UNKNOWN``. This is
    reserved for an unreadable process table or a missing service manager.
    """

    def __init__(
        self,
        message: str,
        *,
        process_name: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and probe context."""
        super().__init__(message)
        self.process_name: str = process_name
        self.cause: Exception | None = cause


class ConflictTerminationError(SupervisorError):
    """Raised when a conflicting helper process could not be terminated.

    Attributes:
        pids: Process IDs that survived termination.
    """

    def __init__(
        self,
        message: str,
        *,
        pids: tuple[int, ...] = (),
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and surviving process IDs."""
        super().__init__(message)
        self.pids: tuple[int, ...] = pids
        self.cause: Exception | None = cause


class RestartError(SupervisorError):
    """Raised when a restart request fails.

    Attributes:
        process_name: Name of the process that failed to restart.
        exit_code: Exit code of the restart command, if one was run.
    """

    def __init__(
        self,
        message: str,
        *,
        process_name: str,
        exit_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and restart context."""
        super().__init__(message)
        self.process_name: str = process_name
        self.exit_code: int | None = exit_code
        self.cause: Exception | None = cause


class LogSourceError(SupervisorError):
    """Raised when recent log entries cannot be read."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        """Initialize with error message and the underlying exception."""
        super().__init__(message)
        self.cause: Exception | None = cause
