"""Protocol definitions for the supervisor system.

This module defines the seams between the supervisor loop and the outside
world, so every collaborator can be replaced by a fake in tests:
- Clock: Time source and sleeper driving the scheduler
- LivenessCheck: Strategy deciding whether the process is alive
- LogSource: Recent log lines for fault detection
- PidStore: Storage for the supervised process ID
- ConflictGuard: Finder and terminator for the conflicting helper
- Restarter: Action that (re)starts the supervised process
- EventSink: Consumer of restart events
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ._models import ProcessState, RestartEvent, SupervisedProcess


@runtime_checkable
class Clock(Protocol):
    """Monotonic time source used by the scheduler and coordinator."""

    def now(self) -> float:
        """Return the current monotonic time in seconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for the given number of seconds."""
        ...


@runtime_checkable
class LivenessCheck(Protocol):
    """Strategy for determining whether a supervised process is alive."""

    async def probe(self, process: SupervisedProcess) -> ProcessState:
        """Return the current state of the process.

        Raises:
            ProbeError: If the state cannot be determined at all.
        """
        ...


@runtime_checkable
class LogSource(Protocol):
    """Source of recent log lines."""

    async def recent(self, window: float) -> list[str]:
        """Return log lines observed within the last ``window`` seconds."""
        ...

    def reset(self) -> None:
        """Forget everything logged so far."""
        ...


@runtime_checkable
class PidStore(Protocol):
    """Storage for the supervised process ID."""

    def read(self) -> int | None:
        """Return the stored process ID, or None if absent or malformed."""
        ...

    def write(self, pid: int) -> None:
        """Store the process ID."""
        ...

    def clear(self) -> None:
        """Remove the stored process ID. Idempotent."""
        ...


@runtime_checkable
class ConflictGuard(Protocol):
    """Finds and terminates the helper process that blocks a restart."""

    @property
    def description(self) -> str:
        """Return a human-readable description of the conflict process."""
        ...

    async def find(self) -> tuple[int, ...]:
        """Return the process IDs of running conflict processes."""
        ...

    async def terminate(self, pids: tuple[int, ...]) -> None:
        """Terminate the given conflict processes.

        Raises:
            ConflictTerminationError: If any process survives.
        """
        ...


@runtime_checkable
class Restarter(Protocol):
    """Action that replaces the supervised process with a fresh instance."""

    async def restart(self, process: SupervisedProcess) -> int | None:
        """Restart the process.

        Returns:
            The new process ID, if known.

        Raises:
            LaunchError: If the executable cannot be started.
            RestartError: If the restart request fails.
        """
        ...


@runtime_checkable
class EventSink(Protocol):
    """Consumer of restart events."""

    async def write_event(self, event: RestartEvent) -> None:
        """Record a restart event."""
        ...
