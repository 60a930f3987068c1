"""Data models for the supervisor system.

This module defines the core data types for process supervision:
- EnvMode / EnvOverride: Environment changes applied to the child
- SupervisedProcess: Immutable description of the supervised target
- ProcessState: Result of a liveness probe
- FaultSignature: Log pattern marking the degraded failure mode
- RestartReason / RestartEvent: Restart records for logs and sinks
- CoordinatorState: Restart coordinator lifecycle states
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations


class EnvMode(StrEnum):
    """How an environment override combines with the inherited value.

    - SET: Replace the inherited value
    - PREPEND: Put the value in front of a colon-separated path list
    - APPEND: Put the value behind a colon-separated path list
    """

    SET = "set"
    PREPEND = "prepend"
    APPEND = "append"


@dataclass(frozen=True, slots=True)
class EnvOverride:
    """A single environment change for the supervised process.

    Attributes:
        name: Environment variable name.
        value: Value to set, prepend, or append.
        mode: How the value combines with the inherited one.
    """

    name: str
    value: str
    mode: EnvMode = EnvMode.SET


@dataclass(frozen=True, slots=True)
class SupervisedProcess:
    """Immutable description of the supervised target.

    Attributes:
        name: Label used in logs and events.
        executable: Path to the target executable.
        args: Arguments passed to the executable.
        env: Ordered environment overrides for the child only.
        unit: Service manager unit name, if the target is a unit.
        match: Command-line substring identifying the process in the
            process table. Defaults to the executable path.
        output_log: File receiving the child's stdout and stderr.
    """

    name: str
    executable: Path
    args: tuple[str, ...] = ()
    env: tuple[EnvOverride, ...] = ()
    unit: str | None = None
    match: str | None = None
    output_log: Path | None = None

    @property
    def command(self) -> tuple[str, ...]:
        """Return the full command line."""
        return (str(self.executable), *self.args)

    @property
    def match_pattern(self) -> str:
        """Return the substring used for process-table matching."""
        return self.match or str(self.executable)


class ProcessState(StrEnum):
    """Liveness of the supervised process, recomputed on every probe.

    UNKNOWN is produced by probe timeouts and is treated like NOT_RUNNING.
    """

    RUNNING = "running"
    NOT_RUNNING = "not_running"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class FaultSignature:
    """A log pattern identifying the degraded-but-running failure mode.

    Matching is a case-sensitive literal substring test.

    Attributes:
        pattern: The literal text to look for.
    """

    pattern: str

    def __post_init__(self) -> None:
        if not self.pattern:
            msg = "Fault signature pattern must not be empty"
            raise ValueError(msg)

    def matches(self, line: str) -> bool:
        """Return True if the line contains the signature."""
        return self.pattern in line


class RestartReason(StrEnum):
    """Why a restart (or conflict cleanup) happened."""

    PROCESS_DOWN = "process_down"
    FAULT_DETECTED = "fault_detected"
    CONFLICT_RESOLVED = "conflict_resolved"


class CoordinatorState(StrEnum):
    """Restart coordinator states.

    - IDLE: No restart in progress
    - WAITING_FOR_CONFLICT: Waiting for the conflicting helper to exit
    - RESTARTING: The restart action is running
    """

    IDLE = "idle"
    WAITING_FOR_CONFLICT = "waiting_for_conflict"
    RESTARTING = "restarting"


@dataclass(frozen=True, slots=True)
class RestartEvent:
    """Immutable restart record.

    Attributes:
        process_name: Name of the supervised process.
        reason: What triggered the action.
        timestamp: ISO 8601 formatted timestamp.
        succeeded: Whether the action completed successfully.
        pid: Process ID involved, if known.
        message: Optional human-readable message.
    """

    process_name: str
    reason: RestartReason
    timestamp: str
    succeeded: bool = True
    pid: int | None = None
    message: str | None = None


@dataclass(slots=True)
class SupervisorStatus:
    """Mutable runtime status of a supervisor loop.

    Attributes:
        last_state: Result of the most recent probe.
        last_probe_at: ISO 8601 timestamp of the most recent probe.
        fault_count: Number of scans that found the fault signature.
        last_fault_at: ISO 8601 timestamp of the most recent fault hit.
        skipped_cycles: Number of tasks skipped due to internal errors.
    """

    last_state: ProcessState | None = None
    last_probe_at: str | None = None
    fault_count: int = 0
    last_fault_at: str | None = None
    skipped_cycles: int = 0
