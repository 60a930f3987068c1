"""Fake collaborators for testing.

This module provides in-memory implementations of the supervisor protocols
so the loop, coordinator, and detector can be exercised deterministically
without real processes, files, or time delays.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

import anyio.lowlevel

from procwarden.exceptions import ConflictTerminationError

from ._models import ProcessState, RestartEvent, SupervisedProcess


@dataclass(slots=True)
class FakeClock:
    """Clock whose time only moves when something sleeps.

    Example:
        >>> clock = FakeClock()
        >>> await clock.sleep(30)
        >>> clock.now()
        30.0
    """

    time: float = 0.0
    sleeps: list[float] = field(default_factory=list)
    on_sleep: Callable[[float], Awaitable[None]] | None = None

    def now(self) -> float:
        return self.time

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self.on_sleep is not None:
            await self.on_sleep(seconds)
        self.time += max(0.0, seconds)
        await anyio.lowlevel.checkpoint()

    def advance(self, seconds: float) -> None:
        """Move time forward without sleeping."""
        self.time += seconds


@dataclass(slots=True)
class FakeLivenessCheck:
    """Liveness check replaying scripted states.

    Once the script is exhausted, ``default`` is returned. ``on_probe`` is
    called with the probe number (1-based) before each result is returned.
    """

    states: deque[ProcessState] = field(default_factory=deque)
    default: ProcessState = ProcessState.RUNNING
    on_probe: Callable[[int], None] | None = None
    probes: int = 0

    @classmethod
    def scripted(
        cls,
        states: Iterable[ProcessState],
        *,
        default: ProcessState = ProcessState.RUNNING,
    ) -> FakeLivenessCheck:
        return cls(states=deque(states), default=default)

    async def probe(self, process: SupervisedProcess) -> ProcessState:  # noqa: ARG002
        self.probes += 1
        if self.on_probe is not None:
            self.on_probe(self.probes)
        await anyio.lowlevel.checkpoint()
        return self.states.popleft() if self.states else self.default


@dataclass(slots=True)
class FakeLogSource:
    """Log source serving a mutable list of lines."""

    lines: list[str] = field(default_factory=list)
    windows: list[float] = field(default_factory=list)
    resets: int = 0

    async def recent(self, window: float) -> list[str]:
        self.windows.append(window)
        await anyio.lowlevel.checkpoint()
        return list(self.lines)

    def reset(self) -> None:
        self.resets += 1
        self.lines.clear()


@dataclass(slots=True)
class FakeConflictGuard:
    """Conflict guard whose helper stays alive for a number of lookups.

    Attributes:
        pids: PIDs reported while the helper is alive.
        alive_for: Number of ``find()`` calls that still report the helper.
            None keeps it alive until terminated.
        fail_terminate: Make ``terminate()`` raise ConflictTerminationError.
    """

    pids: tuple[int, ...] = (4242,)
    alive_for: int | None = None
    fail_terminate: bool = False
    lookups: int = 0
    terminated: list[tuple[int, ...]] = field(default_factory=list)
    _killed: bool = False

    @property
    def description(self) -> str:
        return "fake-helper"

    async def find(self) -> tuple[int, ...]:
        self.lookups += 1
        await anyio.lowlevel.checkpoint()
        if self._killed:
            return ()
        if self.alive_for is not None and self.lookups > self.alive_for:
            return ()
        return self.pids

    async def terminate(self, pids: tuple[int, ...]) -> None:
        self.terminated.append(pids)
        if self.fail_terminate:
            msg = "fake-helper refused to die"
            raise ConflictTerminationError(msg, pids=pids)
        self._killed = True


@dataclass(slots=True)
class FakeRestarter:
    """Restarter recording calls.

    Attributes:
        error: Exception raised by every restart, if set.
        on_restart: Awaited inside each restart before it completes.
        next_pid: PID reported for the next successful restart.
    """

    error: Exception | None = None
    on_restart: Callable[[], Awaitable[None]] | None = None
    next_pid: int = 1000
    calls: list[SupervisedProcess] = field(default_factory=list)
    completed: int = 0

    async def restart(self, process: SupervisedProcess) -> int | None:
        self.calls.append(process)
        if self.on_restart is not None:
            await self.on_restart()
        await anyio.lowlevel.checkpoint()
        if self.error is not None:
            raise self.error
        self.completed += 1
        pid = self.next_pid
        self.next_pid += 1
        return pid


@dataclass(slots=True)
class MemoryPidStore:
    """PID store held in memory."""

    pid: int | None = None

    def read(self) -> int | None:
        return self.pid

    def write(self, pid: int) -> None:
        if pid <= 0:
            msg = f"Invalid PID: {pid}"
            raise ValueError(msg)
        self.pid = pid

    def clear(self) -> None:
        self.pid = None


@dataclass(slots=True)
class RecordingEventSink:
    """Event sink keeping every event in a list."""

    events: list[RestartEvent] = field(default_factory=list)

    async def write_event(self, event: RestartEvent) -> None:
        self.events.append(event)
