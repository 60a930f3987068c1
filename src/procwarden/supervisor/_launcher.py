"""Process launcher for the supervised executable.

This module provides the ProcessLauncher class that builds the child
environment, spawns the target in its own session, and records its PID.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable, Mapping
from contextlib import ExitStack
from dataclasses import dataclass
from functools import partial
from typing import IO, TYPE_CHECKING, final

import anyio
import anyio.to_thread
import psutil

from procwarden.exceptions import LaunchError, RestartError
from procwarden.utils import get_default_logger

from ._models import EnvMode, EnvOverride, SupervisedProcess
from ._proctable import find_pids, pid_matches, terminate_pids

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._protocol import PidStore


def build_environment(
    overrides: Iterable[EnvOverride],
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build a child environment from a base and ordered overrides.

    The base is copied; neither it nor ``os.environ`` is modified. Path-list
    modes join with ``:`` and never leave an empty element behind when the
    inherited value is unset or empty.

    Args:
        overrides: Overrides applied in order.
        base: Inherited environment. Defaults to ``os.environ``.

    Returns:
        A new environment dictionary.
    """
    env = dict(os.environ if base is None else base)

    for override in overrides:
        current = env.get(override.name, "")
        if override.mode == EnvMode.SET or not current:
            env[override.name] = override.value
        elif override.mode == EnvMode.PREPEND:
            env[override.name] = f"{override.value}:{current}"
        else:
            env[override.name] = f"{current}:{override.value}"

    return env


def check_executable(process: SupervisedProcess) -> None:
    """Verify the target executable exists and may be executed.

    Raises:
        LaunchError: If the executable is missing or not executable.
    """
    executable = process.executable
    if not executable.is_file():
        msg = f"Executable not found: {executable}"
        raise LaunchError(msg, process_name=process.name)
    if not os.access(executable, os.X_OK):
        msg = f"Executable is not executable: {executable}"
        raise LaunchError(msg, process_name=process.name)


@dataclass(frozen=True, slots=True)
class LaunchHandle:
    """Handle for a launched process.

    Attributes:
        pid: Process ID of the child.
        command: The command line that was executed.
    """

    pid: int
    command: tuple[str, ...]


@final
class ProcessLauncher:
    """Starts, stops, and restarts the supervised executable directly.

    The child runs in its own session so it outlives a short-lived
    launcher. Its stdout and stderr are appended to the process's
    ``output_log`` when configured, and discarded otherwise.
    """

    __slots__ = ("_child", "_logger", "_pid_store", "_stop_timeout")

    def __init__(
        self,
        pid_store: PidStore,
        *,
        stop_timeout: float = 5.0,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the launcher.

        Args:
            pid_store: Where the child's PID is recorded.
            stop_timeout: Seconds to wait after SIGTERM before SIGKILL.
            logger: Structured logger. Uses the default logger if None.
        """
        self._pid_store = pid_store
        self._stop_timeout = stop_timeout
        self._logger = logger or get_default_logger()
        self._child: subprocess.Popen[bytes] | None = None

    def _spawn(self, process: SupervisedProcess) -> subprocess.Popen[bytes]:
        env = build_environment(process.env)

        with ExitStack() as stack:
            output: int | IO[bytes] = subprocess.DEVNULL
            if process.output_log is not None:
                process.output_log.parent.mkdir(parents=True, exist_ok=True)
                output = stack.enter_context(process.output_log.open("ab"))

            # The child keeps its own copy of the log descriptor
            return subprocess.Popen(  # noqa: S603
                process.command,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=output,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )

    def _discard(
        self, process: SupervisedProcess, child: subprocess.Popen[bytes]
    ) -> None:
        """Terminate a child whose PID could not be recorded."""
        try:
            survivors = terminate_pids((child.pid,), self._stop_timeout)
        except psutil.Error as e:
            self._logger.error(
                "untracked_child_survived", process=process.name, pid=child.pid, error=str(e)
            )
            return

        if survivors:
            self._logger.error("untracked_child_survived", process=process.name, pid=child.pid)
            return

        _ = child.poll()
        self._logger.warning("untracked_child_terminated", process=process.name, pid=child.pid)

    async def launch(self, process: SupervisedProcess) -> LaunchHandle:
        """Start the executable and record its PID.

        Args:
            process: The process to launch.

        Returns:
            A handle describing the new child.

        Raises:
            LaunchError: If the executable is missing or not executable, cannot
                be spawned, or its PID cannot be recorded. A child whose PID
                cannot be recorded is terminated first.
        """
        check_executable(process)

        try:
            child = await anyio.to_thread.run_sync(partial(self._spawn, process))
        except OSError as e:
            msg = f"Failed to launch '{process.name}': {e}"
            raise LaunchError(msg, process_name=process.name, cause=e) from e

        try:
            self._pid_store.write(child.pid)
        except OSError as e:
            await anyio.to_thread.run_sync(partial(self._discard, process, child))
            msg = f"Failed to record PID of '{process.name}': {e}"
            raise LaunchError(msg, process_name=process.name, cause=e) from e

        self._child = child
        self._logger.info(
            "process_launched",
            process=process.name,
            pid=child.pid,
            command=list(process.command),
        )
        return LaunchHandle(pid=child.pid, command=process.command)

    def _collect_targets(self, process: SupervisedProcess) -> tuple[int, ...]:
        stored = self._pid_store.read()
        if stored is not None and pid_matches(stored, process.match_pattern):
            return (stored,)
        if stored is not None:
            self._logger.warning("stale_pid_ignored", process=process.name, pid=stored)
        return find_pids(process.match_pattern)

    async def stop(self, process: SupervisedProcess) -> None:
        """Stop the running instance, if any, and clear the PID file.

        The stored PID is used when it still belongs to the target;
        otherwise the process table is searched for the match pattern.

        Raises:
            RestartError: If the running instance cannot be stopped.
        """
        try:
            pids = await anyio.to_thread.run_sync(
                partial(self._collect_targets, process)
            )
            survivors: tuple[int, ...] = ()
            if pids:
                survivors = await anyio.to_thread.run_sync(
                    partial(terminate_pids, pids, self._stop_timeout)
                )
        except psutil.Error as e:
            msg = f"Failed to stop '{process.name}': {e}"
            raise RestartError(msg, process_name=process.name, cause=e) from e

        if survivors:
            msg = f"Failed to stop '{process.name}': pids {survivors} survived"
            raise RestartError(msg, process_name=process.name)

        if pids:
            self._logger.info("process_stopped", process=process.name, pids=list(pids))

        if self._child is not None:
            _ = self._child.poll()
            self._child = None
        self._pid_store.clear()

    async def restart(self, process: SupervisedProcess) -> int | None:
        """Stop any running instance and launch a fresh one.

        Returns:
            The PID of the new child.

        Raises:
            LaunchError: If the new instance cannot be launched.
            RestartError: If the old instance cannot be stopped.
        """
        await self.stop(process)
        handle = await self.launch(process)
        return handle.pid
