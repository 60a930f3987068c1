"""Liveness checks for the supervised process.

Two interchangeable strategies implement the LivenessCheck protocol:
- ProcessTableMatch: Command-line substring match against the process table
- ServiceManagerQuery: ``systemctl is-active`` status query

``probe_with_timeout`` bounds any strategy; a timeout yields UNKNOWN.
"""

from __future__ import annotations

import subprocess
from functools import partial
from typing import TYPE_CHECKING, final

import anyio
import anyio.to_thread
import psutil

from procwarden.exceptions import ProbeError

from ._models import ProcessState
from ._proctable import find_pids

if TYPE_CHECKING:
    from ._models import SupervisedProcess
    from ._protocol import LivenessCheck

_ACTIVE_STATES = frozenset({"active", "activating", "reloading"})
_INACTIVE_STATES = frozenset({"inactive", "failed", "deactivating"})


def parse_unit_state(output: str) -> ProcessState:
    """Map ``systemctl is-active`` output to a process state.

    Args:
        output: The command's stdout.

    Returns:
        RUNNING for active states, NOT_RUNNING for inactive ones,
        UNKNOWN for anything else.
    """
    state = output.strip().splitlines()[0] if output.strip() else ""
    if state in _ACTIVE_STATES:
        return ProcessState.RUNNING
    if state in _INACTIVE_STATES:
        return ProcessState.NOT_RUNNING
    return ProcessState.UNKNOWN


@final
class ProcessTableMatch:
    """Liveness check scanning the process table for a command-line match."""

    __slots__ = ()

    async def probe(self, process: SupervisedProcess) -> ProcessState:
        """Return RUNNING if any process matches the process's pattern.

        Raises:
            ProbeError: If the process table cannot be read.
        """
        try:
            pids = await anyio.to_thread.run_sync(
                partial(find_pids, process.match_pattern),
                abandon_on_cancel=True,
            )
        except (OSError, psutil.Error) as e:
            msg = f"Failed to read process table: {e}"
            raise ProbeError(msg, process_name=process.name, cause=e) from e

        return ProcessState.RUNNING if pids else ProcessState.NOT_RUNNING


@final
class ServiceManagerQuery:
    """Liveness check asking systemd whether the unit is active."""

    __slots__ = ("_systemctl",)

    def __init__(self, systemctl: str = "systemctl") -> None:
        """Initialize the query.

        Args:
            systemctl: Name or path of the systemctl binary.
        """
        self._systemctl = systemctl

    async def probe(self, process: SupervisedProcess) -> ProcessState:
        """Return the unit's state as reported by ``systemctl is-active``.

        Raises:
            ProbeError: If the process has no unit or systemctl cannot run.
        """
        if not process.unit:
            msg = f"Process '{process.name}' has no service manager unit"
            raise ProbeError(msg, process_name=process.name)

        try:
            result = await anyio.run_process(
                [self._systemctl, "is-active", process.unit],
                check=False,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            msg = f"Failed to query unit '{process.unit}': {e}"
            raise ProbeError(msg, process_name=process.name, cause=e) from e

        return parse_unit_state(result.stdout.decode(errors="replace"))


async def probe_with_timeout(
    check: LivenessCheck,
    process: SupervisedProcess,
    *,
    timeout: float,
) -> ProcessState:
    """Run a liveness check, bounded by a timeout.

    Args:
        check: The strategy to run.
        process: The process to probe.
        timeout: Maximum seconds to wait.

    Returns:
        The probed state, or UNKNOWN if the check timed out.

    Raises:
        ProbeError: If the check cannot determine the state at all.
    """
    with anyio.move_on_after(timeout):
        return await check.probe(process)
    return ProcessState.UNKNOWN
