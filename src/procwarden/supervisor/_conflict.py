"""Conflicting helper process handling.

The VPN client spawns a downloader/updater helper that holds resources the
daemon needs. A restart must wait for it to exit, and terminate it when it
does not.
"""

from functools import partial
from typing import final

import anyio.to_thread
import psutil

from procwarden.exceptions import ConflictTerminationError

from ._proctable import find_pids, terminate_pids


@final
class ProcessTableConflictGuard:
    """Conflict guard matching the helper by command-line substring."""

    __slots__ = ("_kill_timeout", "_pattern")

    def __init__(self, pattern: str, *, kill_timeout: float = 3.0) -> None:
        """Initialize the guard.

        Args:
            pattern: Case-sensitive substring of the helper's command line.
            kill_timeout: Seconds to wait after SIGTERM before SIGKILL.
        """
        self._pattern = pattern
        self._kill_timeout = kill_timeout

    @property
    def description(self) -> str:
        return self._pattern

    async def find(self) -> tuple[int, ...]:
        """Return the PIDs of running helper processes.

        Raises:
            ConflictTerminationError: If the process table cannot be read.
        """
        try:
            return await anyio.to_thread.run_sync(partial(find_pids, self._pattern))
        except (OSError, psutil.Error) as e:
            msg = f"Failed to look up '{self._pattern}': {e}"
            raise ConflictTerminationError(msg, cause=e) from e

    async def terminate(self, pids: tuple[int, ...]) -> None:
        """Terminate the helper processes.

        Raises:
            ConflictTerminationError: If a process may not be signalled or
                survives SIGKILL.
        """
        try:
            survivors = await anyio.to_thread.run_sync(
                partial(terminate_pids, pids, self._kill_timeout)
            )
        except psutil.Error as e:
            msg = f"Failed to terminate '{self._pattern}': {e}"
            raise ConflictTerminationError(msg, pids=pids, cause=e) from e

        if survivors:
            msg = f"Conflict process '{self._pattern}' survived termination"
            raise ConflictTerminationError(msg, pids=survivors)
