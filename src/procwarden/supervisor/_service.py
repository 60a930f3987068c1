"""Restart through the service manager.

Used when the supervised process is a systemd unit (for example the
forking unit rendered by ``procwarden unit``) rather than a child launched
by procwarden itself.
"""

from __future__ import annotations

import subprocess
from typing import TYPE_CHECKING, final

import anyio

from procwarden.exceptions import RestartError
from procwarden.utils import get_default_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._models import SupervisedProcess


@final
class ServiceManagerRestarter:
    """Restarts a unit with ``systemctl restart``."""

    __slots__ = ("_logger", "_systemctl", "_timeout")

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        systemctl: str = "systemctl",
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the restarter.

        Args:
            timeout: Maximum seconds to wait for systemctl.
            systemctl: Name or path of the systemctl binary.
            logger: Structured logger. Uses the default logger if None.
        """
        self._timeout = timeout
        self._systemctl = systemctl
        self._logger = logger or get_default_logger()

    async def restart(self, process: SupervisedProcess) -> int | None:
        """Restart the process's unit.

        Returns:
            None; the unit's main PID is owned by the service manager.

        Raises:
            RestartError: If the process has no unit, systemctl cannot run,
                times out, or exits with a non-zero code.
        """
        if not process.unit:
            msg = f"Process '{process.name}' has no service manager unit"
            raise RestartError(msg, process_name=process.name)

        command = [self._systemctl, "restart", process.unit]
        try:
            with anyio.fail_after(self._timeout):
                result = await anyio.run_process(
                    command, check=False, stderr=subprocess.PIPE
                )
        except TimeoutError as e:
            msg = f"Timed out restarting unit '{process.unit}'"
            raise RestartError(msg, process_name=process.name, cause=e) from e
        except OSError as e:
            msg = f"Failed to run systemctl: {e}"
            raise RestartError(msg, process_name=process.name, cause=e) from e

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            msg = f"systemctl restart {process.unit} failed: {stderr}"
            raise RestartError(
                msg, process_name=process.name, exit_code=result.returncode
            )

        self._logger.info("unit_restarted", process=process.name, unit=process.unit)
        return None
