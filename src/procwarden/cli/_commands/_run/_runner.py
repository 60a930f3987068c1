"""Async runner for the run command.

Runs every supervisor in one task group and turns SIGINT/SIGTERM into a
graceful shutdown request for all of them.
"""

from __future__ import annotations

import signal
from typing import TYPE_CHECKING

import anyio

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structlog.typing import FilteringBoundLogger

    from procwarden.supervisor import Supervisor

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def forward_signals(
    supervisors: Sequence[Supervisor],
    logger: FilteringBoundLogger,
) -> None:
    """Request shutdown of every supervisor when a stop signal arrives."""
    with anyio.open_signal_receiver(*SHUTDOWN_SIGNALS) as signals:
        async for signum in signals:
            logger.info("signal_received", signal=signal.Signals(signum).name)
            for supervisor in supervisors:
                supervisor.request_shutdown()


async def run_supervisors(
    supervisors: Sequence[Supervisor],
    logger: FilteringBoundLogger,
) -> None:
    """Run supervisors until all of them have stopped.

    Args:
        supervisors: Supervisors to run concurrently.
        logger: Logger for signal handling.
    """
    async with anyio.create_task_group() as tg:
        tg.start_soon(forward_signals, supervisors, logger)

        async with anyio.create_task_group() as supervised:
            for supervisor in supervisors:
                supervised.start_soon(supervisor.run, name=supervisor.process.name)

        # All supervisors returned, stop listening for signals
        tg.cancel_scope.cancel()
