"""Restart coordinator.

This module provides the RestartCoordinator class, a non-reentrant state
machine that serializes restart attempts:

    idle -> waiting_for_conflict -> restarting -> idle

Triggers that arrive while a restart is in flight, or within the cooldown
after the previous attempt, are logged and dropped rather than queued.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import anyio

from procwarden.exceptions import LaunchError, RestartError, SupervisorError
from procwarden.utils import get_default_logger

from ._clock import get_timestamp
from ._models import CoordinatorState, RestartEvent, RestartReason

if TYPE_CHECKING:
    from collections.abc import Callable

    from structlog.typing import FilteringBoundLogger

    from ._models import SupervisedProcess
    from ._protocol import Clock, ConflictGuard, EventSink, Restarter


@final
class RestartCoordinator:
    """Serializes restarts of one supervised process.

    Each supervised process owns its coordinator, so restarts of different
    processes never block one another. The coordinator is only touched by
    its supervisor's loop task and needs no lock.
    """

    __slots__ = (
        "_clock",
        "_conflict",
        "_conflict_interval",
        "_conflict_max_attempts",
        "_cooldown",
        "_event_sink",
        "_failed_restarts",
        "_last_event",
        "_last_finished_at",
        "_logger",
        "_process",
        "_restart_count",
        "_restarter",
        "_state",
    )

    def __init__(  # noqa: PLR0913
        self,
        process: SupervisedProcess,
        restarter: Restarter,
        *,
        clock: Clock,
        conflict: ConflictGuard | None = None,
        conflict_max_attempts: int = 10,
        conflict_interval: float = 1.0,
        cooldown: float = 10.0,
        event_sink: EventSink | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            process: The process being restarted.
            restarter: Action performing the restart.
            clock: Clock used for conflict polling and cooldown.
            conflict: Guard for the conflicting helper process, if any.
            conflict_max_attempts: Number of polls for the helper to exit.
            conflict_interval: Seconds between polls.
            cooldown: Seconds after an attempt during which triggers are dropped.
            event_sink: Receiver of restart events, if any.
            logger: Structured logger. Uses the default logger if None.
        """
        self._process = process
        self._restarter = restarter
        self._clock = clock
        self._conflict = conflict
        self._conflict_max_attempts = conflict_max_attempts
        self._conflict_interval = conflict_interval
        self._cooldown = cooldown
        self._event_sink = event_sink
        self._logger = (logger or get_default_logger()).bind(process=process.name)
        self._state = CoordinatorState.IDLE
        self._last_finished_at: float | None = None
        self._last_event: RestartEvent | None = None
        self._restart_count = 0
        self._failed_restarts = 0

    @property
    def state(self) -> CoordinatorState:
        """Return the current coordinator state."""
        return self._state

    @property
    def restart_count(self) -> int:
        """Return the number of restart attempts made."""
        return self._restart_count

    @property
    def failed_restarts(self) -> int:
        """Return the number of restart attempts that failed."""
        return self._failed_restarts

    @property
    def last_event(self) -> RestartEvent | None:
        """Return the most recent event emitted."""
        return self._last_event

    def cooldown_remaining(self) -> float:
        """Return the seconds left before a new trigger is accepted."""
        if self._last_finished_at is None:
            return 0.0
        elapsed = self._clock.now() - self._last_finished_at
        return max(0.0, self._cooldown - elapsed)

    async def trigger(
        self,
        reason: RestartReason,
        *,
        stop_requested: Callable[[], bool] | None = None,
    ) -> RestartEvent | None:
        """Request a restart.

        Args:
            reason: Why the restart is requested.
            stop_requested: Returns True once shutdown has been requested;
                checked before the restart phase begins.

        Returns:
            The restart event, or None if the trigger was dropped or the
            restart was aborted for shutdown.
        """
        if self._state != CoordinatorState.IDLE:
            self._logger.info(
                "restart_trigger_ignored",
                reason=reason.value,
                state=self._state.value,
            )
            return None

        remaining = self.cooldown_remaining()
        if remaining > 0:
            self._logger.info(
                "restart_trigger_ignored",
                reason=reason.value,
                state="cooldown",
                cooldown_remaining=round(remaining, 3),
            )
            return None

        self._logger.warning("restart_triggered", reason=reason.value)
        self._state = CoordinatorState.WAITING_FOR_CONFLICT
        try:
            await self._clear_conflict(stop_requested)

            if stop_requested is not None and stop_requested():
                self._logger.info("restart_aborted", reason=reason.value)
                return None

            self._state = CoordinatorState.RESTARTING
            # A launch is never abandoned half-way
            with anyio.CancelScope(shield=True):
                return await self._restart(reason)
        finally:
            self._state = CoordinatorState.IDLE
            self._last_finished_at = self._clock.now()

    async def _clear_conflict(self, stop_requested: Callable[[], bool] | None) -> None:
        if self._conflict is None:
            return

        description = self._conflict.description
        try:
            pids = await self._conflict.find()
            if not pids:
                return

            self._logger.info(
                "waiting_for_conflict",
                conflict=description,
                pids=list(pids),
                max_attempts=self._conflict_max_attempts,
                interval=self._conflict_interval,
            )

            attempts = 0
            while pids and attempts < self._conflict_max_attempts:
                if stop_requested is not None and stop_requested():
                    return
                await self._clock.sleep(self._conflict_interval)
                attempts += 1
                pids = await self._conflict.find()

            if not pids:
                await self._emit(
                    RestartReason.CONFLICT_RESOLVED,
                    message=f"'{description}' exited after {attempts} poll(s)",
                )
                return

            self._logger.warning(
                "conflict_terminating", conflict=description, pids=list(pids)
            )
            await self._conflict.terminate(pids)

        except SupervisorError as e:
            # Best effort: the restart proceeds anyway
            self._logger.warning(
                "conflict_termination_failed",
                conflict=description,
                error=str(e),
            )
            await self._emit(
                RestartReason.CONFLICT_RESOLVED,
                succeeded=False,
                message=str(e),
            )
            return

        await self._emit(
            RestartReason.CONFLICT_RESOLVED,
            message=f"'{description}' terminated",
        )

    async def _restart(self, reason: RestartReason) -> RestartEvent:
        self._restart_count += 1
        try:
            pid = await self._restarter.restart(self._process)
        except (LaunchError, RestartError) as e:
            self._failed_restarts += 1
            self._logger.error("restart_failed", reason=reason.value, error=str(e))
            return await self._emit(reason, succeeded=False, message=str(e))

        self._logger.info("restart_succeeded", reason=reason.value, pid=pid)
        return await self._emit(reason, pid=pid, message="Restarted")

    async def _emit(
        self,
        reason: RestartReason,
        *,
        succeeded: bool = True,
        pid: int | None = None,
        message: str | None = None,
    ) -> RestartEvent:
        event = RestartEvent(
            process_name=self._process.name,
            reason=reason,
            timestamp=get_timestamp(),
            succeeded=succeeded,
            pid=pid,
            message=message,
        )
        self._last_event = event

        if self._event_sink is not None:
            try:
                await self._event_sink.write_event(event)
            except Exception as e:  # noqa: BLE001
                # Sink errors are logged only
                self._logger.warning("event_sink_failed", error=str(e))

        return event
