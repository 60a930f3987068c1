"""Supervisor loop for a single external process.

This module provides the Supervisor class: a single-threaded cooperative
scheduler that probes liveness and scans for the fault signature on their
own intervals, and hands triggers to the RestartCoordinator.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, final

import anyio

from procwarden.utils import get_default_logger

from ._clock import get_timestamp
from ._liveness import probe_with_timeout
from ._models import ProcessState, RestartReason, SupervisorStatus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from structlog.typing import FilteringBoundLogger

    from ._coordinator import RestartCoordinator
    from ._faults import FaultDetector
    from ._models import RestartEvent, SupervisedProcess
    from ._protocol import Clock, LivenessCheck


@final
class Supervisor:
    """Keeps one external process alive and healthy.

    Every ``probe_interval`` seconds the liveness check runs; NOT_RUNNING or
    UNKNOWN triggers a restart. When a fault detector is configured it runs
    every ``scan_interval`` seconds and a hit triggers a restart even if the
    process still runs. Probing, scanning, and restarting are strictly
    sequenced within the loop task.

    The loop runs until ``request_shutdown()`` is called. A restart already
    in its restarting phase completes before ``run()`` returns.
    """

    __slots__ = (
        "_clock",
        "_coordinator",
        "_detector",
        "_liveness",
        "_logger",
        "_probe_interval",
        "_probe_timeout",
        "_process",
        "_scan_interval",
        "_shutdown_requested",
        "_sleep_scope",
        "status",
    )

    def __init__(  # noqa: PLR0913
        self,
        process: SupervisedProcess,
        liveness: LivenessCheck,
        coordinator: RestartCoordinator,
        *,
        clock: Clock,
        detector: FaultDetector | None = None,
        probe_interval: float = 30.0,
        probe_timeout: float = 5.0,
        scan_interval: float = 30.0,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            process: The supervised process.
            liveness: Strategy used to probe the process.
            coordinator: Restart coordinator owned by this supervisor.
            clock: Clock driving the scheduler.
            detector: Log-based fault detector, if enabled.
            probe_interval: Seconds between liveness probes.
            probe_timeout: Maximum seconds a probe may take.
            scan_interval: Seconds between fault scans.
            logger: Structured logger. Uses the default logger if None.
        """
        self._process = process
        self._liveness = liveness
        self._coordinator = coordinator
        self._clock = clock
        self._detector = detector
        self._probe_interval = probe_interval
        self._probe_timeout = probe_timeout
        self._scan_interval = scan_interval
        self._logger = (logger or get_default_logger()).bind(process=process.name)
        self._shutdown_requested = False
        self._sleep_scope: anyio.CancelScope | None = None
        self.status = SupervisorStatus()

    @property
    def process(self) -> SupervisedProcess:
        """Return the supervised process."""
        return self._process

    @property
    def coordinator(self) -> RestartCoordinator:
        """Return the restart coordinator."""
        return self._coordinator

    @property
    def shutdown_requested(self) -> bool:
        """Return True once shutdown has been requested."""
        return self._shutdown_requested

    def request_shutdown(self) -> None:
        """Ask the loop to stop after the current task.

        Interrupts the inter-cycle sleep immediately. A restart in progress
        is allowed to finish; no new restart starts afterwards.
        """
        if not self._shutdown_requested:
            self._logger.info(
                "shutdown_requested",
                coordinator_state=self._coordinator.state.value,
            )
        self._shutdown_requested = True
        if self._sleep_scope is not None:
            self._sleep_scope.cancel()

    async def probe_once(self) -> ProcessState:
        """Probe liveness and trigger a restart if the process is down.

        Returns:
            The probed state.

        Raises:
            ProbeError: If the state cannot be determined at all.
        """
        state = await probe_with_timeout(
            self._liveness, self._process, timeout=self._probe_timeout
        )

        previous = self.status.last_state
        self.status.last_state = state
        self.status.last_probe_at = get_timestamp()

        if state == ProcessState.UNKNOWN:
            self._logger.warning("probe_timeout", timeout=self._probe_timeout)
        elif state != previous:
            self._logger.info(
                "process_state_changed",
                state=state.value,
                previous=previous.value if previous is not None else None,
            )

        if state != ProcessState.RUNNING and not self._shutdown_requested:
            _ = await self._request_restart(RestartReason.PROCESS_DOWN)

        return state

    async def scan_once(self) -> bool:
        """Scan the log window and trigger a restart on a fault hit.

        Returns:
            True if the fault signature was found.

        Raises:
            LogSourceError: If the log source cannot be read.
        """
        if self._detector is None:
            return False

        if not await self._detector.scan():
            return False

        self.status.fault_count += 1
        self.status.last_fault_at = get_timestamp()
        self._logger.warning(
            "fault_detected",
            signature=self._detector.signature.pattern,
            window=self._detector.window,
        )

        if self._shutdown_requested:
            return True

        _ = await self._request_restart(RestartReason.FAULT_DETECTED)
        return True

    async def _request_restart(self, reason: RestartReason) -> RestartEvent | None:
        event = await self._coordinator.trigger(
            reason,
            stop_requested=lambda: self._shutdown_requested,
        )
        if event is not None and self._detector is not None:
            # Log output written before a restart attempt is stale
            self._detector.reset()
        return event

    async def _run_task(self, name: str, task: Callable[[], Awaitable[object]]) -> None:
        try:
            _ = await task()
        except Exception:  # noqa: BLE001
            # Errors never end the loop
            self.status.skipped_cycles += 1
            self._logger.exception("cycle_skipped", task=name)

    async def _sleep(self, delay: float) -> None:
        with anyio.CancelScope() as scope:
            self._sleep_scope = scope
            try:
                await self._clock.sleep(delay)
            finally:
                self._sleep_scope = None

    async def run(self) -> None:
        """Run the supervision loop until shutdown is requested."""
        self._logger.info(
            "supervisor_started",
            probe_interval=self._probe_interval,
            scan_interval=self._scan_interval if self._detector else None,
        )

        next_probe = self._clock.now()
        next_scan = next_probe if self._detector is not None else math.inf

        while not self._shutdown_requested:
            now = self._clock.now()
            if now >= next_probe:
                await self._run_task("probe", self.probe_once)
                next_probe = now + self._probe_interval

            if self._shutdown_requested:
                break

            if now >= next_scan:
                await self._run_task("scan", self.scan_once)
                next_scan = now + self._scan_interval

            if self._shutdown_requested:
                break

            delay = min(next_probe, next_scan) - self._clock.now()
            if delay > 0:
                await self._sleep(delay)

        self._logger.info("supervisor_stopped")

    def get_status(self) -> dict[str, object]:
        """Get a status summary for the supervised process.

        Returns:
            Dictionary of probe, fault, and restart information.
        """
        last_event = self._coordinator.last_event
        return {
            "name": self._process.name,
            "state": self.status.last_state.value if self.status.last_state else None,
            "last_probe_at": self.status.last_probe_at,
            "coordinator_state": self._coordinator.state.value,
            "restart_count": self._coordinator.restart_count,
            "failed_restarts": self._coordinator.failed_restarts,
            "fault_count": self.status.fault_count,
            "last_fault_at": self.status.last_fault_at,
            "skipped_cycles": self.status.skipped_cycles,
            "last_event": (
                {
                    "reason": last_event.reason.value,
                    "timestamp": last_event.timestamp,
                    "succeeded": last_event.succeeded,
                    "pid": last_event.pid,
                    "message": last_event.message,
                }
                if last_event is not None
                else None
            ),
        }
