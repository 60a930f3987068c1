"""Assembly of supervisor components from configuration."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from procwarden.config import LogSourceKind, ProbeStrategy, RestartStrategy

from ._clock import MonotonicClock
from ._conflict import ProcessTableConflictGuard
from ._coordinator import RestartCoordinator
from ._faults import FaultDetector, FileLogSource, JournalLogSource
from ._launcher import ProcessLauncher
from ._liveness import ProcessTableMatch, ServiceManagerQuery
from ._models import EnvMode, EnvOverride, FaultSignature, SupervisedProcess
from ._pidstore import FilePidStore
from ._service import ServiceManagerRestarter
from ._supervisor import Supervisor

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from procwarden.config import Config

    from ._protocol import Clock, EventSink, LivenessCheck, LogSource, Restarter


def build_process(config: Config) -> SupervisedProcess:
    """Build the supervised process description from the target section."""
    target = config.target
    return SupervisedProcess(
        name=target.name,
        executable=target.executable,
        args=target.args,
        env=tuple(
            EnvOverride(name=e.name, value=e.value, mode=EnvMode(e.mode))
            for e in target.env
        ),
        unit=target.unit or None,
        match=target.match or None,
        output_log=Path(target.output_log) if target.output_log else None,
    )


def build_launcher(
    config: Config,
    *,
    logger: FilteringBoundLogger | None = None,
) -> ProcessLauncher:
    """Build a launcher recording PIDs in the configured PID file."""
    return ProcessLauncher(
        FilePidStore(config.pid_file),
        stop_timeout=config.restart.stop_timeout,
        logger=logger,
    )


def build_liveness(config: Config) -> LivenessCheck:
    if config.probe.strategy == ProbeStrategy.SERVICE_MANAGER:
        return ServiceManagerQuery()
    return ProcessTableMatch()


def build_restarter(
    config: Config,
    *,
    logger: FilteringBoundLogger | None = None,
) -> Restarter:
    if config.restart.strategy == RestartStrategy.SERVICE_MANAGER:
        return ServiceManagerRestarter(timeout=config.restart.timeout, logger=logger)
    return build_launcher(config, logger=logger)


def build_detector(
    config: Config,
    clock: Clock,
    *,
    from_start: bool = False,
    logger: FilteringBoundLogger | None = None,
) -> FaultDetector | None:
    """Build the fault detector, or None when fault scanning is disabled.

    With ``from_start`` a file source also considers content written before
    the first scan.
    """
    faults = config.faults
    if not faults.enabled:
        return None

    source: LogSource
    if faults.source == LogSourceKind.JOURNAL:
        source = JournalLogSource(
            config.target.unit, timeout=config.probe.timeout, logger=logger
        )
    else:
        log_file = config.fault_log_file
        if log_file is None:
            # Config validation rejects this combination
            msg = "file fault source requires a log file"
            raise ValueError(msg)
        source = FileLogSource(
            log_file, clock, max_lines=faults.max_lines, from_start=from_start
        )

    return FaultDetector(source, FaultSignature(faults.signature), window=faults.window)


def create_supervisor(
    config: Config,
    *,
    clock: Clock | None = None,
    liveness: LivenessCheck | None = None,
    restarter: Restarter | None = None,
    event_sink: EventSink | None = None,
    logger: FilteringBoundLogger | None = None,
) -> Supervisor:
    """Create a supervisor wired from configuration.

    Any component passed explicitly replaces the one the configuration
    would select.

    Args:
        config: Loaded configuration.
        clock: Clock for scheduling. Defaults to the anyio monotonic clock.
        liveness: Liveness check override.
        restarter: Restart action override.
        event_sink: Receiver of restart events.
        logger: Structured logger shared by all components.

    Returns:
        A Supervisor ready to ``run()``.
    """
    clock = clock or MonotonicClock()
    process = build_process(config)

    conflict = (
        ProcessTableConflictGuard(
            config.conflict.match, kill_timeout=config.conflict.kill_timeout
        )
        if config.conflict.match
        else None
    )

    coordinator = RestartCoordinator(
        process,
        restarter or build_restarter(config, logger=logger),
        clock=clock,
        conflict=conflict,
        conflict_max_attempts=config.conflict.max_attempts,
        conflict_interval=config.conflict.interval,
        cooldown=config.restart.cooldown,
        event_sink=event_sink,
        logger=logger,
    )

    return Supervisor(
        process,
        liveness or build_liveness(config),
        coordinator,
        clock=clock,
        detector=build_detector(config, clock, logger=logger),
        probe_interval=config.probe.interval,
        probe_timeout=config.probe.timeout,
        scan_interval=config.faults.interval,
        logger=logger,
    )
