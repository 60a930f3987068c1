"""Supervisor package for keeping one external process alive.

The supervisor probes the process on a fixed interval, optionally scans
its log output for a fault signature, and restarts it through a
coordinator that first waits out (or terminates) a conflicting helper.

Key Components:
    - SupervisedProcess: What is launched and how it is recognised
    - LivenessCheck: Protocol for liveness strategies
    - ProcessTableMatch / ServiceManagerQuery: Liveness strategies
    - FaultDetector: Log-based fault detection
    - ProcessLauncher: Spawns the executable and records its PID
    - RestartCoordinator: Serialised restarts with conflict handling
    - Supervisor: The probe/scan scheduling loop
    - create_supervisor: Wiring from a loaded Config

Example:
    >>> from procwarden.config import Config
    >>> from procwarden.supervisor import create_supervisor
    >>> supervisor = create_supervisor(Config.load())
    >>> await supervisor.run()  # Blocks until request_shutdown()
"""

from ._clock import MonotonicClock, get_timestamp
from ._conflict import ProcessTableConflictGuard
from ._coordinator import RestartCoordinator
from ._factory import (
    build_detector,
    build_launcher,
    build_liveness,
    build_process,
    build_restarter,
    create_supervisor,
)
from ._faults import FaultDetector, FileLogSource, JournalLogSource
from ._launcher import LaunchHandle, ProcessLauncher, build_environment, check_executable
from ._liveness import (
    ProcessTableMatch,
    ServiceManagerQuery,
    parse_unit_state,
    probe_with_timeout,
)
from ._models import (
    CoordinatorState,
    EnvMode,
    EnvOverride,
    FaultSignature,
    ProcessState,
    RestartEvent,
    RestartReason,
    SupervisedProcess,
    SupervisorStatus,
)
from ._output import ConsoleEventSink
from ._pidstore import FilePidStore
from ._protocol import (
    Clock,
    ConflictGuard,
    EventSink,
    LivenessCheck,
    LogSource,
    PidStore,
    Restarter,
)
from ._service import ServiceManagerRestarter
from ._supervisor import Supervisor

__all__ = [
    "Clock",
    "ConflictGuard",
    "ConsoleEventSink",
    "CoordinatorState",
    "EnvMode",
    "EnvOverride",
    "EventSink",
    "FaultDetector",
    "FaultSignature",
    "FileLogSource",
    "FilePidStore",
    "JournalLogSource",
    "LaunchHandle",
    "LivenessCheck",
    "LogSource",
    "MonotonicClock",
    "PidStore",
    "ProcessLauncher",
    "ProcessState",
    "ProcessTableConflictGuard",
    "ProcessTableMatch",
    "RestartCoordinator",
    "RestartEvent",
    "RestartReason",
    "Restarter",
    "ServiceManagerQuery",
    "ServiceManagerRestarter",
    "SupervisedProcess",
    "Supervisor",
    "SupervisorStatus",
    "build_detector",
    "build_environment",
    "build_launcher",
    "build_liveness",
    "build_process",
    "build_restarter",
    "check_executable",
    "create_supervisor",
    "get_timestamp",
    "parse_unit_state",
    "probe_with_timeout",
]
