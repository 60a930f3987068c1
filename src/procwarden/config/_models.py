"""Configuration section models.

Each section of the TOML file maps to one frozen Pydantic model. Unknown
keys are ignored so that newer files keep loading on older installs.
"""

from enum import StrEnum
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeFloat,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
)

DEFAULT_EXECUTABLE = Path("/opt/cisco/secureclient/bin/vpnagentd")
DEFAULT_LIBRARY_DIR = "/opt/cisco/anyconnect/libxml"


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class ProbeStrategy(StrEnum):
    """How liveness is determined."""

    PROCESS_TABLE = "process-table"
    SERVICE_MANAGER = "service-manager"


class RestartStrategy(StrEnum):
    """How a restart is performed."""

    LAUNCH = "launch"
    SERVICE_MANAGER = "service-manager"


class LogSourceKind(StrEnum):
    """Where fault detection reads log lines from."""

    FILE = "file"
    JOURNAL = "journal"


class EnvOverrideConfig(BaseModel):
    """A single environment variable override for the launched process.

    Attributes:
        name: Variable name.
        value: Value to apply.
        mode: ``set`` replaces, ``prepend``/``append`` join with ``:``.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    value: str
    mode: Literal["set", "prepend", "append"] = "set"


def _default_env() -> tuple[EnvOverrideConfig, ...]:
    return (
        EnvOverrideConfig(
            name="LD_LIBRARY_PATH", value=DEFAULT_LIBRARY_DIR, mode="prepend"
        ),
        EnvOverrideConfig(
            name="LD_PRELOAD", value=f"{DEFAULT_LIBRARY_DIR}/libxml2.so.2"
        ),
    )


class TargetConfig(BaseModel):
    """The supervised process.

    Attributes:
        name: Identifier used in logs, events, and the default PID file name.
        executable: Absolute path to the program.
        args: Command-line arguments.
        env: Environment overrides applied at launch.
        match: Process table pattern (defaults to the executable path).
        unit: Service manager unit name.
        output_log: File receiving the process's stdout/stderr.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(default="vpnagentd", min_length=1)
    executable: Path = DEFAULT_EXECUTABLE
    args: tuple[str, ...] = ()
    env: tuple[EnvOverrideConfig, ...] = Field(default_factory=_default_env)
    match: str = ""
    unit: str = ""
    output_log: str = ""


class ProbeConfig(BaseModel):
    """Liveness probing settings."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    strategy: ProbeStrategy = ProbeStrategy.PROCESS_TABLE
    interval: PositiveFloat = 30.0
    timeout: PositiveFloat = 5.0


class FaultsConfig(BaseModel):
    """Log-based fault detection settings.

    Attributes:
        enabled: Whether fault scanning runs at all.
        signature: Literal, case-sensitive substring marking a fault.
        interval: Seconds between scans.
        window: Seconds of log history considered per scan.
        source: ``file`` or ``journal``.
        log_file: Log file to follow (defaults to ``target.output_log``).
        max_lines: Lines kept in memory by the file source.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = False
    signature: str = Field(default="libxml2.so.2", min_length=1)
    interval: PositiveFloat = 30.0
    window: PositiveFloat = 60.0
    source: LogSourceKind = LogSourceKind.FILE
    log_file: str = ""
    max_lines: PositiveInt = 1000


class ConflictConfig(BaseModel):
    """Conflicting helper handling. An empty ``match`` disables it."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    match: str = "vpndownloader"
    max_attempts: NonNegativeInt = 10
    interval: PositiveFloat = 1.0
    kill_timeout: PositiveFloat = 3.0


class RestartConfig(BaseModel):
    """Restart settings.

    Attributes:
        strategy: ``launch`` spawns the executable directly,
            ``service-manager`` asks systemd to restart the unit.
        cooldown: Minimum seconds between the end of one restart and the
            start of the next.
        stop_timeout: Seconds to wait for the old process to exit before
            killing it.
        timeout: Seconds allowed for a service manager restart.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    strategy: RestartStrategy = RestartStrategy.LAUNCH
    cooldown: NonNegativeFloat = 10.0
    stop_timeout: PositiveFloat = 5.0
    timeout: PositiveFloat = 30.0


class PidConfig(BaseModel):
    """PID file location. Empty uses the runtime directory."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    file: str = ""


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
        max_bytes: Rotate the log file at this size. 0 disables rotation.
        backup_count: Rotated files to keep.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
    max_bytes: NonNegativeInt = 0
    backup_count: NonNegativeInt = 3
