# pyright: reportAny=false, reportExplicitAny=false
"""Merged configuration container."""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, NoReturn, Self

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from procwarden.exceptions import ConfigValidationError
from procwarden.utils import get_default_pid_file, get_user_config_path

from ._loader import deep_merge, parse_env_vars, read_toml_file, set_nested_key
from ._models import (
    ConflictConfig,
    FaultsConfig,
    LoggingConfig,
    LogSourceKind,
    PidConfig,
    ProbeConfig,
    ProbeStrategy,
    RestartConfig,
    RestartStrategy,
    TargetConfig,
)


def _raise_from_pydantic(error: ValidationError, source: str | None) -> NoReturn:
    first = error.errors()[0]
    key = ".".join(str(part) for part in first["loc"])
    msg = f"Invalid value for '{key}': {first['msg']}"
    raise ConfigValidationError(
        msg,
        key=key,
        value=first.get("input"),
        expected=first["type"],
        source=source,
    ) from error


def _check_references(config: Config, source: str | None) -> None:
    """Validate settings that depend on other sections."""
    if not config.target.executable.is_absolute():
        msg = "target.executable must be an absolute path"
        raise ConfigValidationError(
            msg,
            key="target.executable",
            value=str(config.target.executable),
            expected="absolute path",
            source=source,
        )

    needs_unit = (
        ("probe.strategy", config.probe.strategy == ProbeStrategy.SERVICE_MANAGER),
        (
            "restart.strategy",
            config.restart.strategy == RestartStrategy.SERVICE_MANAGER,
        ),
        (
            "faults.source",
            config.faults.enabled and config.faults.source == LogSourceKind.JOURNAL,
        ),
    )
    for key, required in needs_unit:
        if required and not config.target.unit:
            msg = f"{key} requires target.unit to be set"
            raise ConfigValidationError(
                msg,
                key="target.unit",
                value=config.target.unit,
                expected="systemd unit name",
                source=source,
            )

    if (
        config.faults.enabled
        and config.faults.source == LogSourceKind.FILE
        and config.fault_log_file is None
    ):
        msg = "faults.source 'file' requires faults.log_file or target.output_log"
        raise ConfigValidationError(
            msg,
            key="faults.log_file",
            value=config.faults.log_file,
            expected="log file path",
            source=source,
        )


class Config(BaseModel):
    """Configuration container with typed access.

    Use the factory methods rather than the constructor so that
    cross-section validation runs.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    target: TargetConfig = Field(default_factory=TargetConfig)
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    faults: FaultsConfig = Field(default_factory=FaultsConfig)
    conflict: ConflictConfig = Field(default_factory=ConflictConfig)
    restart: RestartConfig = Field(default_factory=RestartConfig)
    pid: PidConfig = Field(default_factory=PidConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _sources: tuple[Path, ...] = PrivateAttr(default=())

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        source: str | None = None,
    ) -> Self:
        """Create configuration from a dictionary.

        Args:
            data: Dictionary of configuration values. Missing keys use defaults.
            source: Label used in validation errors.

        Raises:
            ConfigValidationError: If validation fails.
        """
        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            _raise_from_pydantic(e, source)

        _check_references(config, source)
        return config

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific file only.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        config = cls.from_dict(read_toml_file(path), source=str(path))
        config._sources = (path,)
        return config

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        *,
        include_user: bool = True,
        include_env: bool = True,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Precedence, lowest to highest: defaults, user config file,
        ``config_path``, ``PROCWARDEN_*`` environment variables, CLI
        overrides.

        Args:
            config_path: Explicit config file. Must exist.
            include_user: Include the per-user config file if present.
            include_env: Include environment variables.
            cli_overrides: Mapping of dotted keys (``probe.interval``) to values.

        Raises:
            FileNotFoundError: If ``config_path`` does not exist.
            ConfigLoadError: If a config file cannot be parsed.
            ConfigValidationError: If the merged config fails validation.
        """
        merged: dict[str, Any] = {}
        sources: list[Path] = []

        if include_user:
            user_path = get_user_config_path()
            if user_path.is_file():
                merged = deep_merge(merged, read_toml_file(user_path))
                sources.append(user_path)

        if config_path is not None:
            merged = deep_merge(merged, read_toml_file(config_path))
            sources.append(config_path)

        if include_env:
            merged = deep_merge(merged, parse_env_vars())

        if cli_overrides:
            overrides: dict[str, Any] = {}
            for key, value in cli_overrides.items():
                set_nested_key(overrides, key, value)
            merged = deep_merge(merged, overrides)

        label = str(config_path) if config_path is not None else None
        config = cls.from_dict(merged, source=label)
        config._sources = tuple(sources)
        return config

    @property
    def sources(self) -> list[Path]:
        """Return the config files that contributed, lowest precedence first."""
        return list(self._sources)

    @property
    def pid_file(self) -> Path:
        """Resolved PID file path."""
        if self.pid.file:
            return Path(self.pid.file)
        return get_default_pid_file(self.target.name)

    @property
    def fault_log_file(self) -> Path | None:
        """Log file followed by the file fault source, if any."""
        path = self.faults.log_file or self.target.output_log
        return Path(path) if path else None

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a JSON/TOML compatible dictionary."""
        return self.model_dump(mode="json")

    def to_toml(self) -> str:
        """Convert configuration to a TOML string."""
        return tomli_w.dumps(self.to_dict())
