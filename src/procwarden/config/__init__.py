"""Configuration loading for procwarden.

Configuration comes from TOML files, ``PROCWARDEN_*`` environment
variables, and CLI overrides, merged over built-in defaults.
"""

from ._config import Config
from ._loader import (
    ENV_PREFIX,
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    ConflictConfig,
    EnvOverrideConfig,
    FaultsConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    LogSourceKind,
    PidConfig,
    ProbeConfig,
    ProbeStrategy,
    RestartConfig,
    RestartStrategy,
    TargetConfig,
)

__all__ = [
    "ENV_PREFIX",
    "Config",
    "ConflictConfig",
    "EnvOverrideConfig",
    "FaultsConfig",
    "LogFormat",
    "LogLevel",
    "LogSourceKind",
    "LoggingConfig",
    "PidConfig",
    "ProbeConfig",
    "ProbeStrategy",
    "RestartConfig",
    "RestartStrategy",
    "TargetConfig",
    "deep_merge",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "set_nested_key",
]
