"""Shared utilities for procwarden."""

from ._logging import LogFormatType, create_logger, get_default_logger
from ._paths import get_default_pid_file, get_runtime_dir, get_user_config_path

__all__ = [
    "LogFormatType",
    "create_logger",
    "get_default_logger",
    "get_default_pid_file",
    "get_runtime_dir",
    "get_user_config_path",
]
