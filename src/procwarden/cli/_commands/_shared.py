# pyright: reportExplicitAny=false
"""Shared CLI utilities for commands.

This module provides common utilities used across CLI command implementations:
- Standardized exit codes
- Configuration loading with error reporting
- Output formatters (JSON, TOML)
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

from procwarden.exceptions import ConfigError, ConfigLoadError, ConfigValidationError

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console
    from structlog.typing import FilteringBoundLogger

    from procwarden.config import Config

# Type alias for formattable data - uses Any to match library signatures
FormattableData = dict[str, Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "create_command_logger",
    "exit_with_error",
    "format_json",
    "format_toml",
    "get_error_console",
    "load_config_or_exit",
]


class ExitCode(IntEnum):
    """Standard exit codes for procwarden commands.

    ``check`` uses NOT_RUNNING for both a stopped and an undeterminable
    process.
    """

    SUCCESS = 0
    NOT_RUNNING = 1
    CONFIG_ERROR = 2
    LAUNCH_ERROR = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Dictionary to format as JSON.
        indent: Whether to pretty-print with indentation.

    Returns:
        JSON-formatted string representation.
    """
    import orjson

    options = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(data, option=options).decode("utf-8")


def format_toml(data: FormattableData) -> str:
    """Format data as TOML."""
    import tomli_w

    return tomli_w.dumps(data)


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr."""
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}")
    raise SystemExit(code)


def _describe_config_error(error: ConfigError) -> str:
    if isinstance(error, ConfigLoadError) and error.path is not None:
        where = str(error.path)
        if error.line is not None:
            where = f"{where}:{error.line}"
        return f"{where}: {error}"
    if isinstance(error, ConfigValidationError) and error.source is not None:
        return f"{error.source}: {error}"
    return str(error)


def load_config_or_exit(
    config_path: Path | None = None,
    *,
    cli_overrides: dict[str, object] | None = None,
    console: Console | None = None,
) -> Config:
    """Load configuration, exiting with CONFIG_ERROR on failure.

    An explicit ``config_path`` must exist.
    """
    from procwarden.config import Config

    if config_path is not None and not config_path.is_file():
        exit_with_error(
            f"Config file not found: {config_path}",
            ExitCode.CONFIG_ERROR,
            console=console,
        )

    try:
        return Config.load(config_path, cli_overrides=cli_overrides)
    except ConfigError as e:
        exit_with_error(_describe_config_error(e), ExitCode.CONFIG_ERROR, console=console)
    except OSError as e:
        exit_with_error(f"Failed to read config: {e}", ExitCode.CONFIG_ERROR, console=console)


def create_command_logger(
    config: Config,
    *,
    verbose: bool = False,
    **context: object,
) -> FilteringBoundLogger:
    """Create the logger for a command from the logging section."""
    from procwarden.utils import create_logger

    logging_config = config.logging
    rotate = bool(logging_config.file) and logging_config.max_bytes > 0
    return create_logger(
        level="debug" if verbose else logging_config.level.value,
        log_format=logging_config.format.value,  # pyright: ignore[reportArgumentType]
        log_file=logging_config.file,
        max_bytes=logging_config.max_bytes if rotate else None,
        backup_count=logging_config.backup_count if rotate else None,
        **context,
    )
