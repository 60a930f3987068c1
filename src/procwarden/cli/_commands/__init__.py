"""procwarden CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._check import app as check_app
from ._config import app as config_app
from ._launch import app as launch_app
from ._run import app as run_app
from ._shared import (
    ExitCode,
    FormattableData,
    exit_with_error,
    format_json,
    format_toml,
    get_error_console,
    load_config_or_exit,
)
from ._unit import app as unit_app

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "ExitCode",
    "FormattableData",
    "check_app",
    "config_app",
    "exit_with_error",
    "format_json",
    "format_toml",
    "get_error_console",
    "launch_app",
    "load_config_or_exit",
    "register_commands",
    "run_app",
    "unit_app",
]


def register_commands(app: App) -> None:
    app.command(run_app)
    app.command(check_app)
    app.command(launch_app)
    app.command(unit_app)
    app.command(config_app)
