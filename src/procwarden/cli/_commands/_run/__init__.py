# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""procwarden run command - supervises processes until stopped."""

from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import App, Parameter

from procwarden.cli._commands._shared import (
    ExitCode,
    create_command_logger,
    exit_with_error,
    load_config_or_exit,
)

app = App(
    name="run",
    help="Supervise the configured processes until SIGINT or SIGTERM.",
    help_on_error=True,
)


@app.default
def run(
    *,
    config: Annotated[
        list[Path] | None,
        Parameter(
            name=["--config", "-c"],
            help="Config file. Repeat to supervise several processes.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        Parameter(help="Log at debug level."),
    ] = False,
) -> None:
    """Run one supervisor per config file.

    Each supervisor probes its process, scans its log for the fault
    signature when enabled, and restarts the process when either check
    fails. Without --config the user config file and environment are used.
    """
    from procwarden.supervisor import ConsoleEventSink, create_supervisor

    from ._runner import run_supervisors

    paths: list[Path | None] = list(config) if config else [None]
    configs = [load_config_or_exit(path) for path in paths]

    names = [c.target.name for c in configs]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        exit_with_error(
            f"Duplicate target names: {', '.join(duplicates)}",
            ExitCode.CONFIG_ERROR,
        )

    logger = create_command_logger(configs[0], verbose=verbose)
    sink = ConsoleEventSink()
    supervisors = [
        create_supervisor(
            c, event_sink=sink, logger=create_command_logger(c, verbose=verbose)
        )
        for c in configs
    ]

    anyio.run(run_supervisors, supervisors, logger)
