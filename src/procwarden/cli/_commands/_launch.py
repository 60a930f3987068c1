# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""procwarden launch command - one-shot start for forking service units."""

from pathlib import Path
from typing import Annotated

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from procwarden.exceptions import SupervisorError
from procwarden.supervisor import (
    LaunchHandle,
    ProcessLauncher,
    SupervisedProcess,
    build_launcher,
    build_process,
    check_executable,
)

from ._shared import ExitCode, create_command_logger, exit_with_error, load_config_or_exit

app = App(
    name="launch",
    help="Start the target with its environment overrides and exit.",
    help_on_error=True,
)


async def relaunch(
    launcher: ProcessLauncher,
    process: SupervisedProcess,
) -> LaunchHandle:
    """Replace any running instance with a fresh one.

    The executable is checked before the old instance is stopped.
    """
    check_executable(process)
    await launcher.stop(process)
    return await launcher.launch(process)


@app.default
def launch(
    *,
    config: Annotated[
        Path | None,
        Parameter(name=["--config", "-c"], help="Path to config file."),
    ] = None,
    verbose: Annotated[
        bool,
        Parameter(help="Log at debug level."),
    ] = False,
) -> None:
    """Stop a stale instance, start the target, write its PID file, and exit.

    Used as ExecStart of a Type=forking unit so that systemd tracks the
    target through the PID file.
    """
    loaded = load_config_or_exit(config)
    logger = create_command_logger(loaded, verbose=verbose, command="launch")
    process = build_process(loaded)
    launcher = build_launcher(loaded, logger=logger)

    try:
        handle = anyio.run(relaunch, launcher, process)
    except SupervisorError as e:
        exit_with_error(str(e), ExitCode.LAUNCH_ERROR)

    Console(stderr=True).print(
        f"Started [bold]{process.name}[/bold] (pid {handle.pid}), "
        f"PID file {loaded.pid_file}"
    )
