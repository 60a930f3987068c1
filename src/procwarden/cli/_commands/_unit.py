# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""procwarden unit command - renders a systemd service unit."""

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter

from procwarden.systemd import UnitMode, build_unit_context, render_unit

from ._shared import ExitCode, exit_with_error, load_config_or_exit

app = App(
    name="unit",
    help="Render a systemd service unit for the configured target.",
    help_on_error=True,
)


@app.default
def unit(
    *,
    config: Annotated[
        Path | None,
        Parameter(name=["--config", "-c"], help="Path to config file."),
    ] = None,
    mode: Annotated[
        UnitMode,
        Parameter(
            help="forking: ExecStart runs launch; supervisor: ExecStart runs run."
        ),
    ] = "forking",
    output: Annotated[
        Path | None,
        Parameter(name=["--output", "-o"], help="Write the unit to this file."),
    ] = None,
) -> None:
    """Render a unit file to stdout or --output."""
    loaded = load_config_or_exit(config)
    content = render_unit(build_unit_context(loaded, mode=mode, config_path=config))

    if output is None:
        print(content, end="")
        return

    try:
        _ = output.write_text(content, encoding="utf-8")
    except OSError as e:
        exit_with_error(f"Failed to write {output}: {e}", ExitCode.IO_ERROR)
