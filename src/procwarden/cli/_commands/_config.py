# pyright: reportUnusedFunction=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""procwarden config command - inspects the effective configuration."""

from pathlib import Path
from typing import Annotated, Literal

from cyclopts import App, Parameter

from ._shared import format_json, format_toml, load_config_or_exit

ConfigFormat = Literal["toml", "json"]

app = App(
    name="config",
    help="Inspect procwarden configuration.",
    help_on_error=True,
)


@app.command(name="show")
def show(
    *,
    config: Annotated[
        Path | None,
        Parameter(name=["--config", "-c"], help="Path to config file."),
    ] = None,
    output_format: Annotated[
        ConfigFormat,
        Parameter(name="--format", help="Output format."),
    ] = "toml",
) -> None:
    """Print the configuration after merging all sources."""
    loaded = load_config_or_exit(config)
    data = loaded.to_dict()

    if output_format == "json":
        print(format_json(data))
    else:
        print(format_toml(data), end="")
