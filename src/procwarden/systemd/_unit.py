"""systemd unit rendering."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Literal, cast

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from jinja2 import Environment

    from procwarden.config import Config

UnitMode = Literal["forking", "supervisor"]

TEMPLATE_DIR = Path(__file__).parent / "templates"
UNIT_TEMPLATE = "procwarden.service.j2"


class UnitContext(BaseModel):
    """Template variables for a service unit.

    Attributes:
        mode: ``forking`` runs ``procwarden launch`` once and lets systemd
            track the PID file; ``supervisor`` keeps ``procwarden run`` in
            the foreground.
        description: Unit description.
        command: Path to the procwarden executable.
        config_path: Config file passed to the command, if any.
        pid_file: PID file systemd watches in forking mode.
        restart_sec: Delay before systemd restarts a failed unit.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    mode: UnitMode
    description: str
    command: str
    config_path: str = ""
    pid_file: str
    restart_sec: int = 5


def find_command() -> str:
    """Locate the installed ``procwarden`` script.

    Falls back to the script next to the running interpreter.
    """
    found = shutil.which("procwarden")
    if found is not None:
        return found
    return str(Path(sys.executable).parent / "procwarden")


def create_environment() -> Environment:
    from jinja2 import Environment, FileSystemLoader  # noqa: PLC0415

    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,  # noqa: S701
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def build_unit_context(
    config: Config,
    *,
    mode: UnitMode = "forking",
    config_path: Path | None = None,
    command: str | None = None,
) -> UnitContext:
    """Build unit template variables from configuration."""
    return UnitContext(
        mode=mode,
        description=f"procwarden supervisor for {config.target.name}",
        command=command or find_command(),
        config_path=str(config_path.resolve()) if config_path is not None else "",
        pid_file=str(config.pid_file),
        restart_sec=max(1, round(config.restart.cooldown)),
    )


def render_unit(context: UnitContext, *, env: Environment | None = None) -> str:
    """Render a systemd service unit.

    Args:
        context: Template variables.
        env: Jinja2 environment. Defaults to the bundled templates.

    Returns:
        The unit file content.
    """
    env = env or create_environment()
    template = env.get_template(UNIT_TEMPLATE)
    return cast("str", template.render(context.model_dump()))
