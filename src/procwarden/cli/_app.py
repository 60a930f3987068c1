"""The command-line interface for procwarden."""

from cyclopts import App
from rich.console import Console

from ._commands import register_commands

APP_HELP = "Keep an external process alive: probe, detect faults, restart."

app = App(name="procwarden", help=APP_HELP, help_on_error=True)
register_commands(app)


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="procwarden",
        help=APP_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    register_commands(app)
    return app


def main() -> None:
    """Default entrypoint for the `procwarden` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
