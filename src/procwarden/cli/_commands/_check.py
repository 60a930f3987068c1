# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""procwarden check command - one probe and one fault scan."""

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

import anyio
from cyclopts import App, Parameter
from rich.console import Console
from rich.table import Table
from structlog.typing import FilteringBoundLogger

from procwarden.config import Config
from procwarden.exceptions import LogSourceError, ProbeError
from procwarden.supervisor import (
    MonotonicClock,
    ProcessState,
    build_detector,
    build_liveness,
    build_process,
    probe_with_timeout,
)

from ._shared import ExitCode, create_command_logger, format_json, load_config_or_exit

CheckFormat = Literal["table", "json"]

app = App(
    name="check",
    help="Probe the supervised process once and report its state.",
    help_on_error=True,
)


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of a one-shot check.

    Attributes:
        name: Supervised process name.
        state: Probe result.
        fault_detected: Scan result, or None when fault scanning is off or
            the log could not be read.
        errors: Probe and log source errors encountered.
    """

    name: str
    state: ProcessState
    fault_detected: bool | None
    errors: tuple[str, ...] = ()

    @property
    def exit_code(self) -> ExitCode:
        if self.state == ProcessState.RUNNING:
            return ExitCode.SUCCESS
        return ExitCode.NOT_RUNNING

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "state": self.state.value,
            "fault_detected": self.fault_detected,
            "errors": list(self.errors),
        }


async def run_check(config: Config, logger: FilteringBoundLogger) -> CheckResult:
    """Probe once and scan the configured log once.

    A probe error reports the process as unknown. Existing log file content
    counts toward the fault window.
    """
    process = build_process(config)
    errors: list[str] = []

    try:
        state = await probe_with_timeout(
            build_liveness(config), process, timeout=config.probe.timeout
        )
    except ProbeError as e:
        state = ProcessState.UNKNOWN
        errors.append(str(e))

    fault_detected: bool | None = None
    detector = build_detector(config, MonotonicClock(), from_start=True, logger=logger)
    if detector is not None:
        try:
            fault_detected = await detector.scan()
        except LogSourceError as e:
            errors.append(str(e))

    return CheckResult(
        name=process.name,
        state=state,
        fault_detected=fault_detected,
        errors=tuple(errors),
    )


def _render_table(result: CheckResult, console: Console) -> None:
    state_styles = {
        ProcessState.RUNNING: "green",
        ProcessState.NOT_RUNNING: "red",
        ProcessState.UNKNOWN: "yellow",
    }

    table = Table(show_header=True, header_style="bold")
    table.add_column("Process")
    table.add_column("State")
    table.add_column("Fault")

    if result.fault_detected is None:
        fault = "[dim]-[/dim]"
    elif result.fault_detected:
        fault = "[red]detected[/red]"
    else:
        fault = "none"

    style = state_styles[result.state]
    table.add_row(result.name, f"[{style}]{result.state.value}[/{style}]", fault)
    console.print(table)

    for error in result.errors:
        console.print(f"[yellow]Warning:[/yellow] {error}")


@app.default
def check(
    *,
    config: Annotated[
        Path | None,
        Parameter(name=["--config", "-c"], help="Path to config file."),
    ] = None,
    output_format: Annotated[
        CheckFormat,
        Parameter(name="--format", help="Output format."),
    ] = "table",
) -> None:
    """Check whether the supervised process is running.

    Exits 0 when running, 1 when not running or undeterminable, and 2 when
    the configuration is invalid.
    """
    loaded = load_config_or_exit(config)
    logger = create_command_logger(loaded, command="check")

    result = anyio.run(run_check, loaded, logger)

    if output_format == "json":
        print(format_json(result.to_dict()))
    else:
        _render_table(result, Console())

    raise SystemExit(result.exit_code)
