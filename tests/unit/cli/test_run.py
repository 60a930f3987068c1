from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from pytest_mock import MockerFixture
from structlog.typing import FilteringBoundLogger

from procwarden.cli._commands import ExitCode
from procwarden.cli._commands._run._runner import run_supervisors
from procwarden.config import Config
from procwarden.supervisor import ProcessState, Supervisor, create_supervisor
from procwarden.supervisor._fake import FakeClock, FakeLivenessCheck, FakeRestarter

RUNNER_MODULE = "procwarden.cli._commands._run._runner"


def _supervisor(name: str, states: list[ProcessState]) -> tuple[Supervisor, FakeRestarter]:
    restarter = FakeRestarter()
    liveness = FakeLivenessCheck.scripted(states)
    supervisor = create_supervisor(
        Config.from_dict(
            {"target": {"name": name}, "conflict": {"match": ""}, "restart": {"cooldown": 0}}
        ),
        clock=FakeClock(),
        liveness=liveness,
        restarter=restarter,
    )

    def _stop_after_script(probe: int) -> None:
        if probe > len(states):
            supervisor.request_shutdown()

    liveness.on_probe = _stop_after_script
    return supervisor, restarter


@pytest.mark.anyio
class TestRunSupervisors:
    async def test_runs_all_until_each_stops(self, logger: FilteringBoundLogger) -> None:
        first, first_restarter = _supervisor("agent-a", [ProcessState.NOT_RUNNING])
        second, second_restarter = _supervisor(
            "agent-b", [ProcessState.RUNNING, ProcessState.NOT_RUNNING]
        )

        await run_supervisors([first, second], logger)

        assert first.shutdown_requested
        assert second.shutdown_requested
        assert len(first_restarter.calls) == 1
        assert len(second_restarter.calls) == 1


class TestRunCommand:
    def test_starts_one_supervisor_per_config(
        self,
        procwarden_cli: Callable[..., int],
        config_file: Callable[..., Path],
        mocker: MockerFixture,
    ) -> None:
        runner = mocker.patch(f"{RUNNER_MODULE}.run_supervisors", new=AsyncMock())
        first = config_file('[target]\nname = "agent-a"\n', name="a.toml")
        second = config_file('[target]\nname = "agent-b"\n', name="b.toml")

        code = procwarden_cli("run", "--config", str(first), "--config", str(second))

        assert code == ExitCode.SUCCESS
        supervisors = runner.await_args.args[0]
        assert [s.process.name for s in supervisors] == ["agent-a", "agent-b"]

    def test_duplicate_names_are_rejected(
        self,
        procwarden_cli: Callable[..., int],
        config_file: Callable[..., Path],
        mocker: MockerFixture,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        runner = mocker.patch(f"{RUNNER_MODULE}.run_supervisors", new=AsyncMock())
        first = config_file(name="a.toml")
        second = config_file(name="b.toml")

        code = procwarden_cli("run", "-c", str(first), "-c", str(second))

        assert code == ExitCode.CONFIG_ERROR
        assert "Duplicate target names: vpnagentd" in capsys.readouterr().err
        runner.assert_not_awaited()
