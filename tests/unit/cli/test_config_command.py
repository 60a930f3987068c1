import tomllib
from collections.abc import Callable
from pathlib import Path

import orjson
import pytest

from procwarden.cli._commands import ExitCode


class TestConfigShow:
    def test_prints_merged_toml(
        self,
        procwarden_cli: Callable[..., int],
        config_file: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = config_file('[target]\nname = "agent"\n[probe]\ninterval = 12\n')

        code = procwarden_cli("config", "show", "--config", str(path))

        assert code == ExitCode.SUCCESS
        data = tomllib.loads(capsys.readouterr().out)
        assert data["target"]["name"] == "agent"
        assert data["probe"]["interval"] == 12.0
        assert data["restart"]["cooldown"] == 10.0

    def test_prints_json(
        self,
        procwarden_cli: Callable[..., int],
        config_file: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = procwarden_cli("config", "show", "-c", str(config_file()), "--format", "json")

        assert code == ExitCode.SUCCESS
        data = orjson.loads(capsys.readouterr().out)
        assert data["faults"]["signature"] == "libxml2.so.2"

    def test_environment_overrides_file(
        self,
        procwarden_cli: Callable[..., int],
        config_file: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("PROCWARDEN_PROBE__INTERVAL", "45")
        path = config_file("[probe]\ninterval = 12\n")

        _ = procwarden_cli("config", "show", "--config", str(path), "--format", "json")

        assert orjson.loads(capsys.readouterr().out)["probe"]["interval"] == 45.0

    def test_unparseable_file(
        self,
        procwarden_cli: Callable[..., int],
        config_file: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = config_file("[probe\n")

        code = procwarden_cli("config", "show", "--config", str(path))

        assert code == ExitCode.CONFIG_ERROR
        assert "procwarden.toml:1" in capsys.readouterr().err
