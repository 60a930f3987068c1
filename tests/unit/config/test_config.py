# pyright: reportAny=false
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from procwarden.config import Config, LogSourceKind, ProbeStrategy, RestartStrategy
from procwarden.exceptions import ConfigLoadError, ConfigValidationError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem
    from pytest_mock import MockerFixture

USER_CONFIG = Path("/home/user/.config/procwarden/config.toml")


@pytest.fixture
def user_config_path(mocker: MockerFixture) -> Path:
    _ = mocker.patch(
        "procwarden.config._config.get_user_config_path", return_value=USER_CONFIG
    )
    return USER_CONFIG


class TestConfigDefaults:
    def test_defaults_describe_vpn_agent(self) -> None:
        config = Config.from_dict({})

        assert config.target.name == "vpnagentd"
        assert config.target.executable == Path("/opt/cisco/secureclient/bin/vpnagentd")
        assert [e.name for e in config.target.env] == ["LD_LIBRARY_PATH", "LD_PRELOAD"]
        assert config.probe.strategy is ProbeStrategy.PROCESS_TABLE
        assert config.probe.interval == 30.0
        assert config.faults.enabled is False
        assert config.faults.signature == "libxml2.so.2"
        assert config.conflict.match == "vpndownloader"
        assert config.restart.strategy is RestartStrategy.LAUNCH

    def test_unknown_keys_are_ignored(self) -> None:
        config = Config.from_dict({"probe": {"interval": 5, "jitter": 1}, "extra": {}})

        assert config.probe.interval == 5.0

    def test_config_is_frozen(self) -> None:
        config = Config.from_dict({})

        with pytest.raises(ValueError, match="frozen"):
            config.probe = config.probe  # pyright: ignore[reportAttributeAccessIssue]


class TestConfigValidation:
    def test_invalid_value_reports_dotted_key(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"probe": {"interval": -1}}, source="test.toml")

        error = exc_info.value
        assert error.key == "probe.interval"
        assert error.value == -1
        assert error.source == "test.toml"

    def test_invalid_enum(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"probe": {"strategy": "ping"}})

        assert exc_info.value.key == "probe.strategy"

    def test_relative_executable_is_rejected(self) -> None:
        with pytest.raises(ConfigValidationError, match="absolute path") as exc_info:
            _ = Config.from_dict({"target": {"executable": "bin/vpnagentd"}})

        assert exc_info.value.key == "target.executable"

    @pytest.mark.parametrize(
        "data",
        [
            {"probe": {"strategy": "service-manager"}},
            {"restart": {"strategy": "service-manager"}},
            {"faults": {"enabled": True, "source": "journal"}},
        ],
    )
    def test_service_manager_features_require_unit(self, data: dict[str, object]) -> None:
        with pytest.raises(ConfigValidationError, match="requires target.unit") as exc_info:
            _ = Config.from_dict(data)

        assert exc_info.value.key == "target.unit"

    def test_file_fault_source_requires_log(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"faults": {"enabled": True}})

        assert exc_info.value.key == "faults.log_file"

    def test_disabled_faults_need_no_log(self) -> None:
        config = Config.from_dict({"faults": {"source": "journal"}})

        assert config.faults.source is LogSourceKind.JOURNAL


class TestConfigFromFile:
    def test_loads_valid_toml_file(self, fs: FakeFilesystem) -> None:
        content = """
[target]
name = "agent"
executable = "/usr/sbin/agent"
args = ["-execv_instance"]
output_log = "/var/log/agent.log"

[faults]
enabled = true
window = 120
"""
        path = Path("/etc/procwarden/agent.toml")
        fs.create_file(path, contents=content)

        config = Config.from_file(path)

        assert config.target.name == "agent"
        assert config.target.args == ("-execv_instance",)
        assert config.faults.window == 120.0
        assert config.fault_log_file == Path("/var/log/agent.log")
        assert config.sources == [path]

    def test_raises_file_not_found_for_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            _ = Config.from_file(Path("/etc/procwarden/missing.toml"))

    def test_raises_config_load_error_for_invalid_toml(self, fs: FakeFilesystem) -> None:
        path = Path("/etc/procwarden/broken.toml")
        fs.create_file(path, contents="[probe\n")

        with pytest.raises(ConfigLoadError):
            _ = Config.from_file(path)

    def test_validation_error_names_file(self, fs: FakeFilesystem) -> None:
        path = Path("/etc/procwarden/bad.toml")
        fs.create_file(path, contents="[restart]\ncooldown = -5\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_file(path)

        assert exc_info.value.source == str(path)


class TestConfigLoad:
    def test_defaults_without_sources(
        self, fs: FakeFilesystem, user_config_path: Path
    ) -> None:
        config = Config.load(include_env=False)

        assert config.probe.interval == 30.0
        assert config.sources == []

    def test_precedence(
        self,
        fs: FakeFilesystem,
        user_config_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        fs.create_file(
            user_config_path,
            contents='[probe]\ninterval = 10\ntimeout = 2\n[target]\nname = "user"\n',
        )
        explicit = Path("/etc/procwarden/agent.toml")
        fs.create_file(explicit, contents="[probe]\ninterval = 20\n[restart]\ncooldown = 3\n")
        monkeypatch.setenv("PROCWARDEN_PROBE__INTERVAL", "40")
        monkeypatch.setenv("PROCWARDEN_RESTART__COOLDOWN", "4")

        config = Config.load(explicit, cli_overrides={"restart.cooldown": 7})

        assert config.target.name == "user"
        assert config.probe.timeout == 2.0
        assert config.probe.interval == 40.0
        assert config.restart.cooldown == 7.0
        assert config.sources == [user_config_path, explicit]

    def test_user_config_can_be_skipped(
        self, fs: FakeFilesystem, user_config_path: Path
    ) -> None:
        fs.create_file(user_config_path, contents="[probe]\ninterval = 10\n")

        config = Config.load(include_user=False, include_env=False)

        assert config.probe.interval == 30.0

    def test_env_can_be_skipped(
        self,
        fs: FakeFilesystem,
        user_config_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("PROCWARDEN_PROBE__INTERVAL", "40")

        config = Config.load(include_env=False)

        assert config.probe.interval == 30.0

    def test_missing_explicit_file(self, fs: FakeFilesystem, user_config_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            _ = Config.load(Path("/etc/procwarden/missing.toml"), include_env=False)

    def test_merged_result_is_validated(
        self, fs: FakeFilesystem, user_config_path: Path
    ) -> None:
        with pytest.raises(ConfigValidationError):
            _ = Config.load(
                include_env=False, cli_overrides={"probe.strategy": "service-manager"}
            )


class TestConfigDerivedValues:
    def test_explicit_pid_file(self) -> None:
        config = Config.from_dict({"pid": {"file": "/run/agent.pid"}})

        assert config.pid_file == Path("/run/agent.pid")

    def test_default_pid_file_uses_target_name(self) -> None:
        config = Config.from_dict({"target": {"name": "agent"}})

        assert config.pid_file.name == "agent.pid"

    def test_fault_log_file_unset(self) -> None:
        assert Config.from_dict({}).fault_log_file is None


class TestConfigSerialization:
    def test_to_dict_is_json_compatible(self) -> None:
        data = Config.from_dict({}).to_dict()

        assert data["target"]["executable"] == "/opt/cisco/secureclient/bin/vpnagentd"
        assert data["probe"]["strategy"] == "process-table"
        assert data["target"]["env"][0]["mode"] == "prepend"

    def test_to_toml_reloads_to_same_config(self) -> None:
        config = Config.from_dict({"probe": {"interval": 12.5}, "target": {"args": ["-d"]}})

        reloaded = Config.from_dict(tomllib.loads(config.to_toml()))

        assert reloaded == config
