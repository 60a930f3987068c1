from pathlib import Path

from pytest_mock import MockerFixture

from procwarden.utils import get_default_pid_file, get_runtime_dir, get_user_config_path

PATHS_MODULE = "procwarden.utils._paths"


class TestGetUserConfigPath:
    def test_ends_with_config_toml(self) -> None:
        path = get_user_config_path()

        assert path.name == "config.toml"
        assert path.parent.name == "procwarden"


class TestGetRuntimeDir:
    def test_root_uses_system_directory(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(f"{PATHS_MODULE}.os.geteuid", return_value=0)

        assert get_runtime_dir() == Path("/run/procwarden")

    def test_user_uses_runtime_path(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(f"{PATHS_MODULE}.os.geteuid", return_value=1000)
        _ = mocker.patch(
            f"{PATHS_MODULE}.platformdirs.user_runtime_path",
            return_value=Path("/run/user/1000/procwarden"),
        )

        assert get_runtime_dir() == Path("/run/user/1000/procwarden")


class TestGetDefaultPidFile:
    def test_named_after_process(self, mocker: MockerFixture) -> None:
        _ = mocker.patch(f"{PATHS_MODULE}.os.geteuid", return_value=0)

        assert get_default_pid_file("vpnagentd") == Path("/run/procwarden/vpnagentd.pid")
