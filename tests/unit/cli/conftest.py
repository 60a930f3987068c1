import os
from collections.abc import Callable
from io import StringIO
from pathlib import Path

import pytest
from pytest_mock import MockerFixture
from rich.console import Console

from procwarden.cli import create_app


@pytest.fixture(autouse=True)
def isolated_config(
    tmp_path: Path, mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Hide the real user config file and PROCWARDEN_* variables."""
    _ = mocker.patch(
        "procwarden.config._config.get_user_config_path",
        return_value=tmp_path / "user" / "config.toml",
    )
    for name in [n for n in os.environ if n.startswith("PROCWARDEN_")]:
        monkeypatch.delenv(name)


@pytest.fixture
def console() -> Console:
    return Console(file=StringIO(), width=200, no_color=True)


@pytest.fixture
def procwarden_cli(console: Console) -> Callable[..., int]:
    """Run the CLI and return its exit code (0 if no SystemExit)."""
    app = create_app(console=console, error_console=console, exit_on_error=False)

    def _run(*args: str) -> int:
        try:
            app(list(args))
        except SystemExit as e:
            if e.code is None:
                return 0
            return e.code if isinstance(e.code, int) else 1
        return 0

    return _run


@pytest.fixture
def config_file(tmp_path: Path) -> Callable[..., Path]:
    """Write a TOML config file and return its path."""

    def _write(content: str = "", name: str = "procwarden.toml") -> Path:
        path = tmp_path / name
        _ = path.write_text(content, encoding="utf-8")
        return path

    return _write
