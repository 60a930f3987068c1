# pyright: reportAny=false, reportUnknownArgumentType=false
from __future__ import annotations

import copy
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from procwarden.config import (
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from procwarden.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestReadTomlFile:
    def test_parses_valid_toml(self, fs: FakeFilesystem) -> None:
        content = """
[probe]
strategy = "process-table"
interval = 15
"""
        path = Path("/etc/procwarden/config.toml")
        fs.create_file(path, contents=content)

        result = read_toml_file(path)

        assert result == {"probe": {"strategy": "process-table", "interval": 15}}

    def test_raises_file_not_found_for_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            _ = read_toml_file(Path("/etc/procwarden/missing.toml"))

    def test_config_load_error_includes_location(self, fs: FakeFilesystem) -> None:
        content = """[target]
name = "vpnagentd"

[probe
"""
        path = Path("/etc/procwarden/broken.toml")
        fs.create_file(path, contents=content)

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line == 4
        assert error.column is not None

    def test_config_load_error_chains_original_exception(self, fs: FakeFilesystem) -> None:
        path = Path("/etc/procwarden/bad.toml")
        fs.create_file(path, contents="[bad")

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        assert exc_info.value.__cause__ is not None


class TestDeepMerge:
    def test_nested_dicts_are_merged(self) -> None:
        base = {"probe": {"interval": 30, "timeout": 5}}
        override = {"probe": {"interval": 10}}

        assert deep_merge(base, override) == {"probe": {"interval": 10, "timeout": 5}}

    def test_lists_are_replaced(self) -> None:
        base = {"target": {"args": ["-a", "-b"]}}
        override = {"target": {"args": ["-c"]}}

        assert deep_merge(base, override) == {"target": {"args": ["-c"]}}

    def test_type_mismatch_override_wins(self) -> None:
        assert deep_merge({"faults": {"enabled": True}}, {"faults": "off"}) == {"faults": "off"}

    def test_inputs_are_not_modified(self) -> None:
        base = {"target": {"env": [{"name": "A", "value": "1"}]}}
        override = {"probe": {"interval": 10}}
        base_copy = copy.deepcopy(base)
        override_copy = copy.deepcopy(override)

        result = deep_merge(base, override)
        result["target"]["env"][0]["value"] = "changed"

        assert base == base_copy
        assert override == override_copy


class TestParseStringValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("-1", -1),
            ("2.5", 2.5),
            ('["-d", "-v"]', ["-d", "-v"]),
            ('{"name": "A"}', {"name": "A"}),
            ("process-table", "process-table"),
            ("1.2.3", "1.2.3"),
            ("[not json", "[not json"),
        ],
    )
    def test_infers_type(self, raw: str, expected: object) -> None:
        assert parse_string_value(raw) == expected


class TestSetNestedKey:
    def test_creates_intermediate_dicts(self) -> None:
        d: dict[str, object] = {}

        set_nested_key(d, "restart.cooldown", 5.0)

        assert d == {"restart": {"cooldown": 5.0}}

    def test_replaces_scalar_on_path(self) -> None:
        d: dict[str, object] = {"faults": "off"}

        set_nested_key(d, "faults.enabled", True)

        assert d == {"faults": {"enabled": True}}

    def test_preserves_siblings(self) -> None:
        d: dict[str, object] = {"probe": {"interval": 30}}

        set_nested_key(d, "probe.timeout", 2)

        assert d == {"probe": {"interval": 30, "timeout": 2}}


class TestParseEnvVars:
    def test_maps_double_underscore_to_nesting(self) -> None:
        environ = {
            "PROCWARDEN_PROBE__INTERVAL": "10",
            "PROCWARDEN_FAULTS__ENABLED": "true",
            "PROCWARDEN_TARGET__NAME": "agent",
        }

        assert parse_env_vars(environ=environ) == {
            "probe": {"interval": 10},
            "faults": {"enabled": True},
            "target": {"name": "agent"},
        }

    def test_ignores_unrelated_and_reserved_keys(self) -> None:
        environ = {
            "HOME": "/root",
            "PROCWARDEN_": "x",
            "PROCWARDEN_DEBUG": "1",
            "PROCWARDEN_LOG_LEVEL": "debug",
        }

        assert parse_env_vars(environ=environ) == {}

    def test_only_logging_variables_are_reserved(self) -> None:
        environ = {"PROCWARDEN_STRICT_CONFIG": "true"}

        assert parse_env_vars(environ=environ) == {"strict_config": True}

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROCWARDEN_RESTART__COOLDOWN", "2.5")

        assert parse_env_vars()["restart"] == {"cooldown": 2.5}

    def test_custom_prefix(self) -> None:
        environ = {"AGENT_PROBE__TIMEOUT": "1", "PROCWARDEN_PROBE__TIMEOUT": "9"}

        assert parse_env_vars("AGENT_", environ) == {"probe": {"timeout": 1}}
