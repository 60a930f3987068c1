from pathlib import Path

import pytest
from hypothesis import given, strategies as st

from procwarden.supervisor import FaultSignature, SupervisedProcess


class TestSupervisedProcess:
    def test_command_includes_args(self) -> None:
        process = SupervisedProcess(
            name="agent", executable=Path("/usr/bin/agent"), args=("-execv_instance",)
        )

        assert process.command == ("/usr/bin/agent", "-execv_instance")

    def test_match_pattern_defaults_to_executable(self) -> None:
        process = SupervisedProcess(name="agent", executable=Path("/usr/bin/agent"))

        assert process.match_pattern == "/usr/bin/agent"

    def test_explicit_match_pattern(self) -> None:
        process = SupervisedProcess(
            name="agent", executable=Path("/usr/bin/agent"), match="agent -d"
        )

        assert process.match_pattern == "agent -d"

    def test_is_immutable(self, process: SupervisedProcess) -> None:
        with pytest.raises(AttributeError):
            process.name = "other"  # pyright: ignore[reportAttributeAccessIssue]


class TestFaultSignature:
    def test_empty_pattern_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            _ = FaultSignature("")

    def test_literal_substring_match(self) -> None:
        signature = FaultSignature("libxml2.so.2")

        assert signature.matches("error while loading shared libraries: libxml2.so.2")
        assert not signature.matches("libxml2-so-2")

    def test_regex_characters_are_literal(self) -> None:
        signature = FaultSignature("a.c")

        assert not signature.matches("abc")
        assert signature.matches("xa.cx")

    def test_match_is_case_sensitive(self) -> None:
        assert not FaultSignature("libxml2.so.2").matches("LIBXML2.SO.2 missing")

    @given(
        prefix=st.text(),
        pattern=st.text(min_size=1),
        suffix=st.text(),
    )
    def test_line_containing_pattern_always_matches(
        self, prefix: str, pattern: str, suffix: str
    ) -> None:
        assert FaultSignature(pattern).matches(prefix + pattern + suffix)
