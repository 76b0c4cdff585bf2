"""
Tests for gateway enumerations.
"""

import pytest

from bedrock_gateway.enums import (
    Command,
    FailureReason,
    Priority,
    ServiceEndpoint,
    WriteConsistency,
    parse_enum_value,
)


class TestPriority:
    """Test suite for Priority."""

    def test_wire_values(self) -> None:
        assert Priority.LOW.wire_value == 250
        assert Priority.NORMAL.wire_value == 500
        assert Priority.HIGH.wire_value == 750

    def test_ordering_of_levels(self) -> None:
        levels = [p.wire_value for p in (Priority.LOW, Priority.NORMAL, Priority.HIGH)]
        assert levels == sorted(levels)


class TestWriteConsistency:
    """Test suite for WriteConsistency."""

    def test_wire_values(self) -> None:
        assert WriteConsistency.ASYNC.wire_value == "ASYNC"
        assert WriteConsistency.STRONG.wire_value == "QUORUM"


class TestParseEnumValue:
    """Test suite for parse_enum_value."""

    @pytest.mark.parametrize("value", ["high", "HIGH", " High "])
    def test_case_insensitive(self, value: str) -> None:
        assert parse_enum_value(Priority, value) is Priority.HIGH

    def test_unknown_value_lists_choices(self) -> None:
        with pytest.raises(ValueError, match="LOW, NORMAL, HIGH"):
            parse_enum_value(Priority, "URGENT")

    def test_other_enums(self) -> None:
        assert parse_enum_value(WriteConsistency, "strong") is WriteConsistency.STRONG
        assert parse_enum_value(FailureReason, "allhostsfailed") is FailureReason.ALL_HOSTS_FAILED


class TestConstants:
    """Test suite for string-valued enums."""

    def test_failure_reasons(self) -> None:
        assert FailureReason.NO_HOSTS_AVAILABLE.value == "NoHostsAvailable"
        assert FailureReason.ALL_HOSTS_FAILED.value == "AllHostsFailed"

    def test_commands(self) -> None:
        assert [c.value for c in Command] == ["HelloWorld", "GetMessages", "CreateMessage"]

    def test_service_endpoints(self) -> None:
        assert ServiceEndpoint.HELLO.value == "/api/hello"
        assert ServiceEndpoint.COMMAND.value == "/api/commands/{command}"
