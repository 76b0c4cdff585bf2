"""
Enumerations and constants for the Bedrock gateway.
"""

from enum import Enum
from typing import TypeVar


E = TypeVar("E", bound=Enum)


class Priority(str, Enum):
    """Scheduling hint attached to a command."""

    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"

    @property
    def wire_value(self) -> int:
        """Bedrock's numeric priority level."""
        return _PRIORITY_LEVELS[self]


_PRIORITY_LEVELS = {
    Priority.LOW: 250,
    Priority.NORMAL: 500,
    Priority.HIGH: 750,
}


class WriteConsistency(str, Enum):
    """Whether a write must be durable before the backend replies."""

    ASYNC = "ASYNC"
    STRONG = "STRONG"

    @property
    def wire_value(self) -> str:
        # Bedrock calls a quorum-acknowledged write QUORUM.
        return "QUORUM" if self is WriteConsistency.STRONG else "ASYNC"


class FailureReason(str, Enum):
    """Why a dispatch produced no backend reply."""

    NO_HOSTS_AVAILABLE = "NoHostsAvailable"
    ALL_HOSTS_FAILED = "AllHostsFailed"


class ServiceEndpoint(str, Enum):
    """API endpoints exposed by the gateway."""

    STATUS = "/api/status"
    HELLO = "/api/hello"
    MESSAGES = "/api/messages"
    COMMAND = "/api/commands/{command}"
    HEALTH = "/health"
    METRICS = "/metrics"


class Command(str, Enum):
    """Backend commands the gateway routes to."""

    HELLO_WORLD = "HelloWorld"
    GET_MESSAGES = "GetMessages"
    CREATE_MESSAGE = "CreateMessage"


def parse_enum_value(enum_cls: type[E], value: str) -> E:
    """
    Look up an enum member by value, ignoring case and surrounding whitespace.

    Raises:
        ValueError: If the value matches no member
    """
    normalized = value.strip().upper()
    for member in enum_cls:
        if member.value.upper() == normalized:
            return member
    valid = ", ".join(member.value for member in enum_cls)
    raise ValueError(f"Unrecognized {enum_cls.__name__} {value!r} (expected one of: {valid})")
