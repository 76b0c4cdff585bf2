"""
Schemas for gateway requests, backend replies and HTTP results.

Core dispatch types are frozen msgspec Structs; the HTTP-facing models are Pydantic.
"""

from typing import Any

import msgspec
from pydantic import BaseModel, Field

from bedrock_gateway.config import HostEndpoint
from bedrock_gateway.enums import FailureReason, Priority, WriteConsistency


_FORBIDDEN_CHARS = ("\r", "\n")

# Header names the gateway sets itself; a parameter may not reuse them.
RESERVED_HEADERS = frozenset(
    {"priority", "writeconsistency", "timeout", "requestid", "format", "content-length"}
)


def _check_wire_safe(kind: str, text: str) -> None:
    if any(ch in text for ch in _FORBIDDEN_CHARS):
        msg = f"{kind} {text!r} must not contain line breaks"
        raise ValueError(msg)


# === Dispatch types ===


class RpcRequest(msgspec.Struct, frozen=True):
    """A single command bound for the backend."""

    command: str
    params: dict[str, str]
    priority: Priority
    write_consistency: WriteConsistency
    request_id: str = ""

    def __post_init__(self) -> None:
        if not self.command or not self.command.strip():
            msg = "command name must be non-empty"
            raise ValueError(msg)
        _check_wire_safe("command name", self.command)
        if ":" in self.command or " " in self.command:
            msg = f"command name {self.command!r} must be a single token"
            raise ValueError(msg)
        _check_wire_safe("request id", self.request_id)
        for name, value in self.params.items():
            if not name or ":" in name or name != name.strip():
                msg = f"invalid parameter name {name!r}"
                raise ValueError(msg)
            if name.lower() in RESERVED_HEADERS:
                msg = f"parameter name {name!r} is reserved"
                raise ValueError(msg)
            _check_wire_safe("parameter name", name)
            _check_wire_safe(f"value of parameter {name!r}", value)


class RpcResponse(msgspec.Struct, frozen=True):
    """A complete reply from exactly one backend endpoint."""

    numeric_code: int
    status_line: str
    body: dict[str, Any]
    endpoint: HostEndpoint | None = None
    headers: dict[str, str] = msgspec.field(default_factory=dict)


class TransportFailure(msgspec.Struct, frozen=True):
    """No endpoint produced a reply for the request."""

    reason: FailureReason
    attempted: tuple[HostEndpoint, ...] = ()


class MalformedReply(msgspec.Struct, frozen=True):
    """An endpoint replied, but not with a parseable envelope."""

    detail: str
    endpoint: HostEndpoint | None = None


DispatchResult = RpcResponse | TransportFailure | MalformedReply


class GatewayResult(msgspec.Struct, frozen=True):
    """What the router writes back to the HTTP caller."""

    http_status: int
    json_body: dict[str, Any]


# === HTTP schemas ===


class StatusResponse(BaseModel):
    """Response from the /api/status endpoint."""

    status: str = Field(..., description="Always 'ok' while the process serves requests")
    service: str = Field(..., description="Service identifier")
    timestamp: str = Field(..., description="ISO-8601 time the response was produced")
    python_version: str = Field(..., description="Interpreter version")


class BlacklistedHost(BaseModel):
    endpoint: str
    expires_in_seconds: float


class HealthResponse(BaseModel):
    """Response from the /health endpoint."""

    status: str
    cluster_name: str
    primary: list[str]
    failover: list[str]
    blacklisted: list[BlacklistedHost] = Field(default_factory=list)
