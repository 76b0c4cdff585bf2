from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import Priority, WriteConsistency


DEFAULT_BEDROCK_PORT = 8888


class HostEndpoint(BaseModel):
    """A backend node the gateway can connect to."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., min_length=1)
    port: int = Field(default=DEFAULT_BEDROCK_PORT, ge=1, le=65535)

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"

    @classmethod
    def parse(cls, value: str) -> "HostEndpoint":
        """Parse ``host`` or ``host:port``; bracketed IPv6 literals are accepted."""
        value = value.strip()
        if value.startswith("["):
            address, _, rest = value[1:].partition("]")
            port = rest.removeprefix(":")
        elif value.count(":") == 1:
            address, _, port = value.partition(":")
        else:
            address, port = value, ""
        if not port:
            return cls(address=address)
        if not port.isdigit():
            msg = f"Invalid port in host {value!r}"
            raise ValueError(msg)
        return cls(address=address, port=int(port))


def parse_host_list(value: str) -> tuple[HostEndpoint, ...]:
    """Parse a comma-separated host list, skipping blank items."""
    return tuple(HostEndpoint.parse(item) for item in value.split(",") if item.strip())


class ClusterConfig(BaseModel):
    """Validated, immutable view of the backend cluster the gateway talks to."""

    model_config = ConfigDict(frozen=True)

    cluster_name: str
    primary: tuple[HostEndpoint, ...]
    failover: tuple[HostEndpoint, ...] = ()
    connection_timeout: int = Field(default=1, ge=0)
    read_timeout: int = Field(default=300, ge=0)
    blacklist_timeout: int = Field(default=60, ge=0)
    command_timeout: int = Field(default=300, ge=0)
    default_priority: Priority = Priority.NORMAL
    default_write_consistency: WriteConsistency = WriteConsistency.ASYNC

    @field_validator("primary")
    @classmethod
    def check_primary_not_empty(cls, v: tuple[HostEndpoint, ...]) -> tuple[HostEndpoint, ...]:
        if not v:
            msg = "At least one primary host is required"
            raise ValueError(msg)
        return v

    @property
    def endpoints(self) -> tuple[HostEndpoint, ...]:
        """Primary endpoints followed by failover endpoints."""
        return self.primary + self.failover
