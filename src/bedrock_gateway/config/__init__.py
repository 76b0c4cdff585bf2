"""
Configuration management for the Bedrock gateway.

This module uses Pydantic Settings to load configuration from environment variables
once at startup. Invalid or missing values fail fast with a ValidationError.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..enums import Priority, WriteConsistency, parse_enum_value
from .cluster_schema import ClusterConfig, HostEndpoint, parse_host_list


class GatewaySettings(BaseSettings):
    """
    Central configuration for the gateway process.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # === Backend Cluster ===
    cluster_name: str = Field(
        default="bedrock",
        alias="BEDROCK_CLUSTER_NAME",
        description="Name of the backend cluster, used in logs and health output",
    )

    primary_hosts: str = Field(
        ...,
        alias="BEDROCK_PRIMARY_HOSTS",
        description="Comma-separated host[:port] list tried first, in order",
    )

    failover_hosts: str = Field(
        default="",
        alias="BEDROCK_FAILOVER_HOSTS",
        description="Comma-separated host[:port] list tried after every primary host",
    )

    connection_timeout: int = Field(
        default=1,
        ge=0,
        alias="BEDROCK_CONNECTION_TIMEOUT",
        description="Seconds to wait for a TCP connection (0 = do not wait)",
    )

    read_timeout: int = Field(
        default=300,
        ge=0,
        alias="BEDROCK_READ_TIMEOUT",
        description="Seconds to wait for a complete reply (0 = do not wait)",
    )

    blacklist_timeout: int = Field(
        default=60,
        ge=0,
        alias="BEDROCK_BLACKLIST_TIMEOUT",
        description="Seconds a failed host is skipped before it is tried again",
    )

    command_timeout: int = Field(
        default=300,
        ge=0,
        alias="BEDROCK_COMMAND_TIMEOUT",
        description="Server-side command timeout forwarded to the backend, in seconds",
    )

    default_priority: Priority = Field(
        default=Priority.NORMAL,
        alias="BEDROCK_PRIORITY",
        description="Priority for commands that do not set one (LOW, NORMAL, HIGH)",
    )

    default_write_consistency: WriteConsistency = Field(
        default=WriteConsistency.ASYNC,
        alias="BEDROCK_WRITE_CONSISTENCY",
        description="Write consistency for commands that do not set one (ASYNC, STRONG)",
    )

    # === Server Configuration ===
    listen_host: str = Field(
        default="0.0.0.0",
        alias="LISTEN_HOST",
        description="Address the HTTP server binds to",
    )

    listen_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        alias="LISTEN_PORT",
        description="Port the HTTP server binds to",
    )

    # === Logging ===
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    log_syslog_address: str = Field(
        default="",
        alias="LOG_SYSLOG_ADDRESS",
        description="Syslog socket path or host:port; empty disables syslog output",
    )

    enable_tracing: bool = Field(
        default=False,
        alias="ENABLE_TRACING",
        description="If true, emit OpenTelemetry spans for gateway requests",
    )

    otel_exporter_endpoint: str = Field(
        default="http://127.0.0.1:4317",
        alias="OTEL_EXPORTER_OTLP_ENDPOINT",
        description="OTLP gRPC endpoint for exporting traces",
    )

    otel_exporter_insecure: bool = Field(
        default=True,
        alias="OTEL_EXPORTER_OTLP_INSECURE",
        description="Use insecure (non-TLS) connection for OTLP exporter",
    )

    @field_validator("primary_hosts")
    @classmethod
    def validate_primary_hosts(cls, v: str) -> str:
        """Ensure at least one well-formed primary host is configured."""
        if not parse_host_list(v):
            raise ValueError("BEDROCK_PRIMARY_HOSTS must list at least one host")
        return v

    @field_validator("failover_hosts")
    @classmethod
    def validate_failover_hosts(cls, v: str) -> str:
        parse_host_list(v)
        return v

    @field_validator("default_priority", mode="before")
    @classmethod
    def normalize_priority(cls, v: object) -> object:
        if isinstance(v, str):
            return parse_enum_value(Priority, v)
        return v

    @field_validator("default_write_consistency", mode="before")
    @classmethod
    def normalize_write_consistency(cls, v: object) -> object:
        if isinstance(v, str):
            return parse_enum_value(WriteConsistency, v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log_level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels} (got {v})")
        return v_upper

    @property
    def primary_endpoints(self) -> tuple[HostEndpoint, ...]:
        return parse_host_list(self.primary_hosts)

    @property
    def failover_endpoints(self) -> tuple[HostEndpoint, ...]:
        return parse_host_list(self.failover_hosts)

    def cluster_config(self) -> ClusterConfig:
        """Build the immutable cluster configuration used by the dispatcher."""
        return ClusterConfig(
            cluster_name=self.cluster_name,
            primary=self.primary_endpoints,
            failover=self.failover_endpoints,
            connection_timeout=self.connection_timeout,
            read_timeout=self.read_timeout,
            blacklist_timeout=self.blacklist_timeout,
            command_timeout=self.command_timeout,
            default_priority=self.default_priority,
            default_write_consistency=self.default_write_consistency,
        )


# Global settings instance
_settings: GatewaySettings | None = None


def get_settings() -> GatewaySettings:
    """
    Get the global GatewaySettings instance.

    This ensures settings are loaded exactly once and reused throughout the application.

    Returns:
        GatewaySettings: The global configuration instance
    """
    global _settings
    if _settings is None:
        _settings = GatewaySettings()
    return _settings


__all__ = [
    "ClusterConfig",
    "GatewaySettings",
    "HostEndpoint",
    "get_settings",
    "parse_host_list",
]
