"""
HTTP gateway for Bedrock clusters.
"""

from .config import ClusterConfig, GatewaySettings, HostEndpoint, get_settings
from .enums import FailureReason, Priority, WriteConsistency


__version__ = "0.1.0"

__all__ = [
    "ClusterConfig",
    "FailureReason",
    "GatewaySettings",
    "HostEndpoint",
    "Priority",
    "WriteConsistency",
    "get_settings",
]
