"""
Telemetry utilities for the Bedrock gateway.
"""

from .tracing import instrument_fastapi_app, setup_tracing, shutdown_tracing


__all__ = [
    "instrument_fastapi_app",
    "setup_tracing",
    "shutdown_tracing",
]
