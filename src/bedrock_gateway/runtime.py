"""
Runtime entry point for the Bedrock gateway.

This module is invoked via `python -m bedrock_gateway.runtime` or the
`bedrock-gateway` console script.
"""

import logging
import logging.handlers
import signal
import sys
from types import FrameType

import uvicorn

from .config import GatewaySettings, get_settings
from .services.gateway_app import create_app
from .telemetry import setup_tracing, shutdown_tracing


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SYSLOG_IDENT = "bedrock-gateway"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _syslog_address(value: str) -> str | tuple[str, int]:
    """A socket path, or host:port for UDP syslog."""
    if value.startswith("/"):
        return value
    host, _, port = value.rpartition(":")
    if host and port.isdigit():
        return host, int(port)
    return value, logging.handlers.SYSLOG_UDP_PORT


def configure_logging(settings: GatewaySettings) -> None:
    """Apply the configured level and, if requested, mirror logs to syslog."""
    root = logging.getLogger()
    root.setLevel(settings.log_level)

    if settings.log_syslog_address:
        handler = logging.handlers.SysLogHandler(address=_syslog_address(settings.log_syslog_address))
        handler.ident = f"{SYSLOG_IDENT}: "
        handler.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))
        root.addHandler(handler)
        logger.info("Syslog logging enabled: %s", settings.log_syslog_address)


def setup_signal_handlers(server: uvicorn.Server) -> None:
    """
    Setup graceful shutdown handlers for SIGINT and SIGTERM.

    Args:
        server: The uvicorn server instance to shutdown
    """

    def signal_handler(signum: int, _frame: FrameType | None) -> None:
        logger.info("Received signal %d, initiating graceful shutdown...", signum)
        server.should_exit = True

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main() -> None:
    """
    Main entry point for the gateway runtime.
    """
    try:
        # Load configuration; fails fast on missing or invalid values
        settings = get_settings()
        configure_logging(settings)
        setup_tracing(settings)

        cluster = settings.cluster_config()
        logger.info("=" * 70)
        logger.info("Bedrock Gateway - Startup")
        logger.info("=" * 70)
        logger.info("Cluster: %s", cluster.cluster_name)
        logger.info("Primary Hosts: %s", ", ".join(str(e) for e in cluster.primary))
        logger.info("Failover Hosts: %s", ", ".join(str(e) for e in cluster.failover) or "-")
        logger.info(
            "Timeouts: connect=%ds, read=%ds, blacklist=%ds, command=%ds",
            cluster.connection_timeout,
            cluster.read_timeout,
            cluster.blacklist_timeout,
            cluster.command_timeout,
        )
        logger.info(
            "Defaults: priority=%s, writeConsistency=%s",
            cluster.default_priority.value,
            cluster.default_write_consistency.value,
        )
        logger.info("Listen Address: %s:%d", settings.listen_host, settings.listen_port)
        logger.info("=" * 70)

        app = create_app(settings)

        config = uvicorn.Config(
            app,
            host=settings.listen_host,
            port=settings.listen_port,
            log_level=settings.log_level.lower(),
            access_log=True,
            server_header=False,
            date_header=False,
        )

        server = uvicorn.Server(config)
        setup_signal_handlers(server)

        logger.info(
            "Starting gateway on http://%s:%d", settings.listen_host, settings.listen_port
        )
        try:
            server.run()
        finally:
            shutdown_tracing()

        logger.info("Gateway shutdown complete")

    except Exception:
        logger.exception("Fatal error during startup")
        sys.exit(1)


if __name__ == "__main__":
    main()
