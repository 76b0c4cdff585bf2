"""
Tests for the runtime entry point helpers.
"""

import logging
import logging.handlers
from unittest.mock import MagicMock, patch

import pytest

from bedrock_gateway import runtime
from bedrock_gateway.config import GatewaySettings


class TestSyslogAddress:
    """Test suite for syslog address parsing."""

    def test_socket_path(self) -> None:
        assert runtime._syslog_address("/dev/log") == "/dev/log"

    def test_host_and_port(self) -> None:
        assert runtime._syslog_address("logs.internal:5514") == ("logs.internal", 5514)

    def test_host_only(self) -> None:
        assert runtime._syslog_address("logs.internal") == (
            "logs.internal",
            logging.handlers.SYSLOG_UDP_PORT,
        )


class TestConfigureLogging:
    """Test suite for configure_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        level, handlers = root.level, list(root.handlers)
        yield
        root.setLevel(level)
        root.handlers[:] = handlers

    def test_sets_level(self) -> None:
        runtime.configure_logging(MagicMock(log_level="DEBUG", log_syslog_address=""))
        assert logging.getLogger().level == logging.DEBUG

    def test_adds_syslog_handler(self) -> None:
        settings = MagicMock(log_level="INFO", log_syslog_address="127.0.0.1:5514")
        with patch.object(logging.handlers, "SysLogHandler") as handler_cls:
            handler_cls.return_value.level = logging.CRITICAL + 1
            runtime.configure_logging(settings)

        handler_cls.assert_called_once_with(address=("127.0.0.1", 5514))
        assert handler_cls.return_value in logging.getLogger().handlers
        assert handler_cls.return_value.ident == "bedrock-gateway: "


class TestMain:
    """Test suite for main."""

    def test_exits_on_invalid_configuration(self) -> None:
        with patch.object(runtime, "get_settings", side_effect=ValueError("missing hosts")):
            with pytest.raises(SystemExit) as exc_info:
                runtime.main()
        assert exc_info.value.code == 1

    def test_flushes_traces_when_server_stops(self) -> None:
        """Test that tracing is shut down even if the server exits with an error."""
        settings = GatewaySettings(_env_file=None, BEDROCK_PRIMARY_HOSTS="db1")
        server = MagicMock()
        server.run.side_effect = RuntimeError("bind failed")

        with (
            patch.object(runtime, "get_settings", return_value=settings),
            patch.object(runtime, "configure_logging"),
            patch.object(runtime, "setup_tracing"),
            patch.object(runtime, "setup_signal_handlers"),
            patch.object(runtime, "create_app"),
            patch.object(runtime.uvicorn, "Server", return_value=server),
            patch.object(runtime, "shutdown_tracing") as shutdown,
        ):
            with pytest.raises(SystemExit):
                runtime.main()

        shutdown.assert_called_once()
