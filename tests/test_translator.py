"""
Tests for translating dispatch results into HTTP results.
"""

import pytest

from bedrock_gateway.config import HostEndpoint
from bedrock_gateway.enums import FailureReason
from bedrock_gateway.services.gateway.schemas import (
    GatewayResult,
    MalformedReply,
    RpcResponse,
    TransportFailure,
)
from bedrock_gateway.services.gateway.translator import status_from_status_line, translate


ENDPOINT = HostEndpoint(address="10.0.0.1", port=8888)


def reply(status_line: str, body: dict | None = None) -> RpcResponse:
    code = int(status_line.split()[0]) if status_line[:1].isdigit() else 0
    return RpcResponse(numeric_code=code, status_line=status_line, body=body or {}, endpoint=ENDPOINT)


class TestStatusFromStatusLine:
    """Test suite for status_from_status_line."""

    @pytest.mark.parametrize(
        ("status_line", "expected"),
        [
            ("404 Not Found", 404),
            ("402 Unable to process", 402),
            ("503 Service Unavailable", 503),
            ("100 Continue", 100),
            ("599 Edge", 599),
            ("Internal failure", 500),
            ("", 500),
            ("600 Too High", 500),
            ("99 Too Low", 500),
            ("1000", 500),
            ("\u0664\u0660\u0664 Not Found", 500),
        ],
    )
    def test_status_hint(self, status_line: str, expected: int) -> None:
        assert status_from_status_line(status_line) == expected


class TestTranslate:
    """Test suite for translate."""

    def test_success_passes_body_through(self) -> None:
        result = translate(reply("200 OK", {"messages": [{"id": 1}]}))
        assert result == GatewayResult(http_status=200, json_body={"messages": [{"id": 1}]})

    def test_success_with_empty_body(self) -> None:
        assert translate(reply("200 OK")) == GatewayResult(http_status=200, json_body={})

    def test_error_status_uses_status_line(self) -> None:
        result = translate(reply("404 Message not found", {"ignored": True}))
        assert result.http_status == 404
        assert result.json_body == {"error": "404 Message not found"}

    def test_status_hint_follows_status_line(self) -> None:
        """Test that the HTTP status comes from the status line text."""
        response = RpcResponse(numeric_code=400, status_line="404 Not Found", body={})
        assert translate(response) == GatewayResult(
            http_status=404, json_body={"error": "404 Not Found"}
        )

    def test_status_line_without_code(self) -> None:
        response = RpcResponse(numeric_code=1, status_line="Internal failure", body={})
        assert translate(response) == GatewayResult(
            http_status=500, json_body={"error": "Internal failure"}
        )

    @pytest.mark.parametrize("reason", list(FailureReason))
    def test_transport_failure(self, reason: FailureReason) -> None:
        result = translate(TransportFailure(reason=reason, attempted=(ENDPOINT,)))
        assert result.http_status == 502
        assert result.json_body == {"error": "Error connecting to backend", "reason": reason.value}

    def test_malformed_reply(self) -> None:
        result = translate(MalformedReply(detail="bad status line", endpoint=ENDPOINT))
        assert result == GatewayResult(
            http_status=500, json_body={"error": "Malformed reply from backend"}
        )

    def test_idempotent(self) -> None:
        response = reply("503 Busy")
        assert translate(response) == translate(response)

    def test_does_not_share_body(self) -> None:
        response = reply("200 OK", {"a": 1})
        translate(response).json_body["b"] = 2
        assert response.body == {"a": 1}

    def test_unknown_result_type(self) -> None:
        with pytest.raises(TypeError):
            translate("not a result")  # type: ignore[arg-type]
