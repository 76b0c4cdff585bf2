"""
Translation of dispatch results into HTTP status codes and JSON bodies.
"""

from .codec import leading_int
from .schemas import DispatchResult, GatewayResult, MalformedReply, RpcResponse, TransportFailure


BACKEND_CONNECT_ERROR = "Error connecting to backend"
MALFORMED_REPLY_ERROR = "Malformed reply from backend"


def status_from_status_line(status_line: str) -> int:
    """
    HTTP status hinted by a backend status line such as ``404 Not Found``.

    The leading integer is used when it is a valid HTTP status code (100..599);
    anything else, including positive codes outside that range, falls back to 500
    so the gateway never writes an invalid status line.
    """
    code = leading_int(status_line)
    if code is None or not 100 <= code <= 599:
        return 500
    return code


def translate(result: DispatchResult) -> GatewayResult:
    """Map a dispatch result to the HTTP response the caller receives."""
    if isinstance(result, RpcResponse):
        if result.numeric_code == 200:
            return GatewayResult(http_status=200, json_body=dict(result.body))
        return GatewayResult(
            http_status=status_from_status_line(result.status_line),
            json_body={"error": result.status_line},
        )

    if isinstance(result, TransportFailure):
        return GatewayResult(
            http_status=502,
            json_body={"error": BACKEND_CONNECT_ERROR, "reason": result.reason.value},
        )

    if isinstance(result, MalformedReply):
        return GatewayResult(http_status=500, json_body={"error": MALFORMED_REPLY_ERROR})

    msg = f"Cannot translate {type(result).__name__}"
    raise TypeError(msg)
