"""
Bedrock line-protocol codec.

A request is the command name, one ``name: value`` line per parameter and routing
header, and a blank line. A reply is a status line such as ``200 OK``, header lines,
a blank line and ``Content-Length`` bytes of JSON body.
"""

import asyncio
import re
from typing import Any

import orjson

from bedrock_gateway.config import HostEndpoint

from .errors import MalformedReplyError
from .schemas import RpcRequest, RpcResponse


HEADER_TERMINATOR = b"\r\n\r\n"

_LEADING_INT = re.compile(r"[0-9]+")


def leading_int(text: str) -> int | None:
    """Return the integer formed by the leading digits of ``text``, if any."""
    match = _LEADING_INT.match(text.strip())
    return int(match.group()) if match else None


def encode_request(request: RpcRequest, command_timeout_seconds: int = 0) -> bytes:
    """Serialize a request into Bedrock's wire format."""
    lines = [request.command]
    lines.extend(f"{name}: {value}" for name, value in request.params.items())

    lines.append(f"priority: {request.priority.wire_value}")
    lines.append(f"writeConsistency: {request.write_consistency.wire_value}")
    if command_timeout_seconds > 0:
        lines.append(f"timeout: {command_timeout_seconds * 1000}")
    if request.request_id:
        lines.append(f"requestID: {request.request_id}")
    lines.append("format: json")
    lines.append("Content-Length: 0")

    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")


async def read_reply(reader: asyncio.StreamReader) -> tuple[bytes, bytes]:
    """
    Read one complete reply from the stream.

    Returns:
        The raw head (status line and headers) and the raw body

    Raises:
        asyncio.IncompleteReadError: If the connection closes mid-reply
        MalformedReplyError: If the head is oversized or declares a bad length
    """
    try:
        head = await reader.readuntil(HEADER_TERMINATOR)
    except asyncio.LimitOverrunError as e:
        msg = "reply headers exceed the read limit"
        raise MalformedReplyError(msg) from e

    headers = _parse_headers(head[: -len(HEADER_TERMINATOR)])
    raw_length = headers.get("content-length", "0")
    if not raw_length.isdigit():
        msg = f"invalid Content-Length {raw_length!r}"
        raise MalformedReplyError(msg)

    length = int(raw_length)
    body = await reader.readexactly(length) if length else b""
    return head, body


def decode_reply(head: bytes, body: bytes, endpoint: HostEndpoint | None = None) -> RpcResponse:
    """
    Parse a raw reply into an RpcResponse.

    Raises:
        MalformedReplyError: If the status line or body cannot be parsed
    """
    try:
        text = head.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = "reply head is not valid UTF-8"
        raise MalformedReplyError(msg) from e

    status_line, _, _ = text.partition("\r\n")
    status_line = status_line.strip()
    numeric_code = leading_int(status_line)
    if numeric_code is None:
        msg = f"reply status line {status_line!r} has no numeric code"
        raise MalformedReplyError(msg)

    parsed: Any = {}
    if body.strip():
        try:
            parsed = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            msg = "reply body is not valid JSON"
            raise MalformedReplyError(msg) from e
        if not isinstance(parsed, dict):
            msg = f"reply body is a JSON {type(parsed).__name__}, expected an object"
            raise MalformedReplyError(msg)

    headers = {
        name: value
        for name, value in _parse_header_lines(text).items()
        if name.lower() != "content-length"
    }

    return RpcResponse(
        numeric_code=numeric_code,
        status_line=status_line,
        body=parsed,
        endpoint=endpoint,
        headers=headers,
    )


def _parse_header_lines(text: str) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in text.split("\r\n")[1:]:
        if not line:
            continue
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            msg = f"malformed header line {line!r}"
            raise MalformedReplyError(msg)
        headers[name.strip()] = value.strip()
    return headers


def _parse_headers(head: bytes) -> dict[str, str]:
    """Headers keyed by lowercased name, for framing decisions."""
    try:
        text = head.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = "reply head is not valid UTF-8"
        raise MalformedReplyError(msg) from e
    return {name.lower(): value for name, value in _parse_header_lines(text).items()}
