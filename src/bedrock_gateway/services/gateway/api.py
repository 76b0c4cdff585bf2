"""
Gateway service API

Maps HTTP routes to backend commands and writes the translated replies.
"""

from datetime import datetime, timezone
import logging
import platform
import time
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import ORJSONResponse, Response
import orjson
from prometheus_client import generate_latest

from ...dependencies import get_dispatcher
from ...enums import Command, Priority, ServiceEndpoint, WriteConsistency, parse_enum_value
from .metrics import latency_histogram, request_counter
from .rpc_client import Dispatcher
from .schemas import (
    BlacklistedHost,
    DispatchResult,
    HealthResponse,
    MalformedReply,
    RpcResponse,
    StatusResponse,
    TransportFailure,
)
from .translator import translate


logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "bedrock-gateway"
_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
_KNOWN_COMMANDS = frozenset(c.value for c in Command)
PASSTHROUGH_LABEL = "passthrough"


def _status_label(result: DispatchResult) -> str:
    if isinstance(result, TransportFailure):
        return "transport_error"
    if isinstance(result, MalformedReply):
        return "malformed"
    if isinstance(result, RpcResponse) and result.numeric_code == 200:
        return "success"
    return "backend_error"


def _command_label(command: str) -> str:
    """Metric label for a command; caller-chosen names share one label."""
    return command if command in _KNOWN_COMMANDS else PASSTHROUGH_LABEL


def _error(status_code: int, message: str) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content={"error": message})


async def collect_params(request: Request) -> dict[str, str]:
    """
    Gather command parameters from the request.

    Form fields and JSON object bodies are read first; query string values take
    precedence over them. Non-string JSON values are serialized to JSON text.
    """
    params: dict[str, str] = {}
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()

    if content_type in _FORM_CONTENT_TYPES:
        form = await request.form()
        for name, value in form.multi_items():
            if isinstance(value, str):
                params[name] = value
    elif content_type == "application/json":
        body = await request.body()
        if body.strip():
            payload = orjson.loads(body)
            if not isinstance(payload, dict):
                msg = "JSON body must be an object"
                raise ValueError(msg)
            for name, value in payload.items():
                params[name] = value if isinstance(value, str) else orjson.dumps(value).decode()

    params.update(request.query_params)
    return params


async def run_command(
    request: Request,
    dispatcher: Dispatcher,
    command: str,
    params: dict[str, str],
    priority: Priority | None = None,
    write_consistency: WriteConsistency | None = None,
) -> ORJSONResponse:
    """Dispatch one command and write its translated result."""
    start_time = time.perf_counter()
    label = _command_label(command)

    try:
        rpc_request = dispatcher.build_request(
            command,
            params,
            priority=priority,
            write_consistency=write_consistency,
            request_id=request.headers.get("x-request-id"),
        )
    except ValueError as e:
        request_counter.labels(command=label, status="invalid").inc()
        logger.info("Rejected %s request: %s", command, e)
        return _error(400, str(e))

    result = await dispatcher.dispatch(rpc_request)
    gateway_result = translate(result)

    elapsed = time.perf_counter() - start_time
    latency_histogram.labels(command=label).observe(elapsed)
    request_counter.labels(command=label, status=_status_label(result)).inc()

    logger.info(
        "%s %s -> %s: %d in %.3fs (request_id=%s)",
        request.method,
        request.url.path,
        command,
        gateway_result.http_status,
        elapsed,
        rpc_request.request_id,
    )

    return ORJSONResponse(status_code=gateway_result.http_status, content=gateway_result.json_body)


@router.get(ServiceEndpoint.STATUS.value)
async def status() -> StatusResponse:
    """Liveness of the gateway itself; does not contact the backend."""
    return StatusResponse(
        status="ok",
        service=SERVICE_NAME,
        timestamp=datetime.now(timezone.utc).isoformat(),
        python_version=platform.python_version(),
    )


@router.api_route(ServiceEndpoint.HELLO.value, methods=["GET", "POST"])
async def hello(
    request: Request,
    dispatcher: Annotated[Dispatcher, Depends(get_dispatcher)],
) -> ORJSONResponse:
    """Greet ``name`` (default ``World``) through the HelloWorld command."""
    try:
        params = await collect_params(request)
    except ValueError as e:
        return _error(400, str(e))
    name = params.get("name") or "World"
    return await run_command(request, dispatcher, Command.HELLO_WORLD.value, {"name": name})


@router.get(ServiceEndpoint.MESSAGES.value)
async def get_messages(
    request: Request,
    dispatcher: Annotated[Dispatcher, Depends(get_dispatcher)],
    limit: str | None = None,
) -> ORJSONResponse:
    """List the most recent messages."""
    params = {"limit": limit} if limit else {}
    return await run_command(request, dispatcher, Command.GET_MESSAGES.value, params)


@router.post(ServiceEndpoint.MESSAGES.value)
async def create_message(
    request: Request,
    dispatcher: Annotated[Dispatcher, Depends(get_dispatcher)],
) -> ORJSONResponse:
    """Store a message; ``name`` and ``message`` are validated by the backend."""
    try:
        params = await collect_params(request)
    except ValueError as e:
        return _error(400, str(e))
    fields = {key: params[key] for key in ("name", "message") if key in params}
    return await run_command(request, dispatcher, Command.CREATE_MESSAGE.value, fields)


@router.api_route(ServiceEndpoint.COMMAND.value, methods=["GET", "POST"])
async def passthrough_command(
    command: str,
    request: Request,
    dispatcher: Annotated[Dispatcher, Depends(get_dispatcher)],
) -> ORJSONResponse:
    """
    Pass any command through to the backend.

    ``priority`` and ``writeConsistency`` override the cluster defaults; every other
    field becomes a command parameter.
    """
    try:
        params = await collect_params(request)
        raw_priority = params.pop("priority", None)
        raw_consistency = params.pop("writeConsistency", None)
        priority = parse_enum_value(Priority, raw_priority) if raw_priority else None
        write_consistency = (
            parse_enum_value(WriteConsistency, raw_consistency) if raw_consistency else None
        )
    except ValueError as e:
        return _error(400, str(e))

    return await run_command(
        request,
        dispatcher,
        command,
        params,
        priority=priority,
        write_consistency=write_consistency,
    )


@router.get(ServiceEndpoint.HEALTH.value)
async def health(
    dispatcher: Annotated[Dispatcher, Depends(get_dispatcher)],
) -> HealthResponse:
    """Gateway health with the current host pool and blacklist."""
    blacklist = dispatcher.blacklist
    return HealthResponse(
        status="healthy",
        cluster_name=dispatcher.config.cluster_name,
        primary=[str(e) for e in dispatcher.pool.primary],
        failover=[str(e) for e in dispatcher.pool.failover],
        blacklisted=[
            BlacklistedHost(
                endpoint=str(entry.endpoint),
                expires_in_seconds=round(blacklist.remaining(entry), 3),
            )
            for entry in blacklist.entries()
        ],
    )


@router.get(ServiceEndpoint.METRICS.value, response_class=Response)
@router.head(ServiceEndpoint.METRICS.value, response_class=Response)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )

