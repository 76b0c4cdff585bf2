"""
Gateway application factory.

Builds the FastAPI app, owns the dispatcher for the lifetime of the process and
makes sure every error reaches the caller as a JSON object with an "error" field.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import GatewaySettings, get_settings
from ..middleware import CORSHeadersMiddleware
from ..telemetry import instrument_fastapi_app
from .gateway.api import router as gateway_router
from .gateway.host_pool import Blacklist
from .gateway.rpc_client import Dispatcher


logger = logging.getLogger(__name__)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
    message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    logger.info("Invalid request to %s: %s", request.url.path, exc.errors())
    return ORJSONResponse(status_code=400, content={"error": "Invalid request parameters"})


async def _unhandled_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("Unexpected error handling %s %s", request.method, request.url.path)
    return ORJSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(
    settings: GatewaySettings | None = None,
    dispatcher: Dispatcher | None = None,
) -> FastAPI:
    """
    Create the gateway application.

    Args:
        settings: Settings to build the dispatcher from; loaded from the environment if omitted
        dispatcher: Pre-built dispatcher, used instead of one built from settings

    Returns:
        FastAPI: The configured application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for startup and shutdown."""
        logger.info("Starting gateway service...")
        if dispatcher is not None:
            app.state.dispatcher = dispatcher
        else:
            cluster = (settings or get_settings()).cluster_config()
            app.state.dispatcher = Dispatcher(cluster, Blacklist(cluster.blacklist_timeout))
        logger.info("Gateway service started")

        yield

        logger.info("Gateway service stopped")

    app = FastAPI(
        title="Bedrock Gateway",
        description="HTTP to Bedrock command gateway",
        version="0.1.0",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
    )

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)
    app.add_middleware(CORSHeadersMiddleware)
    app.include_router(gateway_router)

    if dispatcher is not None:
        app.state.dispatcher = dispatcher

    instrument_fastapi_app(app)
    return app
