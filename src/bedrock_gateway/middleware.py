import logging

from starlette.types import ASGIApp, Message, Receive, Scope, Send


logger = logging.getLogger(__name__)

CORS_HEADERS: tuple[tuple[bytes, bytes], ...] = (
    (b"access-control-allow-origin", b"*"),
    (b"access-control-allow-methods", b"GET, POST, OPTIONS"),
    (b"access-control-allow-headers", b"Content-Type"),
)

_CORS_HEADER_NAMES = {name for name, _ in CORS_HEADERS}


class CORSHeadersMiddleware:
    """
    Middleware that opens the API to any origin.

    Every HTTP response carries the CORS headers, and every OPTIONS request is
    answered here with 200 and an empty body without reaching the routes.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def _send_preflight(self, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": 200,
                "headers": [
                    *CORS_HEADERS,
                    (b"content-type", b"application/json"),
                    (b"content-length", b"0"),
                ],
            }
        )
        await send({"type": "http.response.body", "body": b"", "more_body": False})

    def _create_send_wrapper(self, send: Send) -> Send:
        """Create a send wrapper that adds the CORS headers to the response start."""

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = [
                    h for h in message.get("headers", []) if h[0].lower() not in _CORS_HEADER_NAMES
                ]
                headers.extend(CORS_HEADERS)
                message["headers"] = headers
            await send(message)

        return send_wrapper

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            logger.debug("Answering preflight for %s", scope["path"])
            await self._send_preflight(send)
            return

        await self.app(scope, receive, self._create_send_wrapper(send))
