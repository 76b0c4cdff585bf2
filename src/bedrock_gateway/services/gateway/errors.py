"""
Exceptions raised inside the dispatch path.

None of these escape ``Dispatcher.dispatch``; they are converted into
``TransportFailure`` or ``MalformedReply`` values there.
"""

from bedrock_gateway.config import HostEndpoint


class RPCError(Exception):
    """Base exception for RPC errors."""


class EndpointUnavailableError(RPCError):
    """Raised when an endpoint cannot be connected to or does not reply in time."""

    def __init__(self, endpoint: HostEndpoint, reason: str) -> None:
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.reason = reason


class NoCandidateError(RPCError):
    """Raised when every configured endpoint is blacklisted."""


class MalformedReplyError(RPCError):
    """Raised when a reply cannot be parsed into a status line and JSON body."""
