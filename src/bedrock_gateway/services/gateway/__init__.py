"""
Gateway service module.

Host selection, dispatch and response translation for Bedrock commands.
"""

from .host_pool import Blacklist, HostPool
from .rpc_client import Dispatcher
from .schemas import GatewayResult, MalformedReply, RpcRequest, RpcResponse, TransportFailure
from .translator import translate


__all__ = [
    "Blacklist",
    "Dispatcher",
    "GatewayResult",
    "HostPool",
    "MalformedReply",
    "RpcRequest",
    "RpcResponse",
    "TransportFailure",
    "translate",
]
