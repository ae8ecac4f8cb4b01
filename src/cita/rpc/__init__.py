"""
JSON-RPC layer.

Broadcasts allow-listed calls to every configured CITA node.
"""

from cita.errors import EndpointFailure
from cita.rpc.dispatcher import RequestDispatcher
from cita.rpc.types import (
    JsonRpcParams,
    JsonRpcResponse,
    RpcError,
    RpcMethod,
)

__all__ = [
    "RequestDispatcher",
    "EndpointFailure",
    "JsonRpcParams",
    "JsonRpcResponse",
    "RpcError",
    "RpcMethod",
]
