"""
CITA Client

A JSON-RPC client for CITA permissioned chains.
Broadcasts queries and signed transactions to every configured node, and builds
and signs transactions for submission.
"""

__version__ = "0.1.0"

from cita.errors import (
    CitaClientError,
    DispatchError,
    TransactionBuildError,
)
from cita.rpc.dispatcher import RequestDispatcher
from cita.rpc.types import JsonRpcParams, JsonRpcResponse, RpcMethod
from cita.tx.builder import TransactionBuilder
from cita.tx.signer import TransactionSigner

__all__ = [
    "CitaClientError",
    "DispatchError",
    "TransactionBuildError",
    "RequestDispatcher",
    "JsonRpcParams",
    "JsonRpcResponse",
    "RpcMethod",
    "TransactionBuilder",
    "TransactionSigner",
]
