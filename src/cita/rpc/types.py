"""
JSON-RPC request and response models.

A request is an ordered mapping of small tagged values; a response is either a
result value or an error object.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union


JSONRPC_VERSION = "2.0"

ParamsValue = Union[int, str, List["ParamsValue"], Dict[str, "ParamsValue"]]


class RpcMethod(str, Enum):
    """JSON-RPC methods the dispatcher is allowed to broadcast."""
    BLOCK_NUMBER = "cita_blockNumber"                  # no arguments
    GET_META_DATA = "cita_getMetaData"                 # [height | "latest"]
    SEND_RAW_TRANSACTION = "cita_sendRawTransaction"   # [signed tx hex]

    @classmethod
    def parse(cls, name: Union["RpcMethod", str]) -> Optional["RpcMethod"]:
        """Return the member for ``name``, or None when it is not allow-listed."""
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return None


class JsonRpcParams(Mapping[str, ParamsValue]):
    """
    Ordered, copy-on-write parameter record for one outbound call.

    ``insert`` never mutates; it returns a new record with the key set, so a
    record handed to the dispatcher cannot change after it is sent.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Mapping[str, ParamsValue]] = None):
        self._items: Dict[str, ParamsValue] = {"jsonrpc": JSONRPC_VERSION}
        if items:
            self._items.update(items)

    @classmethod
    def for_method(
        cls,
        method: Union[RpcMethod, str],
        args: Optional[List[ParamsValue]] = None,
    ) -> "JsonRpcParams":
        """Build the params record for ``method`` called with ``args``."""
        name = method.value if isinstance(method, RpcMethod) else method
        return cls({"method": name, "params": list(args or [])})

    def insert(self, key: str, value: ParamsValue) -> "JsonRpcParams":
        items = dict(self._items)
        items[key] = value
        return JsonRpcParams(items)

    def to_dict(self) -> Dict[str, ParamsValue]:
        return dict(self._items)

    def __getitem__(self, key: str) -> ParamsValue:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"JsonRpcParams({self._items!r})"


@dataclass(frozen=True)
class RpcError:
    """Error object returned by a node."""
    code: int
    message: str
    data: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RpcError":
        code = data.get("code")
        message = data.get("message")
        if not isinstance(code, int) or not isinstance(message, str):
            raise ValueError(f"Malformed JSON-RPC error object: {data!r}")
        return cls(code=code, message=message, data=data.get("data"))


@dataclass(frozen=True)
class JsonRpcResponse:
    """
    One endpoint's answer to one broadcast call.

    Exactly one of ``result`` and ``error`` is meaningful; ``is_ok`` tells
    which. A success whose result is JSON ``null`` is still a success.

    Attributes:
        id: Request id echoed by the node
        result: Result value on success
        error: Error object on failure
        jsonrpc: Protocol version echoed by the node
    """

    id: Optional[Union[int, str]]
    result: Optional[Any] = None
    error: Optional[RpcError] = None
    jsonrpc: str = JSONRPC_VERSION

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_dict(cls, data: Any) -> "JsonRpcResponse":
        """
        Parse a decoded response body.

        Raises:
            ValueError: If the body is not a JSON-RPC response object
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        if "error" in data and data["error"] is not None:
            if not isinstance(data["error"], dict):
                raise ValueError(f"Malformed JSON-RPC error object: {data['error']!r}")
            return cls(
                id=data.get("id"),
                error=RpcError.from_dict(data["error"]),
                jsonrpc=data.get("jsonrpc", JSONRPC_VERSION),
            )

        if "result" not in data:
            raise ValueError("JSON-RPC response has neither 'result' nor 'error'")

        return cls(
            id=data.get("id"),
            result=data["result"],
            jsonrpc=data.get("jsonrpc", JSONRPC_VERSION),
        )

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            error: Dict[str, Any] = {"code": self.error.code, "message": self.error.message}
            if self.error.data is not None:
                error["data"] = self.error.data
            body["error"] = error
        else:
            body["result"] = self.result
        return body
