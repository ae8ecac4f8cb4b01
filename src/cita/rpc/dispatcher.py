"""
Multi-endpoint JSON-RPC dispatcher.

Broadcasts one logical call to every configured CITA node concurrently and
returns every node's answer, in the order the nodes were registered.
"""

import asyncio
import json
from typing import Any, Iterable, List, Optional, Tuple, Union

import httpx
import structlog

from cita.config import ClientConfig, get_config
from cita.errors import (
    ChainIdUnavailable,
    DispatchError,
    EndpointFailure,
    NoEndpointsConfigured,
    TransportFailure,
    UnsupportedMethod,
)
from cita.rpc.types import (
    JsonRpcParams,
    JsonRpcResponse,
    ParamsValue,
    RpcMethod,
)

logger = structlog.get_logger(__name__)


REQUEST_ID_MODULUS = 2 ** 64
CHAIN_ID_MASK = 0xFFFFFFFF
UNRESOLVED_CHAIN_ID = 0


class RequestDispatcher:
    """
    Fan-out JSON-RPC client for a set of CITA nodes.

    Each instance owns its endpoint list, request-id counter and chain-id
    cache; instances never share state. An instance is meant to be driven by
    one caller at a time and does no locking.

    Usage:
        async with RequestDispatcher(config) as dispatcher:
            responses = await dispatcher.send(RpcMethod.BLOCK_NUMBER)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        endpoints: Optional[Iterable[str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            config: Client configuration. Uses global config if not provided.
            endpoints: Node URLs to use instead of ``config.nodes``
            client: HTTP client to send through. Created lazily if not provided,
                and only closed by ``aclose`` when the dispatcher created it.
        """
        self.config = config or get_config()
        self.timeout = self.config.request_timeout
        initial = self.config.nodes if endpoints is None else endpoints
        self._endpoints: List[str] = [str(url) for url in initial]
        self._request_id = 0
        self._chain_id: Optional[int] = None
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def add_endpoint(self, address: str) -> None:
        """Append a node URL. Reachability is only checked at call time."""
        self._endpoints.append(address)
        logger.debug("endpoint_added", endpoint=address, count=len(self._endpoints))

    @property
    def endpoints(self) -> Tuple[str, ...]:
        return tuple(self._endpoints)

    @property
    def request_id(self) -> int:
        """The id embedded in the most recent call (0 before the first call)."""
        return self._request_id

    @property
    def chain_id(self) -> Optional[int]:
        """The cached chain id, or None if it has not been resolved yet."""
        return self._chain_id

    def _next_request_id(self) -> int:
        self._request_id = (self._request_id + 1) % REQUEST_ID_MODULUS
        return self._request_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this dispatcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RequestDispatcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------

    async def send(
        self,
        method: Union[RpcMethod, str],
        params: Optional[JsonRpcParams] = None,
    ) -> List[JsonRpcResponse]:
        """
        Broadcast one call to every endpoint and collect every response.

        All endpoint calls are started before any is awaited. The batch is
        all-or-nothing: if any endpoint fails at the transport level, no
        responses are returned. Node-level JSON-RPC errors are not transport
        failures; they come back as responses with ``error`` set.

        Args:
            method: Allow-listed method to call
            params: Params record. Built from ``method`` with no arguments if
                not provided; ``method`` is filled in when missing.

        Returns:
            One response per endpoint, in endpoint registration order

        Raises:
            UnsupportedMethod: If ``method`` is not allow-listed, or ``params``
                names a different method
            NoEndpointsConfigured: If there are no endpoints
            TransportFailure: If any endpoint call failed
        """
        rpc_method = RpcMethod.parse(method)
        if rpc_method is None:
            raise UnsupportedMethod(str(method))

        if not self._endpoints:
            raise NoEndpointsConfigured()

        if params is None:
            params = JsonRpcParams.for_method(rpc_method)
        elif "method" not in params:
            params = params.insert("method", rpc_method.value)
        elif params["method"] != rpc_method.value:
            raise UnsupportedMethod(str(params["method"]))

        request_id = self._next_request_id()
        params = params.insert("id", request_id)
        body = json.dumps(params.to_dict())

        endpoints = list(self._endpoints)
        client = self._get_client()

        logger.debug(
            "rpc_batch_sent",
            method=rpc_method.value,
            request_id=request_id,
            endpoints=len(endpoints),
        )

        tasks = [
            asyncio.ensure_future(self._call_endpoint(client, endpoint, body))
            for endpoint in endpoints
        ]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        responses: List[JsonRpcResponse] = []
        failures: List[EndpointFailure] = []
        for outcome in outcomes:
            if isinstance(outcome, EndpointFailure):
                failures.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                responses.append(outcome)

        if failures:
            for failure in failures:
                logger.warning(
                    "rpc_endpoint_failed",
                    method=rpc_method.value,
                    request_id=request_id,
                    endpoint=failure.endpoint,
                    reason=failure.reason,
                )
            raise TransportFailure(failures)

        return responses

    async def _call_endpoint(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        body: str,
    ) -> Union[JsonRpcResponse, EndpointFailure]:
        """POST ``body`` to one endpoint; transport problems come back as a failure value."""
        try:
            response = await client.post(endpoint, content=body, timeout=self.timeout)
        except httpx.TimeoutException as e:
            return EndpointFailure(endpoint, f"timed out after {self.timeout}s", e)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return EndpointFailure(endpoint, f"{type(e).__name__}: {e}", e)

        try:
            return JsonRpcResponse.from_dict(response.json())
        except ValueError as e:
            return EndpointFailure(
                endpoint,
                f"malformed response (HTTP {response.status_code}): {e}",
                e,
            )

    # ------------------------------------------------------------------
    # Chain id
    # ------------------------------------------------------------------

    async def resolve_chain_id(self) -> int:
        """
        Get the chain id, fetching it from the nodes on first use.

        Only the first endpoint's answer is read even though every endpoint is
        queried. A successful resolution is cached for the life of the
        dispatcher; later calls do no network activity.

        Returns:
            The chain id, or 0 when the metadata reply has no usable ``chainId``
            and ``strict_chain_id`` is off. The 0 fallback is not cached.

        Raises:
            ChainIdUnavailable: On an unusable reply when ``strict_chain_id`` is on
            TransportFailure: If the metadata call itself fails
        """
        if self._chain_id is not None:
            return self._chain_id

        responses = await self.send(
            RpcMethod.GET_META_DATA,
            JsonRpcParams.for_method(RpcMethod.GET_META_DATA, ["latest"]),
        )
        first = responses[0]

        chain_id = _extract_chain_id(first)
        if chain_id is None:
            logger.warning(
                "chain_id_unresolved",
                endpoint=self._endpoints[0],
                error=first.error.message if first.error else None,
            )
            if self.config.strict_chain_id:
                raise ChainIdUnavailable(
                    f"Metadata from {self._endpoints[0]} carries no usable chainId"
                )
            return UNRESOLVED_CHAIN_ID

        self._chain_id = chain_id
        logger.info("chain_id_resolved", chain_id=chain_id)
        return chain_id

    # ------------------------------------------------------------------
    # Convenience calls (first endpoint's answer)
    # ------------------------------------------------------------------

    async def _first_result(self, method: RpcMethod, args: List[ParamsValue]) -> JsonRpcResponse:
        responses = await self.send(method, JsonRpcParams.for_method(method, args))
        return responses[0]

    async def get_block_number(self) -> int:
        """
        Get the latest block height reported by the first endpoint.

        Raises:
            DispatchError: If the node returned an error or a non-numeric height
        """
        response = await self._first_result(RpcMethod.BLOCK_NUMBER, [])
        result = _unwrap(response, RpcMethod.BLOCK_NUMBER)
        try:
            return _parse_quantity(result)
        except ValueError as e:
            raise DispatchError(f"Unexpected block number {result!r}") from e

    async def get_metadata(self, height: Union[int, str] = "latest") -> Any:
        """Get chain metadata at ``height`` (a block number or "latest")."""
        arg = hex(height) if isinstance(height, int) else height
        response = await self._first_result(RpcMethod.GET_META_DATA, [arg])
        return _unwrap(response, RpcMethod.GET_META_DATA)

    async def send_raw_transaction(self, signed_tx: str) -> List[JsonRpcResponse]:
        """
        Submit a hex-encoded signed transaction to every endpoint.

        Returns every endpoint's response; a node rejecting the transaction is
        reported in its response, not raised.
        """
        if not signed_tx.startswith("0x"):
            signed_tx = "0x" + signed_tx
        responses = await self.send(
            RpcMethod.SEND_RAW_TRANSACTION,
            JsonRpcParams.for_method(RpcMethod.SEND_RAW_TRANSACTION, [signed_tx]),
        )
        logger.info(
            "transaction_submitted",
            accepted=sum(1 for r in responses if r.is_ok),
            endpoints=len(responses),
        )
        return responses


def _extract_chain_id(response: JsonRpcResponse) -> Optional[int]:
    if not response.is_ok or not isinstance(response.result, dict):
        return None
    value = response.result.get("chainId")
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value & CHAIN_ID_MASK


def _unwrap(response: JsonRpcResponse, method: RpcMethod) -> Any:
    if response.error is not None:
        raise DispatchError(
            f"{method.value} failed: [{response.error.code}] {response.error.message}"
        )
    return response.result


def _parse_quantity(value: Any) -> int:
    """Parse a height given as an int or a 0x-prefixed hex string."""
    if isinstance(value, bool):
        raise ValueError(f"Not a block height: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    raise ValueError(f"Not a block height: {value!r}")
