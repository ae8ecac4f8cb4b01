"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

from cita.config import ClientConfig
from cita.rpc.dispatcher import RequestDispatcher
from cita.tx.signer import TransactionSigner, generate_test_key


NODE_URLS = ["http://node-a:1337", "http://node-b:1337", "http://node-c:1337"]

# Private key 1; its address is a well-known test vector
KEY_ONE = "0x" + "00" * 31 + "01"
KEY_ONE_ADDRESS = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> ClientConfig:
    """Create a test configuration."""
    return ClientConfig(
        nodes=list(NODE_URLS),
        request_timeout=2.0,
        default_quota=1_000_000,
        log_level="DEBUG",
    )


# ============================================================================
# Fake Node Cluster
# ============================================================================

NodeBehavior = Callable[[Dict[str, Any]], Any]


class FakeNodes:
    """
    In-memory JSON-RPC nodes behind an ``httpx.MockTransport``.

    Each node host maps to a behavior taking the decoded request body and
    returning the response body (a dict, or raw bytes to send verbatim).
    Behaviors may be coroutines, and may raise httpx errors to simulate
    transport failures. Every request is recorded in ``calls``.
    """

    def __init__(self):
        self.behaviors: Dict[str, NodeBehavior] = {}
        self.calls: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def set(self, host: str, behavior: NodeBehavior) -> None:
        self.behaviors[host] = behavior

    def set_all(self, behavior: NodeBehavior) -> None:
        for url in NODE_URLS:
            self.set(httpx.URL(url).host, behavior)

    def calls_for(self, host: str) -> List[Dict[str, Any]]:
        return [body for h, body in self.calls if h == host]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        body = json.loads(request.content)
        self.calls.append((host, body))

        behavior = self.behaviors.get(host)
        if behavior is None:
            raise httpx.ConnectError(f"no route to {host}", request=request)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            result = behavior(body)
            if asyncio.iscoroutine(result):
                result = await result
        finally:
            self.in_flight -= 1

        if isinstance(result, bytes):
            return httpx.Response(200, content=result)
        return httpx.Response(200, json=result)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def rpc_result(result: Any) -> NodeBehavior:
    """Behavior answering every call with ``result``."""
    def behavior(body: Dict[str, Any]) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": body["id"], "result": result}
    return behavior


def rpc_error(code: int, message: str) -> NodeBehavior:
    """Behavior answering every call with a JSON-RPC error."""
    def behavior(body: Dict[str, Any]) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": body["id"], "error": {"code": code, "message": message}}
    return behavior


def cita_node(chain_id: int = 1, height: int = 100) -> NodeBehavior:
    """Behavior of a healthy node answering every allow-listed method."""
    def behavior(body: Dict[str, Any]) -> Dict[str, Any]:
        method = body["method"]
        if method == "cita_blockNumber":
            result: Any = hex(height)
        elif method == "cita_getMetaData":
            result = {"chainId": chain_id, "chainName": "test-chain", "blockInterval": 3000}
        elif method == "cita_sendRawTransaction":
            result = {"hash": "0x" + "ab" * 32, "status": "OK"}
        else:
            return {"jsonrpc": "2.0", "id": body["id"],
                    "error": {"code": -32601, "message": "Method not found"}}
        return {"jsonrpc": "2.0", "id": body["id"], "result": result}
    return behavior


@pytest.fixture
def fake_nodes() -> FakeNodes:
    """Create a fake cluster where every node is healthy."""
    nodes = FakeNodes()
    nodes.set_all(cita_node())
    return nodes


@pytest_asyncio.fixture
async def http_client(fake_nodes):
    """HTTP client routed to the fake cluster."""
    client = httpx.AsyncClient(transport=fake_nodes.transport())
    yield client
    await client.aclose()


@pytest.fixture
def make_dispatcher(test_config, http_client) -> Callable[..., RequestDispatcher]:
    """Factory for dispatchers wired to the fake cluster."""
    def factory(endpoints: Optional[List[str]] = None, config: Optional[ClientConfig] = None):
        return RequestDispatcher(
            config or test_config,
            endpoints=list(NODE_URLS) if endpoints is None else endpoints,
            client=http_client,
        )
    return factory


@pytest.fixture
def dispatcher(make_dispatcher) -> RequestDispatcher:
    """Dispatcher broadcasting to all three fake nodes."""
    return make_dispatcher()


# ============================================================================
# Test Signer
# ============================================================================

@pytest.fixture
def test_signer(test_config) -> TransactionSigner:
    """Create a test signer with a random key."""
    return generate_test_key(test_config)


@pytest.fixture
def fixed_signer(test_config) -> TransactionSigner:
    """Signer with a fixed, well-known key."""
    return TransactionSigner(KEY_ONE, config=test_config)
