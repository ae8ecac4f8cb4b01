"""
Tests for JSON-RPC request and response models.
"""

import pytest

from cita.rpc.types import JsonRpcParams, JsonRpcResponse, RpcError, RpcMethod


class TestRpcMethod:

    def test_parse_allow_listed(self):
        assert RpcMethod.parse("cita_blockNumber") is RpcMethod.BLOCK_NUMBER
        assert RpcMethod.parse(RpcMethod.GET_META_DATA) is RpcMethod.GET_META_DATA

    @pytest.mark.parametrize("name", ["eth_blockNumber", "CITA_BLOCKNUMBER", ""])
    def test_parse_unknown(self, name):
        assert RpcMethod.parse(name) is None


class TestJsonRpcParams:

    def test_default_version(self):
        assert dict(JsonRpcParams()) == {"jsonrpc": "2.0"}

    def test_for_method(self):
        params = JsonRpcParams.for_method(RpcMethod.GET_META_DATA, ["latest"])

        assert params.to_dict() == {
            "jsonrpc": "2.0",
            "method": "cita_getMetaData",
            "params": ["latest"],
        }

    def test_insert_returns_new_record(self):
        params = JsonRpcParams.for_method(RpcMethod.BLOCK_NUMBER)

        with_id = params.insert("id", 7)

        assert "id" not in params
        assert with_id["id"] == 7
        assert list(with_id) == ["jsonrpc", "method", "params", "id"]

    def test_insert_overwrites(self):
        params = JsonRpcParams({"id": 1}).insert("id", 2)

        assert params["id"] == 2
        assert len(params) == 2


class TestJsonRpcResponse:

    def test_parse_result(self):
        response = JsonRpcResponse.from_dict({"jsonrpc": "2.0", "id": 3, "result": "0x10"})

        assert response.is_ok
        assert response.id == 3
        assert response.result == "0x10"

    def test_null_result_is_success(self):
        response = JsonRpcResponse.from_dict({"jsonrpc": "2.0", "id": 3, "result": None})

        assert response.is_ok
        assert response.result is None

    def test_parse_error(self):
        response = JsonRpcResponse.from_dict({
            "jsonrpc": "2.0",
            "id": 3,
            "error": {"code": -32602, "message": "Invalid params", "data": "height"},
        })

        assert not response.is_ok
        assert response.error == RpcError(-32602, "Invalid params", "height")

    @pytest.mark.parametrize("body", [
        [],
        "ok",
        {"jsonrpc": "2.0", "id": 1},
        {"jsonrpc": "2.0", "id": 1, "error": "boom"},
        {"jsonrpc": "2.0", "id": 1, "error": {"code": "x", "message": "boom"}},
    ])
    def test_malformed_bodies(self, body):
        with pytest.raises(ValueError):
            JsonRpcResponse.from_dict(body)

    def test_to_dict(self):
        body = {"jsonrpc": "2.0", "id": 1, "error": {"code": -1, "message": "no"}}

        assert JsonRpcResponse.from_dict(body).to_dict() == body
