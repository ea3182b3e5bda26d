from typing import Any, Dict, List

import pytest

from market_engine import config
from market_engine.dispatcher import AssetKind, resolve_asset_kind
from market_engine.errors import RpcError
from market_engine.rpc_client import JsonRpcClient, RpcCapabilityProbe, RpcChain


COLLECTION = "0x" + "c0" * 20
TRUE_WORD = "0x" + "00" * 31 + "01"
FALSE_WORD = "0x" + "00" * 32


def test_chain_id_and_timestamp(monkeypatch: pytest.MonkeyPatch):
    rpc = JsonRpcClient(base_url="http://example.com")
    calls: List[Dict[str, Any]] = []

    def fake_post(body: Dict[str, Any]):
        calls.append(body)
        if body["method"] == "eth_chainId":
            return {"jsonrpc": "2.0", "id": body["id"], "result": "0xaa36a7"}
        return {"jsonrpc": "2.0", "id": body["id"], "result": {"number": "0x10", "timestamp": "0x6553f100"}}

    monkeypatch.setattr(rpc, "_post", fake_post)
    chain = RpcChain(rpc)
    assert chain.chain_id() == 11155111
    assert chain.timestamp() == 0x6553F100
    assert calls[1]["params"] == ["latest", False]
    assert calls[0]["id"] != calls[1]["id"]


def test_supports_interface_encodes_eth_call(monkeypatch: pytest.MonkeyPatch):
    rpc = JsonRpcClient(base_url="http://example.com")
    seen: List[Dict[str, Any]] = []

    def fake_post(body: Dict[str, Any]):
        seen.append(body)
        data = body["params"][0]["data"]
        answer = TRUE_WORD if data.startswith("0x01ffc9a780ac58cd") else FALSE_WORD
        return {"jsonrpc": "2.0", "id": body["id"], "result": answer}

    monkeypatch.setattr(rpc, "_post", fake_post)
    assert rpc.supports_interface(COLLECTION, config.INTERFACE_ID_ERC721) is True
    assert rpc.supports_interface(COLLECTION, config.INTERFACE_ID_ERC1155) is False

    call = seen[0]
    assert call["method"] == "eth_call"
    assert call["params"][1] == "latest"
    assert call["params"][0]["to"].lower() == COLLECTION
    # selector(4) + bytes4 padded to 32
    assert len(call["params"][0]["data"]) == 2 + 2 * (4 + 32)

    assert resolve_asset_kind(RpcCapabilityProbe(rpc), COLLECTION) is AssetKind.ERC721


def test_revert_and_empty_reply_mean_unsupported(monkeypatch: pytest.MonkeyPatch):
    rpc = JsonRpcClient(base_url="http://example.com")
    replies = iter(
        [
            {"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "execution reverted"}},
            {"jsonrpc": "2.0", "id": 2, "result": "0x"},
        ]
    )
    monkeypatch.setattr(rpc, "_post", lambda body: next(replies))
    assert rpc.supports_interface(COLLECTION, config.INTERFACE_ID_ERC721) is False
    assert rpc.supports_interface(COLLECTION, config.INTERFACE_ID_ERC721) is False


def test_other_rpc_errors_propagate(monkeypatch: pytest.MonkeyPatch):
    rpc = JsonRpcClient(base_url="http://example.com")
    monkeypatch.setattr(
        rpc, "_post", lambda body: {"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "rate limited"}}
    )
    with pytest.raises(RpcError) as info:
        rpc.supports_interface(COLLECTION, config.INTERFACE_ID_ERC721)
    assert info.value.code == -32005


def test_base_url_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MKT_RPC_URL", "http://node:8545")
    assert JsonRpcClient().base_url == "http://node:8545"
