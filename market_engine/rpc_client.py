from __future__ import annotations

"""Ethereum ノードの JSON-RPC クライアント。

- eth_chainId / eth_getBlockByNumber（チェーン環境）
- eth_call による ERC-165 supportsInterface 問い合わせ（資産種別の判定）
"""

import itertools
import json
import os
from typing import Any, Dict, List, Optional

import requests
from eth_abi import decode, encode
from eth_utils import decode_hex, to_hex
from loguru import logger

from . import config
from .errors import RpcError
from .utils import normalize_address


SUPPORTS_INTERFACE_SELECTOR = decode_hex(config.INTERFACE_ID_ERC165)


class JsonRpcClient:
    """JSON-RPC ラッパ。base_url は設定から自動解決。"""

    def __init__(self, base_url: Optional[str] = None) -> None:
        self.base_url = base_url or os.getenv("MKT_RPC_URL") or config.get_settings().rpc_url
        self.session = requests.Session()
        self._ids = itertools.count(1)

    def _post(self, body: Dict[str, Any]) -> Any:
        """POST リクエスト（JSON）を送信し、JSON を返す。"""

        headers = {"Content-Type": "application/json"}
        resp = self.session.post(self.base_url, data=json.dumps(body), headers=headers, timeout=config.RPC_TIMEOUT_SEC)
        resp.raise_for_status()
        return resp.json()

    def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """JSON-RPC 呼び出し。error フィールドがあれば RpcError。"""

        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        reply = self._post(body)
        if "error" in reply and reply["error"] is not None:
            err = reply["error"]
            raise RpcError(int(err.get("code", -1)), str(err.get("message", "")))
        return reply.get("result")

    # チェーン環境 ---------------------------------------------------------------

    def chain_id(self) -> int:
        return int(self.request("eth_chainId"), 16)

    def block_timestamp(self, block: str = "latest") -> int:
        blk = self.request("eth_getBlockByNumber", [block, False])
        if not isinstance(blk, dict) or "timestamp" not in blk:
            raise RpcError(-1, f"block {block} not found")
        return int(blk["timestamp"], 16)

    # コントラクト呼び出し ------------------------------------------------------------

    def eth_call(self, to: str, data: bytes, block: str = "latest") -> bytes:
        result = self.request("eth_call", [{"to": normalize_address(to), "data": to_hex(data)}, block])
        return decode_hex(result or "0x")

    def supports_interface(self, contract: str, interface_id: str) -> bool:
        """ERC-165 supportsInterface(bytes4)。未実装（revert/空応答）は False として扱う。"""

        data = SUPPORTS_INTERFACE_SELECTOR + encode(["bytes4"], [decode_hex(interface_id)])
        try:
            raw = self.eth_call(contract, data)
        except RpcError as e:
            # execution reverted は ERC-165 非対応
            if e.code == 3 or "revert" in e.message.lower():
                logger.debug("supportsInterface revert: {} {}", contract, interface_id)
                return False
            raise
        if len(raw) < 32:
            return False
        (supported,) = decode(["bool"], raw[:32])
        return bool(supported)


class RpcChain:
    """ノードを参照するチェーン環境（chainId と最新ブロック時刻）。"""

    def __init__(self, rpc: JsonRpcClient) -> None:
        self.rpc = rpc

    def chain_id(self) -> int:
        return self.rpc.chain_id()

    def timestamp(self) -> int:
        return self.rpc.block_timestamp()


class RpcCapabilityProbe:
    """ノード経由の ERC-165 プローブ。"""

    def __init__(self, rpc: JsonRpcClient) -> None:
        self.rpc = rpc

    def supports_interface(self, contract: str, interface_id: str) -> bool:
        return self.rpc.supports_interface(contract, interface_id)
