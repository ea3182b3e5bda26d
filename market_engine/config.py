from __future__ import annotations

"""グローバル設定・定数をまとめたモジュール。

- プロトコル名/バージョン（EIP-712 ドメイン）
- 一括キャンセルの上限幅
- ERC-165 インタフェース ID
- ネットワーク別の RPC エンドポイントとチェーン ID
"""

import os
from dataclasses import dataclass
from typing import Optional


# EIP-712 ドメイン
PROTOCOL_NAME = "MarketEngine"
PROTOCOL_VERSION = "1"

# 一括キャンセル 1 回で引き上げられる最小ノンスの幅（未満）
MAX_CANCEL_RANGE = 500_000

# ERC-165 インタフェース ID
INTERFACE_ID_ERC165 = "0x01ffc9a7"
INTERFACE_ID_ERC721 = "0x80ac58cd"
INTERFACE_ID_ERC1155 = "0xd9b67a26"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


# エンドポイント
MAINNET_RPC = "https://ethereum-rpc.publicnode.com"
SEPOLIA_RPC = "https://ethereum-sepolia-rpc.publicnode.com"
LOCAL_RPC = "http://127.0.0.1:8545"

CHAIN_IDS = {
    "mainnet": 1,
    "sepolia": 11155111,
    "local": 31337,
}

RPC_TIMEOUT_SEC = 30


@dataclass(frozen=True)
class EngineSettings:
    """エンジンの実行設定。

    - protocol_name/protocol_version: ドメイン名とバージョン
    - chain_id: 署名を束縛するチェーン ID
    - engine_address: verifyingContract として使うエンジン自身のアドレス
    - admin_address: current nonce を増やせる唯一の管理者
    - rpc_url: ノードの JSON-RPC エンドポイント
    """

    protocol_name: str
    protocol_version: str
    chain_id: int
    engine_address: str
    admin_address: str
    rpc_url: str


def rpc_url_for(network: str) -> str:
    """ネットワーク名(mainnet|sepolia|local)に応じた RPC URL を返す。"""

    net = network.lower()
    if net == "sepolia":
        return SEPOLIA_RPC
    if net == "local":
        return LOCAL_RPC
    return MAINNET_RPC


def get_settings(network: Optional[str] = None) -> EngineSettings:
    """環境変数から EngineSettings を組み立てる。

    備考: MKT_RPC_URL / MKT_CHAIN_ID が設定されていれば、ネットワーク既定値より優先する。
    """

    net = (network or os.getenv("MKT_NETWORK", "mainnet")).lower()
    rpc_url = os.getenv("MKT_RPC_URL") or rpc_url_for(net)

    env_chain = os.getenv("MKT_CHAIN_ID")
    chain_id = int(env_chain) if env_chain else CHAIN_IDS.get(net, CHAIN_IDS["mainnet"])

    return EngineSettings(
        protocol_name=os.getenv("MKT_PROTOCOL_NAME", PROTOCOL_NAME),
        protocol_version=os.getenv("MKT_PROTOCOL_VERSION", PROTOCOL_VERSION),
        chain_id=chain_id,
        engine_address=os.getenv("MKT_ENGINE_ADDRESS", ZERO_ADDRESS),
        admin_address=os.getenv("MKT_ADMIN_ADDRESS", ZERO_ADDRESS),
        rpc_url=rpc_url,
    )
