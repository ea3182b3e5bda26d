from __future__ import annotations

"""EIP-712 ドメインセパレータ。

chainId はフォーク等で変わり得るため、構築時にキャッシュせず毎回再計算する。
"""

from typing import Any, Dict

from eth_abi import encode
from eth_utils import keccak
from loguru import logger

from . import config
from .environment import ChainEnvironment
from .utils import normalize_address


EIP712_DOMAIN_TYPE = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
DOMAIN_TYPEHASH = keccak(text=EIP712_DOMAIN_TYPE)

EIP712_DOMAIN_FIELDS = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]


def domain_separator(name: str, version: str, chain_id: int, verifying_contract: str) -> bytes:
    """keccak256(abi.encode(typeHash, keccak(name), keccak(version), chainId, verifyingContract))"""

    return keccak(
        encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                DOMAIN_TYPEHASH,
                keccak(text=name),
                keccak(text=version),
                int(chain_id),
                normalize_address(verifying_contract),
            ],
        )
    )


class DomainContext:
    """エンジン 1 インスタンス分のドメイン情報。

    - name/version: プロトコル名とバージョン
    - verifying_contract: エンジン自身のアドレス
    - chain: chainId の取得元（呼び出しごとに参照）
    """

    def __init__(
        self,
        chain: ChainEnvironment,
        verifying_contract: str,
        *,
        name: str = config.PROTOCOL_NAME,
        version: str = config.PROTOCOL_VERSION,
    ) -> None:
        self.chain = chain
        self.verifying_contract = normalize_address(verifying_contract)
        self.name = name
        self.version = version

    def separator(self) -> bytes:
        """現在の chainId でドメインセパレータを計算する。"""

        chain_id = self.chain.chain_id()
        sep = domain_separator(self.name, self.version, chain_id, self.verifying_contract)
        logger.debug("domain separator chainId={} → 0x{}", chain_id, sep.hex())
        return sep

    def typed_domain(self) -> Dict[str, Any]:
        """eth_account の typed data 用 domain 辞書を返す。"""

        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain.chain_id(),
            "verifyingContract": self.verifying_contract,
        }
