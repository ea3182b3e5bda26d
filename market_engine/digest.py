from __future__ import annotations

"""注文ダイジェスト（EIP-712 structHash と最終ダイジェスト）。"""

from typing import Any, Dict, List

from eth_abi import encode
from eth_utils import keccak

from .domain import EIP712_DOMAIN_FIELDS
from .orders import Order


# フィールド順はここで固定。変更する場合は型文字列ごと変わるため typeHash も変わる。
ORDER_FIELDS: List[Dict[str, str]] = [
    {"name": "signer", "type": "address"},
    {"name": "isAsk", "type": "bool"},
    {"name": "collection", "type": "address"},
    {"name": "tokenId", "type": "uint256"},
    {"name": "amount", "type": "uint256"},
    {"name": "currency", "type": "address"},
    {"name": "price", "type": "uint256"},
    {"name": "startTime", "type": "uint256"},
    {"name": "endTime", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
]

ORDER_TYPE = "Order(" + ",".join(f"{f['type']} {f['name']}" for f in ORDER_FIELDS) + ")"
ORDER_TYPEHASH = keccak(text=ORDER_TYPE)


def order_struct_hash(order: Order) -> bytes:
    """keccak256(abi.encode(ORDER_TYPEHASH, ...fields))"""

    msg = order.message()
    types = ["bytes32"] + [f["type"] for f in ORDER_FIELDS]
    values = [ORDER_TYPEHASH] + [msg[f["name"]] for f in ORDER_FIELDS]
    return keccak(encode(types, values))


def order_digest(order: Order, domain_separator: bytes) -> bytes:
    """keccak256(0x1901 || domainSeparator || structHash)"""

    if len(domain_separator) != 32:
        raise ValueError("domain separator must be 32 bytes")
    return keccak(b"\x19\x01" + domain_separator + order_struct_hash(order))


def order_typed_data(order: Order, domain: Dict[str, Any]) -> Dict[str, Any]:
    """eth_account.messages.encode_typed_data に渡す EIP-712 Typed Data を返す。"""

    return {
        "domain": domain,
        "types": {
            "EIP712Domain": EIP712_DOMAIN_FIELDS,
            "Order": ORDER_FIELDS,
        },
        "primaryType": "Order",
        "message": order.message(),
    }
