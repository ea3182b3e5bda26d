from __future__ import annotations

"""注文と発行レコードのデータモデル。"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Tuple

from eth_utils import to_hex

from .utils import BytesLike, normalize_address, to_bytes


# uint256 の上限（この値以上は EIP-712 でエンコードできない）
UINT256_BOUND = 2**256


@dataclass(frozen=True)
class Order:
    """オフチェーンで署名された注文（外部入力を想定）。

    - signer: 注文の署名者
    - is_ask: True なら署名者が売り手（資産を提示）、False なら買い手（通貨を提示）
    - collection: 資産コントラクト
    - token_id/amount: 資産の ID と数量（ERC-721 では数量は無視）
    - currency: 支払いに使う通貨コントラクト
    - price: 支払う通貨量
    - start_time/end_time: 有効期間（チェーン時刻・両端を含む）
    - nonce: 署名者ごとのノンス（連番である必要はない）
    - signature: 65 バイトの r||s||v（未署名なら空）
    """

    signer: str
    is_ask: bool
    collection: str
    token_id: int
    amount: int
    currency: str
    price: int
    start_time: int
    end_time: int
    nonce: int
    signature: bytes = field(default=b"", repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "signer", normalize_address(self.signer))
        object.__setattr__(self, "collection", normalize_address(self.collection))
        object.__setattr__(self, "currency", normalize_address(self.currency))
        object.__setattr__(self, "signature", to_bytes(self.signature))
        if not isinstance(self.is_ask, bool):
            raise ValueError(f"is_ask must be a bool: {self.is_ask!r}")
        for name in ("token_id", "amount", "price", "start_time", "end_time", "nonce"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"{name} must be a non-negative int: {value!r}")
            if value >= UINT256_BOUND:
                raise ValueError(f"{name} does not fit in uint256: {value!r}")

    def message(self) -> Dict[str, Any]:
        """EIP-712 の message（署名以外の全フィールド）を返す。"""

        return {
            "signer": self.signer,
            "isAsk": self.is_ask,
            "collection": self.collection,
            "tokenId": self.token_id,
            "amount": self.amount,
            "currency": self.currency,
            "price": self.price,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "nonce": self.nonce,
        }

    def with_signature(self, signature: BytesLike) -> "Order":
        """署名を差し替えたコピーを返す。"""

        return replace(self, signature=to_bytes(signature))

    def to_dict(self) -> Dict[str, Any]:
        """JSON 送信用の camelCase 辞書を返す。"""

        body = self.message()
        body["signature"] = to_hex(self.signature) if self.signature else "0x"
        return body

    @classmethod
    def from_dict(cls, body: Dict[str, Any]) -> "Order":
        """camelCase 辞書から Order を構築する。数値は 10 進文字列も受け付ける。"""

        is_ask = body["isAsk"]
        if isinstance(is_ask, str):
            is_ask = is_ask.lower() in ("true", "1", "yes")
        return cls(
            signer=body["signer"],
            is_ask=bool(is_ask),
            collection=body["collection"],
            token_id=int(body["tokenId"]),
            amount=int(body["amount"]),
            currency=body["currency"],
            price=int(body["price"]),
            start_time=int(body["startTime"]),
            end_time=int(body["endTime"]),
            nonce=int(body["nonce"]),
            signature=body.get("signature") or b"",
        )


@dataclass(frozen=True)
class FulfillmentRecord:
    """約定レコード。"""

    seller: str
    buyer: str
    collection: str
    token_id: int
    amount: int
    currency: str
    price: int

    name = "OrderFulfilled"


@dataclass(frozen=True)
class CancelAllRecord:
    """一括キャンセルのレコード。"""

    signer: str
    new_min_nonce: int

    name = "CancelAllOrders"


@dataclass(frozen=True)
class CancelMultipleRecord:
    """個別キャンセルのレコード（入力順・重複を保持）。"""

    signer: str
    nonces: Tuple[int, ...]

    name = "CancelMultipleOrders"


def roles(order: Order, caller: str) -> Tuple[str, str]:
    """(seller, buyer) を返す。ask なら署名者が売り手、bid なら呼び出し元が売り手。"""

    caller = normalize_address(caller)
    if order.is_ask:
        return order.signer, caller
    return caller, order.signer


def parse_nonce(value: Any) -> int:
    """ノンス 1 つを int に変換する。

    受け付けるのは int（bool 以外）と 10 進の数字列のみ。float は切り捨てずに拒否する。
    """

    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        n = int(value.strip())
    elif isinstance(value, int) and not isinstance(value, bool):
        n = value
    else:
        raise ValueError(f"nonce must be an int or a decimal string: {value!r}")
    if n < 0:
        raise ValueError(f"nonce must be non-negative: {value!r}")
    if n >= UINT256_BOUND:
        raise ValueError(f"nonce does not fit in uint256: {value!r}")
    return n


def parse_nonces(values: List[Any]) -> List[int]:
    """キャンセル対象のノンス列を int のリストに変換する。"""

    return [parse_nonce(v) for v in values]
