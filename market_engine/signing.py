from __future__ import annotations

"""署名インタフェース（EIP-712 注文署名と署名検証）。

- 署名: eth_account の typed data 署名（Account.from_key → sign_message）
- 検証: 65 バイト r||s||v を分解し、正規形チェックの後に公開鍵を復元して署名者と比較
  （楕円曲線の復元処理そのものは eth_keys に委譲）
"""

from dataclasses import dataclass

from eth_account import Account  # type: ignore
from eth_account.messages import encode_typed_data  # type: ignore
from eth_keys import keys  # type: ignore
from eth_utils import to_hex  # type: ignore
from loguru import logger

from .digest import order_typed_data
from .domain import DomainContext
from .errors import InvalidSignature
from .orders import Order
from .utils import BytesLike, normalize_address, to_bytes


SIGNATURE_LENGTH = 65

# secp256k1 の位数。s は下半分（N/2 以下）のみ正規形として受け付ける
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2


@dataclass
class Signature:
    """署名結果。

    - r/s: 整数
    - v: int（27/28）
    """

    r: int
    s: int
    v: int

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    def to_hex(self) -> str:
        return to_hex(self.to_bytes())

    @classmethod
    def from_bytes(cls, blob: BytesLike) -> "Signature":
        """65 バイトの r||s||v を分解する。長さ不正なら InvalidSignature。"""

        try:
            raw = to_bytes(blob)
        except (TypeError, ValueError) as e:
            raise InvalidSignature(f"malformed signature: {e}") from e
        if len(raw) != SIGNATURE_LENGTH:
            raise InvalidSignature(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
        return cls(
            r=int.from_bytes(raw[:32], "big"),
            s=int.from_bytes(raw[32:64], "big"),
            v=raw[64],
        )


def sign_order(order: Order, private_key: str, domain: DomainContext) -> Order:
    """注文に EIP-712 署名を付けたコピーを返す。

    引数:
        order: 署名対象（signer は鍵のアドレスと一致している必要がある）
        private_key: 署名者の秘密鍵（0x プレフィックスでも可）
        domain: 署名を束縛するドメイン（chainId はこの時点の値）
    戻り値:
        signature 付きの Order
    """

    acct = Account.from_key(private_key)
    if normalize_address(acct.address) != order.signer:
        raise ValueError(f"private key does not belong to signer {order.signer}")
    structured = encode_typed_data(full_message=order_typed_data(order, domain.typed_domain()))
    signed = acct.sign_message(structured)
    return order.with_signature(bytes(signed.signature))


def recover_signer(digest: bytes, signature: Signature) -> str:
    """ダイジェストと署名から署名者アドレスを復元する（曲線演算は eth_keys）。"""

    try:
        sig = keys.Signature(vrs=(signature.v - 27, signature.r, signature.s))
        public_key = sig.recover_public_key_from_msg_hash(digest)
    except Exception as e:
        raise InvalidSignature(f"signature recovery failed: {e}") from e
    return public_key.to_checksum_address()


def verify_signature(digest: bytes, signer: str, signature: BytesLike) -> None:
    """digest が signer によって署名されたことを確認する。不一致・不正形式なら InvalidSignature。"""

    if len(digest) != 32:
        raise InvalidSignature("digest must be 32 bytes")
    sig = Signature.from_bytes(signature)
    if sig.v not in (27, 28):
        raise InvalidSignature(f"invalid v value: {sig.v}")
    if sig.r == 0 or sig.s == 0 or sig.r >= SECP256K1_N:
        raise InvalidSignature("invalid r/s value")
    if sig.s > SECP256K1_HALF_N:
        raise InvalidSignature("non-canonical s value")

    recovered = recover_signer(digest, sig)
    if recovered != normalize_address(signer):
        logger.debug("署名者不一致: recovered={} claimed={}", recovered, signer)
        raise InvalidSignature("signer mismatch")
