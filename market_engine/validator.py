from __future__ import annotations

"""注文検証（署名 → 有効期間 → ノンス）。状態は変更しない。"""

from typing import Optional

from loguru import logger

from .digest import order_digest
from .domain import DomainContext
from .environment import ChainEnvironment
from .errors import InvalidNonce, OrderExpired, OrderNotActive, SettlementError
from .nonce_manager import NonceRegistry
from .orders import Order
from .signing import verify_signature


class OrderValidator:
    """注文 1 件の可否を判定する。

    - registry: ノンス状態（参照のみ）
    - domain: ドメインセパレータ（検証ごとに再計算）
    - chain: 現在時刻の取得元
    """

    def __init__(self, registry: NonceRegistry, domain: DomainContext, chain: ChainEnvironment) -> None:
        self.registry = registry
        self.domain = domain
        self.chain = chain

    def validate(self, order: Order) -> None:
        """全チェックを通過すれば何も返さない。失敗時は最初の理由を例外で送出する。"""

        digest = order_digest(order, self.domain.separator())
        verify_signature(digest, order.signer, order.signature)

        now = self.chain.timestamp()
        if order.start_time > now:
            raise OrderNotActive(f"order starts at {order.start_time}, now {now}")
        if order.end_time < now:
            raise OrderExpired(f"order ended at {order.end_time}, now {now}")

        if not self.registry.is_valid(order.signer, order.nonce):
            raise InvalidNonce(f"nonce {order.nonce} is not valid for {order.signer}")

    def check(self, order: Order) -> Optional[SettlementError]:
        """ドライラン用。失敗理由（なければ None）を返す。"""

        try:
            self.validate(order)
        except SettlementError as e:
            logger.debug("注文チェック NG: signer={} nonce={} → {}", order.signer, order.nonce, type(e).__name__)
            return e
        return None
