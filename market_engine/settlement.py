from __future__ import annotations

"""決済実行（通貨 → 資産の 2 段転送）。"""

from typing import Protocol

from loguru import logger

from .dispatcher import AssetTransferDispatcher
from .orders import FulfillmentRecord, Order, roles


class CurrencyGateway(Protocol):
    """通貨コントラクトの transferFrom 呼び出し（外部協調者）。"""

    def transfer_from(self, currency: str, sender: str, recipient: str, amount: int) -> None: ...


class SettlementExecutor:
    """検証済み・ノンス消費済みの注文を決済する。

    実行順は固定: (1) 買い手 → 売り手へ price 分の通貨、(2) 売り手 → 買い手へ資産。
    (1) が失敗すれば (2) は実行されない。(2) の失敗時のロールバックは呼び出し側の
    トランザクション境界が担う（補償処理は持たない）。
    """

    def __init__(self, currency: CurrencyGateway, dispatcher: AssetTransferDispatcher) -> None:
        self.currency = currency
        self.dispatcher = dispatcher

    def execute(self, order: Order, caller: str) -> FulfillmentRecord:
        seller, buyer = roles(order, caller)

        self.currency.transfer_from(order.currency, buyer, seller, order.price)
        logger.debug("通貨転送 {} {} {} → {}", order.price, order.currency, buyer, seller)

        kind = self.dispatcher.transfer(order.collection, seller, buyer, order.token_id, order.amount)
        logger.debug("資産転送 {} #{} x{} ({}) {} → {}", order.collection, order.token_id, order.amount, kind.value, seller, buyer)

        return FulfillmentRecord(
            seller=seller,
            buyer=buyer,
            collection=order.collection,
            token_id=order.token_id,
            amount=order.amount,
            currency=order.currency,
            price=order.price,
        )
