from __future__ import annotations

"""取引所ファサード（約定・キャンセル・照会・特権操作）。

- 約定/キャンセルの各呼び出しは 1 つのトランザクションとして実行し、失敗時は状態を一切残さない
- ノンスの消費は外部呼び出し（通貨・資産転送）より前に書き込む（再入時の二重約定を防止）
- レコードは最外側のトランザクションがコミットした後にのみ発行する（再入した内側の約定も外側の失敗で破棄）
"""

from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

from loguru import logger

from .dispatcher import AssetGateway, AssetTransferDispatcher, CapabilityProbe
from .domain import DomainContext
from .environment import ChainEnvironment
from .errors import InvalidNonce, SettlementError, Unauthorized
from .events import EventBus
from .nonce_manager import NonceRegistry
from .orders import CancelAllRecord, CancelMultipleRecord, FulfillmentRecord, Order, parse_nonce, parse_nonces
from .settlement import CurrencyGateway, SettlementExecutor
from .transaction import Participant, Transaction
from .utils import normalize_address
from .validator import OrderValidator


class Exchange:
    """注文決済エンジン本体。

    引数:
        chain: chainId と現在時刻の取得元
        engine_address: verifyingContract として使うエンジン自身のアドレス
        admin_address: current nonce を増やせる唯一の管理者
        currency/probe/assets: トークン側の外部協調者
        registry: ノンス状態（省略時は空のストア）
        participants: ロールバック対象に加える外部状態（インメモリのトークン等）
    """

    def __init__(
        self,
        chain: ChainEnvironment,
        engine_address: str,
        admin_address: str,
        *,
        currency: CurrencyGateway,
        probe: CapabilityProbe,
        assets: AssetGateway,
        registry: Optional[NonceRegistry] = None,
        domain: Optional[DomainContext] = None,
        events: Optional[EventBus] = None,
        participants: Sequence[Participant] = (),
    ) -> None:
        self.chain = chain
        self.address = normalize_address(engine_address)
        self.admin = normalize_address(admin_address)
        self.registry = registry or NonceRegistry()
        self.domain = domain or DomainContext(chain, self.address)
        self.events = events or EventBus()
        self.validator = OrderValidator(self.registry, self.domain, chain)
        self.executor = SettlementExecutor(currency, AssetTransferDispatcher(probe, assets))
        self._participants: List[Participant] = [self.registry, *participants]
        self._pending: List[Any] = []
        self._depth = 0

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """状態のロールバック点を作り、レコードの発行をコミットまで保留する。

        入れ子（受け取りフックからの再入）では最外側のコミット時にまとめて発行し、
        失敗したレベルで積まれたレコードはそのまま捨てる。
        """

        mark = len(self._pending)
        self._depth += 1
        try:
            with Transaction(self._participants):
                yield
        except BaseException:
            del self._pending[mark:]
            raise
        finally:
            self._depth -= 1
        if self._depth == 0:
            pending, self._pending = self._pending, []
            for record in pending:
                self.events.emit(record)

    # 約定 -------------------------------------------------------------------

    def fulfill_order(self, order: Order, caller: str) -> FulfillmentRecord:
        """署名済み注文を caller を相手方として約定する。"""

        try:
            with self._transaction():
                self.validator.validate(order)
                self.registry.consume(order.signer, order.nonce)
                record = self.executor.execute(order, caller)
                self._pending.append(record)
        except SettlementError as e:
            logger.warning("約定失敗: signer={} nonce={} caller={} → {}: {}", order.signer, order.nonce, caller, type(e).__name__, e)
            raise
        return record

    def check_order(self, order: Order) -> Optional[SettlementError]:
        """状態を変えずに注文の可否を返す（None なら約定可能）。"""

        return self.validator.check(order)

    # キャンセル ---------------------------------------------------------------

    def cancel_multiple_orders(self, caller: str, nonces: Sequence[int]) -> CancelMultipleRecord:
        """caller 自身の注文をノンス指定でキャンセルする。"""

        try:
            values = parse_nonces(list(nonces))
        except ValueError as e:
            raise InvalidNonce(str(e)) from e
        signer = normalize_address(caller)
        record = CancelMultipleRecord(signer=signer, nonces=tuple(values))
        with self._transaction():
            self.registry.cancel_individual(signer, values)
            self._pending.append(record)
        return record

    def cancel_all_orders_for_sender(self, caller: str, new_min_nonce: int) -> CancelAllRecord:
        """caller の new_min_nonce 未満の注文をすべて無効化する。"""

        try:
            value = parse_nonce(new_min_nonce)
        except ValueError as e:
            raise InvalidNonce(str(e)) from e
        signer = normalize_address(caller)
        record = CancelAllRecord(signer=signer, new_min_nonce=value)
        with self._transaction():
            self.registry.cancel_bulk(signer, value)
            self._pending.append(record)
        return record

    # 照会 -------------------------------------------------------------------

    def user_current_nonce(self, address: str) -> int:
        return self.registry.current_nonce(address)

    def user_min_order_nonce(self, address: str) -> int:
        return self.registry.min_order_nonce(address)

    def is_user_order_nonce_executed_or_cancelled(self, address: str, nonce: int) -> bool:
        return self.registry.is_executed_or_cancelled(address, nonce)

    # 特権操作 -----------------------------------------------------------------

    def increment_current_nonce(self, operator: str, address: str) -> int:
        """管理者のみ。address の current nonce を 1 増やす。"""

        if normalize_address(operator) != self.admin:
            raise Unauthorized(f"{operator} is not the admin")
        with self._transaction():
            value = self.registry.bump_current_nonce(address)
        logger.info("current nonce 更新: {} → {}", address, value)
        return value
