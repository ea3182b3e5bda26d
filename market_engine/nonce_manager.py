from __future__ import annotations

"""ノンス管理（署名者ごとの current / 最小ノンス / 使用済み・キャンセル済み集合）。"""

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Set

from loguru import logger

from .config import MAX_CANCEL_RANGE
from .errors import InvalidNonce
from .utils import load_json, normalize_address, save_json


@dataclass
class NonceState:
    """アドレス 1 件分のノンス状態。

    - current_nonce: 管理者が増やす外部向けカウンタ（注文検証では参照しない）
    - min_order_nonce: これ未満のノンスは恒久的に無効（一括キャンセルの水位）
    - executed_or_cancelled: 約定済み・個別キャンセル済みのノンス（削除しない）
    """

    current_nonce: int = 0
    min_order_nonce: int = 0
    executed_or_cancelled: Set[int] = field(default_factory=set)


class NonceRegistry:
    """署名者ごとのノンス状態を保持するストア。

    - 状態は初回参照時に既定値（0/空集合）で暗黙に作られ、削除されない
    - min_order_nonce は単調非減少
    - executed_or_cancelled に入ったノンスは二度と有効にならない
    """

    def __init__(self) -> None:
        self._states: Dict[str, NonceState] = {}

    def _state(self, address: str) -> NonceState:
        key = normalize_address(address)
        st = self._states.get(key)
        if st is None:
            st = NonceState()
            self._states[key] = st
        return st

    def _peek(self, address: str) -> NonceState:
        """参照専用。未作成のアドレスは既定値を返し、ストアには追加しない。"""

        return self._states.get(normalize_address(address)) or NonceState()

    # 参照 -------------------------------------------------------------------

    def current_nonce(self, address: str) -> int:
        return self._peek(address).current_nonce

    def min_order_nonce(self, address: str) -> int:
        return self._peek(address).min_order_nonce

    def is_executed_or_cancelled(self, address: str, nonce: int) -> bool:
        return nonce in self._peek(address).executed_or_cancelled

    def is_valid(self, signer: str, nonce: int) -> bool:
        """nonce >= min_order_nonce かつ未使用・未キャンセルなら True。"""

        st = self._peek(signer)
        return nonce >= st.min_order_nonce and nonce not in st.executed_or_cancelled

    # 更新 -------------------------------------------------------------------

    def consume(self, signer: str, nonce: int) -> None:
        """ノンスを使用済みにする。is_valid の確認は呼び出し元の責務。"""

        self._state(signer).executed_or_cancelled.add(nonce)

    def cancel_individual(self, signer: str, nonces: Iterable[int]) -> None:
        """指定ノンスを個別キャンセルする。

        - 空の入力は InvalidNonce
        - 1 つでも min_order_nonce 未満があれば InvalidNonce（何も書き込まない）
        - 重複は冪等に扱う
        """

        values = list(nonces)
        if not values:
            raise InvalidNonce("cancel request must contain at least one nonce")
        st = self._state(signer)
        for n in values:
            if n < st.min_order_nonce:
                raise InvalidNonce(f"nonce {n} is below min nonce {st.min_order_nonce}")
        st.executed_or_cancelled.update(values)

    def cancel_bulk(self, signer: str, new_min_nonce: int) -> None:
        """min_order_nonce を new_min_nonce へ引き上げる。

        条件: min < new_min_nonce < min + MAX_CANCEL_RANGE
        """

        st = self._state(signer)
        if new_min_nonce <= st.min_order_nonce:
            raise InvalidNonce(f"new min nonce {new_min_nonce} must be greater than {st.min_order_nonce}")
        if new_min_nonce >= st.min_order_nonce + MAX_CANCEL_RANGE:
            raise InvalidNonce(f"cannot cancel more than {MAX_CANCEL_RANGE} nonces at once")
        st.min_order_nonce = new_min_nonce

    def bump_current_nonce(self, address: str) -> int:
        """current_nonce を 1 増やして新しい値を返す。権限確認は呼び出し元の責務。"""

        st = self._state(address)
        st.current_nonce += 1
        return st.current_nonce

    # トランザクション境界 -----------------------------------------------------

    def snapshot(self) -> Dict[str, NonceState]:
        return copy.deepcopy(self._states)

    def restore(self, state: Dict[str, NonceState]) -> None:
        self._states = state

    # 永続化 -------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Dict[str, object]]:
        return {
            addr: {
                "currentNonce": st.current_nonce,
                "minOrderNonce": st.min_order_nonce,
                "executedOrCancelled": sorted(st.executed_or_cancelled),
            }
            for addr, st in self._states.items()
        }

    def save(self, path: Path) -> None:
        """ノンス状態を JSON で保存する。"""

        save_json(path, self.to_dict())
        logger.debug("ノンス状態を保存: {} ({} アドレス)", path, len(self._states))

    @classmethod
    def load(cls, path: Path) -> "NonceRegistry":
        """save() で保存した JSON から復元する。"""

        reg = cls()
        for addr, raw in load_json(path).items():
            reg._states[normalize_address(addr)] = NonceState(
                current_nonce=int(raw.get("currentNonce", 0)),
                min_order_nonce=int(raw.get("minOrderNonce", 0)),
                executed_or_cancelled={int(n) for n in raw.get("executedOrCancelled", [])},
            )
        return reg
