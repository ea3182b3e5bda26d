from __future__ import annotations

"""決済エンジンの例外定義。"""


class SettlementError(Exception):
    """注文の検証・決済・キャンセルで発生するエラーの基底クラス。"""


class InvalidSignature(SettlementError):
    """署名が不正、または署名者が一致しない。"""


class OrderNotActive(SettlementError):
    """注文の有効期間がまだ始まっていない。"""


class OrderExpired(SettlementError):
    """注文の有効期間が終了している。"""


class InvalidNonce(SettlementError):
    """ノンスが使用済み・キャンセル済み・最小ノンス未満、またはキャンセル要求が不正。"""


class InvalidTokenAmount(SettlementError):
    """コレクションが既知の転送規約（ERC-721/ERC-1155）のいずれにも対応していない。"""


class Unauthorized(SettlementError):
    """管理者以外による特権操作。"""


class TransferFailed(SettlementError):
    """通貨または資産の転送がトークン側で拒否された。"""


class RpcError(Exception):
    """JSON-RPC 応答がエラーを返した。"""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
