from __future__ import annotations

"""資産転送ディスパッチャ（ERC-721 / ERC-1155 の判別と転送）。"""

from enum import Enum
from typing import Callable, Dict, Protocol

from loguru import logger

from . import config
from .errors import InvalidTokenAmount


class AssetKind(Enum):
    ERC721 = "ERC721"
    ERC1155 = "ERC1155"


class CapabilityProbe(Protocol):
    """ERC-165 supportsInterface 相当の問い合わせ（外部協調者）。"""

    def supports_interface(self, contract: str, interface_id: str) -> bool: ...


class AssetGateway(Protocol):
    """資産コントラクトの転送呼び出し（外部協調者）。"""

    def safe_transfer_erc721(self, collection: str, sender: str, recipient: str, token_id: int) -> None: ...

    def safe_transfer_erc1155(
        self, collection: str, sender: str, recipient: str, token_id: int, amount: int
    ) -> None: ...


# 判定順は固定（ERC-721 → ERC-1155）。両方を名乗るコントラクトは ERC-721 として扱う。
PROBE_ORDER = (
    (AssetKind.ERC721, config.INTERFACE_ID_ERC721),
    (AssetKind.ERC1155, config.INTERFACE_ID_ERC1155),
)


def resolve_asset_kind(probe: CapabilityProbe, collection: str) -> AssetKind:
    """コレクションの転送規約を判定する。どちらでもなければ InvalidTokenAmount。"""

    for kind, interface_id in PROBE_ORDER:
        if probe.supports_interface(collection, interface_id):
            logger.debug("asset kind {} → {}", collection, kind.value)
            return kind
    raise InvalidTokenAmount(f"collection {collection} supports neither ERC-721 nor ERC-1155")


class AssetTransferDispatcher:
    """判定結果の AssetKind に応じて転送呼び出しを振り分ける。"""

    def __init__(self, probe: CapabilityProbe, assets: AssetGateway) -> None:
        self.probe = probe
        self.assets = assets
        self._handlers: Dict[AssetKind, Callable[[str, str, str, int, int], None]] = {
            AssetKind.ERC721: self._transfer_erc721,
            AssetKind.ERC1155: self._transfer_erc1155,
        }

    def _transfer_erc721(self, collection: str, sender: str, recipient: str, token_id: int, amount: int) -> None:
        # ERC-721 は 1 トークン単位。amount は使わない
        self.assets.safe_transfer_erc721(collection, sender, recipient, token_id)

    def _transfer_erc1155(self, collection: str, sender: str, recipient: str, token_id: int, amount: int) -> None:
        self.assets.safe_transfer_erc1155(collection, sender, recipient, token_id, amount)

    def transfer(self, collection: str, sender: str, recipient: str, token_id: int, amount: int) -> AssetKind:
        """資産を sender から recipient へ転送し、使用した AssetKind を返す。"""

        kind = resolve_asset_kind(self.probe, collection)
        self._handlers[kind](collection, sender, recipient, token_id, amount)
        return kind
