from __future__ import annotations

"""共通ユーティリティ。

- 時刻（UTC 秒）
- アドレス正規化・16 進バイト列の変換
- JSON 保存/読込
"""

import json
import time
from pathlib import Path
from typing import Any, Union

from eth_utils import decode_hex, is_address, to_checksum_address


BytesLike = Union[bytes, bytearray, str]


def utc_seconds() -> int:
    """現在の UTC 時刻（秒）を返す。チェーン時刻と同じ単位。"""

    return int(time.time())


def normalize_address(address: str) -> str:
    """アドレスをチェックサム形式に正規化する。不正なら ValueError。"""

    if not isinstance(address, str) or not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def to_bytes(value: BytesLike) -> bytes:
    """0x 付き 16 進文字列または bytes を bytes に変換する。"""

    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return decode_hex(value)
    raise TypeError(f"Expected bytes or hex string, got {type(value).__name__}")


def save_json(path: Path, payload: Any) -> None:
    """JSON を UTF-8 で保存する。親ディレクトリが無い場合は作成する。"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, separators=(",", ":"))


def load_json(path: Path) -> Any:
    """JSON ファイルを読み込み、Python オブジェクトを返す。"""

    with path.open("r", encoding="utf-8") as f:
        return json.load(f)
