"""注文 JSON に EIP-712 署名を付けて出力する。

注意:
- 秘密鍵は環境変数 MKT_PRIVATE_KEY（.env 可）から読みます。コマンドラインには渡さないでください。
- chainId / verifyingContract は MKT_NETWORK / MKT_CHAIN_ID / MKT_ENGINE_ADDRESS で決まります。

使い方:
  python scripts/sign_order.py order.json
  python scripts/sign_order.py order.json --out signed.json --check
"""

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from market_engine import config
from market_engine.digest import order_digest
from market_engine.domain import DomainContext
from market_engine.environment import LocalChain
from market_engine.errors import InvalidSignature
from market_engine.orders import Order
from market_engine.signing import sign_order, verify_signature
from market_engine.utils import load_json, save_json


def main() -> None:
    p = argparse.ArgumentParser(description="注文 JSON に EIP-712 署名を付ける")
    p.add_argument("order", type=Path, help="未署名の注文 JSON（camelCase）")
    p.add_argument("--out", type=Path, default=None, help="出力先（省略時は標準出力）")
    p.add_argument("--check", action="store_true", help="署名後にダイジェストを再計算して検証する")
    args = p.parse_args()

    env_file = os.getenv("ENV_FILE")
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    priv = os.getenv("MKT_PRIVATE_KEY")
    if not priv:
        logger.error("MKT_PRIVATE_KEY が未設定です。")
        sys.exit(2)

    settings = config.get_settings()
    domain = DomainContext(
        LocalChain(id=settings.chain_id),
        settings.engine_address,
        name=settings.protocol_name,
        version=settings.protocol_version,
    )

    order = Order.from_dict(load_json(args.order))
    signed = sign_order(order, priv, domain)
    logger.info("署名完了: signer={} nonce={} chainId={}", signed.signer, signed.nonce, settings.chain_id)

    if args.check:
        try:
            verify_signature(order_digest(signed, domain.separator()), signed.signer, signed.signature)
        except InvalidSignature as e:
            logger.error("署名の自己検証に失敗しました: {}", e)
            sys.exit(3)
        logger.info("署名の自己検証 OK")

    if args.out:
        save_json(args.out, signed.to_dict())
        logger.info("出力: {}", args.out)
    else:
        print(json.dumps(signed.to_dict(), indent=2))


if __name__ == "__main__":
    main()
