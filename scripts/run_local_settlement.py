"""インメモリのトークンでエンドツーエンドの約定を実行するデモ。

使い方:
  python scripts/run_local_settlement.py
  python scripts/run_local_settlement.py --bid --price 250 --state nonces.json
"""

import argparse
from pathlib import Path

from eth_account import Account  # type: ignore
from loguru import logger

from market_engine.environment import LocalChain
from market_engine.errors import SettlementError
from market_engine.exchange import Exchange
from market_engine.ledger import InMemoryERC20, InMemoryERC721, TokenRegistry
from market_engine.nonce_manager import NonceRegistry
from market_engine.orders import Order
from market_engine.signing import sign_order


ENGINE = "0x00000000000000000000000000000000000e0e0e"
ADMIN = "0x000000000000000000000000000000000000ad11"
WETH = "0x00000000000000000000000000000000000000c1"
NFT = "0x00000000000000000000000000000000000000a1"


def main() -> None:
    p = argparse.ArgumentParser(description="ローカル約定デモ")
    p.add_argument("--bid", action="store_true", help="買い手が署名する bid 注文にする（既定は ask）")
    p.add_argument("--price", type=int, default=100)
    p.add_argument("--nonce", type=int, default=7)
    p.add_argument("--state", type=Path, default=None, help="ノンス状態の保存先 JSON（既存なら読み込む）")
    args = p.parse_args()

    maker = Account.create()
    taker = Account.create()

    chain = LocalChain(follow_wall_clock=True)
    tokens = TokenRegistry(ENGINE)
    weth = tokens.deploy(InMemoryERC20(WETH, "WETH"))
    nft = tokens.deploy(InMemoryERC721(NFT))

    seller, buyer = (taker, maker) if args.bid else (maker, taker)
    nft.mint(seller.address, 1)
    nft.set_approval_for_all(seller.address, ENGINE)
    weth.mint(buyer.address, args.price)
    weth.approve(buyer.address, ENGINE, args.price)

    registry = NonceRegistry.load(args.state) if args.state and args.state.exists() else NonceRegistry()
    ex = Exchange(
        chain,
        ENGINE,
        ADMIN,
        currency=tokens,
        probe=tokens,
        assets=tokens,
        registry=registry,
        participants=[tokens],
    )

    now = chain.timestamp()
    order = Order(
        signer=maker.address,
        is_ask=not args.bid,
        collection=NFT,
        token_id=1,
        amount=1,
        currency=WETH,
        price=args.price,
        start_time=now - 60,
        end_time=now + 3600,
        nonce=args.nonce,
    )
    signed = sign_order(order, maker.key.hex(), ex.domain)

    record = ex.fulfill_order(signed, taker.address)
    logger.info("約定: {}", record)
    logger.info("NFT #1 owner={} / seller WETH={}", nft.owner_of(1), weth.balance_of(seller.address))

    try:
        ex.fulfill_order(signed, taker.address)
    except SettlementError as e:
        logger.info("同一注文の再送は拒否: {}", type(e).__name__)

    if args.state:
        registry.save(args.state)


if __name__ == "__main__":
    main()
