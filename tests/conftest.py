from pathlib import Path
import sys

import pytest

# Ensure project root is importable when running tests directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from eth_account import Account  # noqa: E402

from market_engine.environment import LocalChain  # noqa: E402
from market_engine.exchange import Exchange  # noqa: E402
from market_engine.ledger import InMemoryERC20, InMemoryERC721, InMemoryERC1155, TokenRegistry  # noqa: E402
from market_engine.orders import Order  # noqa: E402


ENGINE = "0x00000000000000000000000000000000000e0e0e"
ADMIN = "0x000000000000000000000000000000000000ad11"
WETH = "0x00000000000000000000000000000000000000c1"
NFT = "0x00000000000000000000000000000000000000a1"
SEMI = "0x00000000000000000000000000000000000000b1"
NOW = 1_700_000_000

MAKER_KEY = "0x" + "11" * 32
TAKER_KEY = "0x" + "22" * 32


@pytest.fixture
def maker():
    return Account.from_key(MAKER_KEY)


@pytest.fixture
def taker():
    return Account.from_key(TAKER_KEY)


@pytest.fixture
def chain() -> LocalChain:
    return LocalChain(id=1, now=NOW)


@pytest.fixture
def tokens() -> TokenRegistry:
    reg = TokenRegistry(ENGINE)
    reg.deploy(InMemoryERC20(WETH, "WETH"))
    reg.deploy(InMemoryERC721(NFT))
    reg.deploy(InMemoryERC1155(SEMI))
    return reg


@pytest.fixture
def exchange(chain: LocalChain, tokens: TokenRegistry) -> Exchange:
    return Exchange(
        chain,
        ENGINE,
        ADMIN,
        currency=tokens,
        probe=tokens,
        assets=tokens,
        participants=[tokens],
    )


@pytest.fixture
def make_order(maker):
    def _make(**overrides) -> Order:
        fields = dict(
            signer=maker.address,
            is_ask=True,
            collection=NFT,
            token_id=1,
            amount=1,
            currency=WETH,
            price=100,
            start_time=NOW - 60,
            end_time=NOW + 3600,
            nonce=7,
        )
        fields.update(overrides)
        return Order(**fields)

    return _make
