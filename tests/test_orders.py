import pytest
from eth_utils import to_checksum_address

from market_engine.config import get_settings
from market_engine.orders import Order, parse_nonces, roles


SIGNER = "0x" + "aa" * 20
CALLER = "0x" + "bb" * 20


def _body(**overrides):
    body = {
        "signer": SIGNER,
        "isAsk": True,
        "collection": "0x" + "cc" * 20,
        "tokenId": "42",
        "amount": 1,
        "currency": "0x" + "dd" * 20,
        "price": "1000000000000000000",
        "startTime": 1,
        "endTime": 2,
        "nonce": 3,
        "signature": "0x" + "01" * 65,
    }
    body.update(overrides)
    return body


def test_from_dict_normalizes_fields():
    order = Order.from_dict(_body())
    assert order.signer == to_checksum_address(SIGNER)
    assert order.token_id == 42
    assert order.price == 10**18
    assert order.signature == b"\x01" * 65

    body = order.to_dict()
    assert body["tokenId"] == 42
    assert body["signature"] == "0x" + "01" * 65
    assert Order.from_dict(body) == order


def test_from_dict_accepts_string_flag_and_missing_signature():
    body = _body(isAsk="false")
    del body["signature"]
    order = Order.from_dict(body)
    assert order.is_ask is False
    assert order.signature == b""
    assert order.to_dict()["signature"] == "0x"


@pytest.mark.parametrize(
    "field,value",
    [
        ("signer", "0x1234"),
        ("price", -1),
        ("nonce", True),
        ("price", 2**256),
        ("token_id", 2**256),
        ("is_ask", 1),
        ("is_ask", "true"),
    ],
)
def test_invalid_fields_are_rejected(field, value):
    fields = Order.from_dict(_body()).__dict__.copy()
    fields[field] = value
    with pytest.raises(ValueError):
        Order(**fields)


def test_roles_follow_ask_flag():
    ask = Order.from_dict(_body())
    bid = Order.from_dict(_body(isAsk=False))
    assert roles(ask, CALLER) == (ask.signer, to_checksum_address(CALLER))
    assert roles(bid, CALLER) == (to_checksum_address(CALLER), bid.signer)


def test_parse_nonces():
    assert parse_nonces(["3", 3, 10]) == [3, 3, 10]
    for bad in ([-1], [3.9], [True], ["0x10"], ["-2"], [2**256]):
        with pytest.raises(ValueError):
            parse_nonces(bad)


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MKT_NETWORK", "sepolia")
    monkeypatch.delenv("MKT_RPC_URL", raising=False)
    monkeypatch.delenv("MKT_CHAIN_ID", raising=False)
    s = get_settings()
    assert s.chain_id == 11155111
    assert "sepolia" in s.rpc_url

    monkeypatch.setenv("MKT_CHAIN_ID", "31337")
    monkeypatch.setenv("MKT_RPC_URL", "http://127.0.0.1:8545")
    s = get_settings()
    assert s.chain_id == 31337
    assert s.rpc_url == "http://127.0.0.1:8545"
