from dataclasses import replace

import pytest
from eth_account.messages import encode_typed_data
from eth_utils import keccak

from market_engine.digest import ORDER_TYPE, ORDER_TYPEHASH, order_digest, order_struct_hash, order_typed_data
from market_engine.domain import DomainContext, domain_separator
from market_engine.environment import LocalChain

from conftest import ENGINE


def test_order_type_string_encodes_field_layout():
    assert ORDER_TYPE == (
        "Order(address signer,bool isAsk,address collection,uint256 tokenId,uint256 amount,"
        "address currency,uint256 price,uint256 startTime,uint256 endTime,uint256 nonce)"
    )
    assert ORDER_TYPEHASH == keccak(text=ORDER_TYPE)


def test_manual_hashes_match_eth_account_encoding(chain, make_order):
    domain = DomainContext(chain, ENGINE)
    order = make_order()
    signable = encode_typed_data(full_message=order_typed_data(order, domain.typed_domain()))

    assert bytes(signable.header) == domain.separator()
    assert bytes(signable.body) == order_struct_hash(order)
    expected = keccak(b"\x19" + signable.version + signable.header + signable.body)
    assert order_digest(order, domain.separator()) == expected


def test_separator_is_recomputed_when_chain_id_changes():
    chain = LocalChain(id=1, now=0)
    domain = DomainContext(chain, ENGINE)
    before = domain.separator()
    chain.id = 10
    after = domain.separator()
    assert before != after
    assert after == domain_separator("MarketEngine", "1", 10, ENGINE)


def test_separator_binds_contract_name_and_version():
    base = domain_separator("MarketEngine", "1", 1, ENGINE)
    assert base != domain_separator("MarketEngine", "2", 1, ENGINE)
    assert base != domain_separator("OtherMarket", "1", 1, ENGINE)
    assert base != domain_separator("MarketEngine", "1", 1, "0x" + "00" * 19 + "01")


@pytest.mark.parametrize(
    "field,value",
    [
        ("signer", "0x" + "ab" * 20),
        ("is_ask", False),
        ("collection", "0x" + "cd" * 20),
        ("token_id", 2),
        ("amount", 2),
        ("currency", "0x" + "ef" * 20),
        ("price", 101),
        ("start_time", 1),
        ("end_time", 2),
        ("nonce", 8),
    ],
)
def test_digest_changes_with_every_field(chain, make_order, field, value):
    sep = DomainContext(chain, ENGINE).separator()
    order = make_order()
    changed = replace(order, **{field: value})
    assert order_digest(order, sep) != order_digest(changed, sep)


def test_digest_ignores_signature_and_is_deterministic(chain, make_order):
    sep = DomainContext(chain, ENGINE).separator()
    order = make_order()
    assert order_digest(order, sep) == order_digest(order.with_signature(b"\x01" * 65), sep)


def test_digest_rejects_bad_separator(make_order):
    with pytest.raises(ValueError):
        order_digest(make_order(), b"\x00" * 31)
