import pytest

from market_engine.digest import order_digest
from market_engine.domain import DomainContext
from market_engine.errors import InvalidSignature
from market_engine.signing import SECP256K1_N, Signature, recover_signer, sign_order, verify_signature

from conftest import ENGINE, MAKER_KEY, TAKER_KEY


def _signed(chain, make_order):
    domain = DomainContext(chain, ENGINE)
    order = sign_order(make_order(), MAKER_KEY, domain)
    return order, order_digest(order, domain.separator())


def test_sign_and_verify(chain, make_order, maker):
    order, digest = _signed(chain, make_order)
    assert len(order.signature) == 65
    verify_signature(digest, maker.address, order.signature)
    assert recover_signer(digest, Signature.from_bytes(order.signature)) == maker.address


def test_wrong_signer_is_rejected(chain, make_order, taker):
    order, digest = _signed(chain, make_order)
    with pytest.raises(InvalidSignature):
        verify_signature(digest, taker.address, order.signature)


def test_tampered_digest_is_rejected(chain, make_order, maker):
    order, digest = _signed(chain, make_order)
    bad = bytes([digest[0] ^ 0xFF]) + digest[1:]
    with pytest.raises(InvalidSignature):
        verify_signature(bad, maker.address, order.signature)


@pytest.mark.parametrize("blob", [b"", b"\x00" * 64, b"\x00" * 66, "0xzz"])
def test_malformed_blobs_are_rejected(chain, make_order, maker, blob):
    _, digest = _signed(chain, make_order)
    with pytest.raises(InvalidSignature):
        verify_signature(digest, maker.address, blob)


def test_bad_v_is_rejected(chain, make_order, maker):
    order, digest = _signed(chain, make_order)
    sig = Signature.from_bytes(order.signature)
    sig.v = 29
    with pytest.raises(InvalidSignature):
        verify_signature(digest, maker.address, sig.to_bytes())


def test_high_s_twin_is_rejected(chain, make_order, maker):
    # (r, N - s, v ^ 1) は同じ署名者に復元できるが、非正規形なので受け付けない
    order, digest = _signed(chain, make_order)
    sig = Signature.from_bytes(order.signature)
    twin = Signature(r=sig.r, s=SECP256K1_N - sig.s, v=55 - sig.v)
    with pytest.raises(InvalidSignature):
        verify_signature(digest, maker.address, twin.to_bytes())


def test_zero_signature_is_rejected(chain, make_order, maker):
    _, digest = _signed(chain, make_order)
    with pytest.raises(InvalidSignature):
        verify_signature(digest, maker.address, b"\x00" * 64 + b"\x1b")


def test_sign_order_requires_matching_key(chain, make_order):
    with pytest.raises(ValueError):
        sign_order(make_order(), TAKER_KEY, DomainContext(chain, ENGINE))


def test_signature_hex_accepted(chain, make_order, maker):
    order, digest = _signed(chain, make_order)
    verify_signature(digest, maker.address, Signature.from_bytes(order.signature).to_hex())
