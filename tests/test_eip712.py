import pytest
from eth_account import Account
from eth_utils import keccak

from blockrun_llm.chains import USDC_BASE
from blockrun_llm.eip712 import (
    TokenDomain,
    TypedDataSigner,
    build_transfer_typed_data,
    parse_uint256,
)
from blockrun_llm.exceptions import SigningError
from blockrun_llm.types import TransferAuthorization

NONCE = "0x" + "ab" * 32


@pytest.fixture
def signer(account):
    return TypedDataSigner(account)


@pytest.fixture
def domain():
    return TokenDomain(
        name="USD Coin",
        version="2",
        chain_id=8453,
        verifying_contract=USDC_BASE,
    )


@pytest.fixture
def authorization(address, pay_to):
    return TransferAuthorization(
        from_=address,
        to=pay_to,
        value="500000",
        valid_after="1700000000",
        valid_before="1700000900",
        nonce=NONCE,
    )


def test_parse_uint256():
    assert parse_uint256("0", "amount") == 0
    assert parse_uint256("500000", "amount") == 500000
    assert parse_uint256(str(2**256 - 1), "amount") == 2**256 - 1

    for bad in ["", "-1", "1.5", "0x10", " 1", "１"]:
        with pytest.raises(SigningError):
            parse_uint256(bad, "amount")

    with pytest.raises(SigningError):
        parse_uint256(str(2**256), "amount")


def test_build_transfer_typed_data(domain, authorization):
    typed_data = build_transfer_typed_data(domain, authorization)

    assert typed_data["primaryType"] == "TransferWithAuthorization"
    assert typed_data["domain"] == {
        "name": "USD Coin",
        "version": "2",
        "chainId": 8453,
        "verifyingContract": USDC_BASE,
    }
    message = typed_data["message"]
    assert message["value"] == 500000
    assert message["validBefore"] - message["validAfter"] == 900
    assert message["nonce"] == bytes.fromhex("ab" * 32)


def test_build_transfer_typed_data_rejects_bad_nonce(domain, authorization):
    with pytest.raises(SigningError):
        build_transfer_typed_data(domain, authorization.model_copy(update={"nonce": "0x1234"}))
    with pytest.raises(SigningError):
        build_transfer_typed_data(domain, authorization.model_copy(update={"nonce": "0xzz"}))


def test_digest_composition(domain, authorization):
    typed_data = build_transfer_typed_data(domain, authorization)

    expected = keccak(
        b"\x19\x01"
        + TypedDataSigner.hash_domain(typed_data)
        + TypedDataSigner.hash_message(typed_data)
    )

    assert TypedDataSigner.digest(typed_data) == expected
    assert len(expected) == 32


def test_domain_separator_depends_on_chain(domain, authorization):
    base = build_transfer_typed_data(domain, authorization)
    sepolia = build_transfer_typed_data(
        TokenDomain("USD Coin", "2", 84532, USDC_BASE), authorization
    )

    assert TypedDataSigner.hash_domain(base) != TypedDataSigner.hash_domain(sepolia)
    assert TypedDataSigner.hash_message(base) == TypedDataSigner.hash_message(sepolia)


def test_sign_authorization_recovers_signer(signer, domain, authorization, address):
    signature = signer.sign_authorization(domain, authorization)

    raw = bytes.fromhex(signature.removeprefix("0x"))
    assert len(raw) == 65
    assert raw[64] in (27, 28)

    typed_data = build_transfer_typed_data(domain, authorization)
    assert TypedDataSigner.recover(typed_data, signature) == address


def test_signature_matches_eth_account(account, signer, domain, authorization):
    typed_data = build_transfer_typed_data(domain, authorization)

    expected = account.sign_message(TypedDataSigner.encode(typed_data)).signature

    assert signer.sign_typed_data(typed_data) == "0x" + bytes(expected).hex()


def test_sign_authorization_rejects_foreign_sender(signer, domain, authorization):
    other = Account.create().address

    with pytest.raises(SigningError):
        signer.sign_authorization(domain, authorization.model_copy(update={"from_": other}))


def test_sign_authorization_rejects_bad_amount(signer, domain, authorization):
    bad = authorization.model_copy(update={"value": "1e6"})

    with pytest.raises(SigningError):
        signer.sign_authorization(domain, bad)


def test_sign_digest_requires_32_bytes(signer):
    with pytest.raises(SigningError):
        signer.sign_digest(b"\x00" * 31)


def test_recovery_byte_normalized_over_many_digests(signer):
    seen = set()
    for i in range(32):
        signature = signer.sign_digest(keccak(i.to_bytes(4, "big")))
        seen.add(signature[64])

    assert seen <= {27, 28}
