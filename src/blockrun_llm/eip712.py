"""EIP-712 typed data signing for EIP-3009 TransferWithAuthorization.

The digest is built in the open (domain separator, struct hash, then
``keccak256(0x19 0x01 || domain || message)``) and signed with the raw
secp256k1 primitive, so every intermediate value can be inspected and the
recovery byte normalized to Ethereum's 27/28 convention.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_keys import keys
from eth_utils import keccak

from .exceptions import SigningError
from .types import TransferAuthorization

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount

EIP712_DOMAIN_FIELDS = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

TRANSFER_WITH_AUTHORIZATION_FIELDS = [
    {"name": "from", "type": "address"},
    {"name": "to", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "validAfter", "type": "uint256"},
    {"name": "validBefore", "type": "uint256"},
    {"name": "nonce", "type": "bytes32"},
]

PRIMARY_TYPE = "TransferWithAuthorization"

# Ethereum signatures carry v in {27, 28}; raw secp256k1 recovery ids are {0, 1}
V_OFFSET = 27


@dataclass(frozen=True)
class TokenDomain:
    """EIP-712 domain of the token contract that verifies the authorization."""

    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


def parse_uint256(value: str, field: str) -> int:
    """Parse a base-10 integer string, rejecting signs, floats and overflow."""
    if not value or not value.isascii() or not value.isdigit():
        raise SigningError(f"invalid {field}: {value!r} is not a base-10 integer")
    parsed = int(value, 10)
    if parsed >= 2**256:
        raise SigningError(f"invalid {field}: exceeds uint256")
    return parsed


def build_transfer_typed_data(
    domain: TokenDomain,
    authorization: TransferAuthorization,
) -> dict[str, Any]:
    """Build the full eth_signTypedData_v4 document for an authorization."""
    nonce = authorization.nonce.removeprefix("0x")
    try:
        nonce_bytes = bytes.fromhex(nonce)
    except ValueError as e:
        raise SigningError("invalid nonce: not hex encoded") from e
    if len(nonce_bytes) != 32:
        raise SigningError("invalid nonce: must be 32 bytes")

    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_FIELDS,
            PRIMARY_TYPE: TRANSFER_WITH_AUTHORIZATION_FIELDS,
        },
        "primaryType": PRIMARY_TYPE,
        "domain": domain.to_dict(),
        "message": {
            "from": authorization.from_,
            "to": authorization.to,
            "value": parse_uint256(authorization.value, "amount"),
            "validAfter": parse_uint256(authorization.valid_after, "validAfter"),
            "validBefore": parse_uint256(authorization.valid_before, "validBefore"),
            "nonce": nonce_bytes,
        },
    }


class TypedDataSigner:
    """Signs TransferWithAuthorization messages with a local account.

    The account's key is only read to produce signatures; it is never
    serialized, logged or attached to any payload.

    Example:
        ```python
        from eth_account import Account
        from blockrun_llm.eip712 import TypedDataSigner

        signer = TypedDataSigner(Account.from_key("0x..."))
        signature = signer.sign_authorization(domain, authorization)
        ```
    """

    def __init__(self, account: "LocalAccount") -> None:
        self._account = account

    @property
    def address(self) -> str:
        """The signer's checksummed Ethereum address."""
        return self._account.address

    @staticmethod
    def encode(typed_data: dict[str, Any]) -> SignableMessage:
        try:
            return encode_typed_data(full_message=typed_data)
        except Exception as e:
            raise SigningError(f"failed to encode typed data: {e}") from e

    @staticmethod
    def hash_domain(typed_data: dict[str, Any]) -> bytes:
        """Domain separator: hashStruct(EIP712Domain)."""
        return bytes(TypedDataSigner.encode(typed_data).header)

    @staticmethod
    def hash_message(typed_data: dict[str, Any]) -> bytes:
        """Struct hash of the primary message."""
        return bytes(TypedDataSigner.encode(typed_data).body)

    @staticmethod
    def digest(typed_data: dict[str, Any]) -> bytes:
        """Final digest: keccak256(0x19 || 0x01 || domainSeparator || structHash)."""
        signable = TypedDataSigner.encode(typed_data)
        return keccak(b"\x19" + bytes(signable.version) + bytes(signable.header) + bytes(signable.body))

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest, returning r || s || v with v in {27, 28}."""
        if len(digest) != 32:
            raise SigningError("digest must be 32 bytes")
        try:
            private_key = keys.PrivateKey(bytes(self._account.key))
            signature = bytearray(private_key.sign_msg_hash(digest).to_bytes())
        except Exception as e:
            raise SigningError(f"failed to sign: {e}") from e

        if signature[64] < V_OFFSET:
            signature[64] += V_OFFSET
        return bytes(signature)

    def sign_typed_data(self, typed_data: dict[str, Any]) -> str:
        """Sign a typed data document, returning a 0x-prefixed 65-byte hex signature."""
        return "0x" + self.sign_digest(self.digest(typed_data)).hex()

    def sign_authorization(
        self,
        domain: TokenDomain,
        authorization: TransferAuthorization,
    ) -> str:
        """Sign an EIP-3009 authorization issued by this signer.

        Raises:
            SigningError: If the authorization was not issued from this
                signer's address, a numeric field is not a base-10 integer,
                or the signing primitive fails.
        """
        if authorization.from_.lower() != self.address.lower():
            raise SigningError("authorization sender does not match signing key")
        typed_data = build_transfer_typed_data(domain, authorization)
        return self.sign_typed_data(typed_data)

    @staticmethod
    def recover(typed_data: dict[str, Any], signature: str) -> str:
        """Recover the address that produced ``signature`` over ``typed_data``."""
        return Account.recover_message(
            TypedDataSigner.encode(typed_data),
            signature=bytes.fromhex(signature.removeprefix("0x")),
        )
