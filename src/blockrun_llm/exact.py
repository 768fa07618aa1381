import secrets
import time
from typing import Any, Optional

from blockrun_llm.chains import (
    BASE_NETWORK,
    DEFAULT_TOKEN_NAME,
    DEFAULT_TOKEN_VERSION,
    USDC_BASE,
    get_chain_id,
    get_known_token,
)
from blockrun_llm.eip712 import TokenDomain, TypedDataSigner, parse_uint256
from blockrun_llm.encoding import (
    decode_payment_signature_header,
    encode_payment_signature_header,
)
from blockrun_llm.exceptions import CryptoError, SigningError
from blockrun_llm.types import (
    OptionExtra,
    PaymentData,
    PaymentOption,
    PaymentPayload,
    ResourceInfo,
    TransferAuthorization,
)

x402_VERSION = 2

# validAfter is back-dated by this much to absorb client/facilitator clock skew
VALIDITY_BUFFER_SECONDS = 600

DEFAULT_MIME_TYPE = "application/json"


def create_nonce() -> str:
    """Create a random 32-byte hex-encoded nonce (0x...) for one authorization.

    Raises:
        CryptoError: If the system entropy source is unavailable.
    """
    try:
        nonce = secrets.token_bytes(32)
    except (OSError, NotImplementedError) as e:
        raise CryptoError(f"failed to generate nonce: {e}") from e
    return "0x" + nonce.hex()


def create_validity_window(
    max_timeout_seconds: int,
    now: Optional[int] = None,
) -> tuple[int, int]:
    """Create valid_after/valid_before unix timestamps.

    The window spans exactly ``max_timeout_seconds + VALIDITY_BUFFER_SECONDS``.
    """
    if max_timeout_seconds < 0:
        raise SigningError("maxTimeoutSeconds must be non-negative")
    if now is None:
        now = int(time.time())
    return now - VALIDITY_BUFFER_SECONDS, now + max_timeout_seconds


def resolve_token_domain(
    option: PaymentOption,
    token_name: Optional[str] = None,
    token_version: Optional[str] = None,
) -> TokenDomain:
    """Resolve the EIP-712 domain the facilitator will verify against.

    Name and version come from the option's extra, then the caller's
    overrides, then the known token table, then the USD Coin defaults.
    """
    try:
        chain_id = get_chain_id(option.network)
    except ValueError as e:
        raise SigningError(str(e)) from e

    asset = option.asset or USDC_BASE
    known = get_known_token(chain_id, asset)
    extra = option.extra or OptionExtra()

    name = (
        extra.name
        or token_name
        or (known["name"] if known else None)
        or DEFAULT_TOKEN_NAME
    )
    version = (
        extra.version
        or token_version
        or (known["version"] if known else None)
        or DEFAULT_TOKEN_VERSION
    )
    return TokenDomain(
        name=name,
        version=version,
        chain_id=chain_id,
        verifying_contract=asset,
    )


def prepare_authorization(
    sender: str,
    option: PaymentOption,
    nonce: str,
    now: Optional[int] = None,
) -> TransferAuthorization:
    """Prepare the unsigned EIP-3009 authorization for a payment option."""
    parse_uint256(option.amount, "amount")
    valid_after, valid_before = create_validity_window(option.max_timeout_seconds, now)
    return TransferAuthorization(
        from_=sender,
        to=option.pay_to,
        value=option.amount,
        valid_after=str(valid_after),
        valid_before=str(valid_before),
        nonce=nonce,
    )


def create_payment_payload(
    signer: TypedDataSigner,
    option: PaymentOption,
    resource: ResourceInfo,
    extensions: Optional[dict[str, Any]] = None,
    token_name: Optional[str] = None,
    token_version: Optional[str] = None,
    nonce: Optional[str] = None,
    now: Optional[int] = None,
) -> PaymentPayload:
    """Sign an authorization for ``option`` and assemble the payment payload.

    Args:
        signer: Signer holding the payer's key
        option: Payment option with a resolved amount
        resource: Resource being paid for, echoed back to the server
        extensions: Extensions from the challenge, passed through untouched
        token_name: Optional EIP-712 domain name override
        token_version: Optional EIP-712 domain version override
        nonce: Authorization nonce; a fresh one is generated when omitted
        now: Unix time the validity window is based on

    Returns:
        PaymentPayload whose ``accepted`` echoes the option with the token
        name/version that were actually signed

    Raises:
        SigningError: If the amount or network is invalid or signing fails
    """
    domain = resolve_token_domain(option, token_name, token_version)
    authorization = prepare_authorization(
        signer.address,
        option,
        nonce if nonce is not None else create_nonce(),
        now,
    )
    signature = signer.sign_authorization(domain, authorization)

    accepted = PaymentOption(
        scheme=option.scheme or "exact",
        network=option.network or BASE_NETWORK,
        amount=option.amount,
        asset=domain.verifying_contract,
        pay_to=option.pay_to,
        max_timeout_seconds=option.max_timeout_seconds,
        extra=OptionExtra(name=domain.name, version=domain.version),
    )

    return PaymentPayload(
        x402_version=x402_VERSION,
        resource=ResourceInfo(
            url=resource.url,
            description=resource.description,
            mime_type=resource.mime_type or DEFAULT_MIME_TYPE,
        ),
        accepted=accepted,
        payload=PaymentData(signature=signature, authorization=authorization),
        extensions=extensions,
    )


def encode_payment(payment_payload: PaymentPayload) -> str:
    """Encode a payment payload into a base64 string for the PAYMENT-SIGNATURE header."""
    return encode_payment_signature_header(payment_payload)


def decode_payment(encoded_payment: str) -> PaymentPayload:
    """Decode a base64 encoded payment string back into a PaymentPayload object."""
    return decode_payment_signature_header(encoded_payment)
