import base64
import binascii
from typing import Union

from pydantic import ValidationError as PydanticValidationError

from blockrun_llm.exceptions import PaymentError
from blockrun_llm.types import PaymentPayload, PaymentRequirement, SettleResponse

PAYMENT_REQUIRED_HEADER = "payment-required"
PAYMENT_SIGNATURE_HEADER = "PAYMENT-SIGNATURE"
PAYMENT_RESPONSE_HEADER = "payment-response"


def safe_base64_encode(data: Union[str, bytes]) -> str:
    """Safely encode string or bytes to base64 string.

    Args:
        data: String or bytes to encode

    Returns:
        Base64 encoded string
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("utf-8")


def safe_base64_decode(data: str) -> str:
    """Safely decode base64 string to bytes and then to utf-8 string.

    Args:
        data: Base64 encoded string

    Returns:
        Decoded utf-8 string

    Raises:
        binascii.Error: If the input is not valid base64
        UnicodeDecodeError: If the decoded bytes are not utf-8
    """
    return base64.b64decode(data, validate=True).decode("utf-8")


def encode_payment_required_header(requirement: PaymentRequirement) -> str:
    """Encode a payment requirement as a payment-required header value."""
    return safe_base64_encode(
        requirement.model_dump_json(by_alias=True, exclude_none=True)
    )


def decode_payment_required_header(header: str) -> PaymentRequirement:
    """Decode a base64 payment-required header.

    Raises:
        PaymentError: If the header is not base64, not utf-8 or not a valid
            payment requirement document.
    """
    try:
        json_str = safe_base64_decode(header.strip())
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise PaymentError(f"challenge is unparsable: {e}") from e
    return decode_payment_required_json(json_str)


def decode_payment_required_json(data: Union[str, bytes]) -> PaymentRequirement:
    """Validate a raw JSON payment requirement document without re-encoding it."""
    try:
        return PaymentRequirement.model_validate_json(data)
    except PydanticValidationError as e:
        raise PaymentError(f"challenge is unparsable: {e}") from e


def encode_payment_signature_header(payload: PaymentPayload) -> str:
    """Encode a signed payment payload as a PAYMENT-SIGNATURE header value."""
    return safe_base64_encode(payload.model_dump_json(by_alias=True, exclude_none=True))


def decode_payment_signature_header(header: str) -> PaymentPayload:
    """Decode a PAYMENT-SIGNATURE header value back into a payload."""
    return PaymentPayload.model_validate_json(safe_base64_decode(header))


def decode_payment_response_header(header: str) -> SettleResponse:
    """Decode the settlement receipt a server attaches to a paid response.

    Returns:
        The decoded SettleResponse containing success, transaction, network
        and payer.
    """
    return SettleResponse.model_validate_json(safe_base64_decode(header))
