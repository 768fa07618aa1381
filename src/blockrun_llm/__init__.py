"""blockrun-llm: pay-per-request access to the BlockRun LLM gateway over x402."""

# Clients
from blockrun_llm.llm import LLMClient, DEFAULT_MAX_TOKENS
from blockrun_llm.image import ImageClient
from blockrun_llm.config import ClientConfig, DEFAULT_API_URL

# x402 payments
from blockrun_llm.clients.base import x402Client, decode_x_payment_response
from blockrun_llm.clients.requests import x402HTTPAdapter, x402_requests
from blockrun_llm.exact import (
    create_nonce,
    create_payment_payload,
    decode_payment,
    encode_payment,
    x402_VERSION,
)
from blockrun_llm.spending import Spending, SpendingLedger

# Errors
from blockrun_llm.exceptions import (
    BlockRunError,
    ValidationError,
    APIError,
    PaymentError,
    PaymentRejectedError,
    SigningError,
    CryptoError,
)

# Types
from blockrun_llm.types import (
    PaymentRequirement,
    PaymentOption,
    PaymentPayload,
    ResourceInfo,
    SettleResponse,
    ChatMessage,
    ChatCompletionOptions,
    ChatResponse,
    Model,
    ImageModel,
    AllModel,
    ImageGenerateOptions,
    ImageResponse,
)

# Wallet
from blockrun_llm.wallet import (
    WalletStore,
    WalletInfo,
    PaymentLinks,
    create_wallet,
    get_address_from_key,
    get_eip681_uri,
    get_payment_links,
    format_wallet_created_message,
    format_needs_funding_message,
    format_funding_message_compact,
)

__all__ = [
    # Clients
    "LLMClient",
    "ImageClient",
    "ClientConfig",
    "DEFAULT_API_URL",
    "DEFAULT_MAX_TOKENS",
    # x402
    "x402Client",
    "decode_x_payment_response",
    "x402HTTPAdapter",
    "x402_requests",
    "create_nonce",
    "create_payment_payload",
    "decode_payment",
    "encode_payment",
    "x402_VERSION",
    "Spending",
    "SpendingLedger",
    # Errors
    "BlockRunError",
    "ValidationError",
    "APIError",
    "PaymentError",
    "PaymentRejectedError",
    "SigningError",
    "CryptoError",
    # Types
    "PaymentRequirement",
    "PaymentOption",
    "PaymentPayload",
    "ResourceInfo",
    "SettleResponse",
    "ChatMessage",
    "ChatCompletionOptions",
    "ChatResponse",
    "Model",
    "ImageModel",
    "AllModel",
    "ImageGenerateOptions",
    "ImageResponse",
    # Wallet
    "WalletStore",
    "WalletInfo",
    "PaymentLinks",
    "create_wallet",
    "get_address_from_key",
    "get_eip681_uri",
    "get_payment_links",
    "format_wallet_created_message",
    "format_needs_funding_message",
    "format_funding_message_compact",
]
