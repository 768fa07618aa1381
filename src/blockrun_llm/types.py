from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _validate_integer_string(v: Optional[str], field_name: str) -> Optional[str]:
    if v is None or v == "":
        return v
    if not v.isdigit() or not v.isascii():
        raise ValueError(f"{field_name} must be a non-negative integer encoded as a string")
    return v


class OptionExtra(BaseModel):
    """Scheme-specific extras attached to a payment option.

    Token metadata (``name``/``version``) feeds the EIP-712 domain. Legacy v1
    challenges carry the price in ``maxAmountRequired`` instead of ``amount``.
    Any other keys the server sends are kept as-is.
    """

    name: Optional[str] = None
    version: Optional[str] = None
    max_amount_required: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="allow",
    )

    @field_validator("max_amount_required")
    def validate_max_amount_required(cls, v):
        return _validate_integer_string(v, "maxAmountRequired")

    @property
    def legacy_amount(self) -> Optional[str]:
        return self.max_amount_required or None


class PaymentOption(BaseModel):
    scheme: str = "exact"
    network: str = ""
    amount: str = ""
    asset: str = ""
    pay_to: str = ""
    max_timeout_seconds: int = 0
    extra: Optional[OptionExtra] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @field_validator("amount")
    def validate_amount(cls, v):
        return _validate_integer_string(v, "amount")

    @field_validator("max_timeout_seconds")
    def validate_max_timeout_seconds(cls, v):
        if v < 0:
            raise ValueError("maxTimeoutSeconds must be non-negative")
        return v


class ResourceInfo(BaseModel):
    url: str = ""
    description: str = ""
    mime_type: str = ""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Returned by a server, base64 encoded in the payment-required header of a 402
class PaymentRequirement(BaseModel):
    x402_version: int
    accepts: list[PaymentOption] = Field(default_factory=list)
    resource: ResourceInfo = Field(default_factory=ResourceInfo)
    extensions: Optional[dict[str, Any]] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TransferAuthorization(BaseModel):
    """EIP-3009 TransferWithAuthorization parameters, all encoded as strings."""

    from_: str = Field(alias="from")
    to: str
    value: str
    valid_after: str
    valid_before: str
    nonce: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @field_validator("value")
    def validate_value(cls, v):
        return _validate_integer_string(v, "value")


class PaymentData(BaseModel):
    signature: str
    authorization: TransferAuthorization


class PaymentPayload(BaseModel):
    x402_version: int
    resource: ResourceInfo
    accepted: PaymentOption
    payload: PaymentData
    extensions: Optional[dict[str, Any]] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SettleResponse(BaseModel):
    success: bool
    error_reason: Optional[str] = None
    transaction: Optional[str] = None
    network: Optional[str] = None
    payer: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Gateway API models (OpenAI-compatible bodies use snake_case on the wire)
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    role: str  # "system", "user" or "assistant"
    content: str


class ChatCompletionOptions(BaseModel):
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    # xAI live search: explicit parameters win over the ``search`` shortcut
    search: bool = False
    search_parameters: Optional[dict[str, Any]] = None


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Choice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: Optional[str] = None


class ChatResponse(BaseModel):
    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)


class Model(BaseModel):
    """An LLM available on the gateway. Prices are USD per 1M tokens."""

    id: str
    name: str = ""
    provider: str = ""
    input_price: float = 0.0
    output_price: float = 0.0
    context_limit: int = 0

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ImageModel(BaseModel):
    id: str
    name: str = ""
    provider: str = ""
    description: str = ""
    price_per_image: float = 0.0
    supported_sizes: Optional[list[str]] = None
    max_prompt_length: Optional[int] = None
    available: bool = False

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class AllModel(BaseModel):
    """Unified listing entry for both LLM and image models."""

    id: str
    name: str = ""
    provider: str = ""
    type: Literal["llm", "image"]
    input_price: Optional[float] = None
    output_price: Optional[float] = None
    context_limit: Optional[int] = None
    price_per_image: Optional[float] = None
    supported_sizes: Optional[list[str]] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ImageGenerateOptions(BaseModel):
    model: Optional[str] = None
    size: Optional[str] = None
    n: Optional[int] = None
    quality: Optional[str] = None


class ImageData(BaseModel):
    url: str = ""
    revised_prompt: Optional[str] = None
    b64_json: Optional[str] = None


class ImageResponse(BaseModel):
    created: int = 0
    data: list[ImageData] = Field(default_factory=list)
