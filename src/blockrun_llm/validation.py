import re
from urllib.parse import urlparse

from blockrun_llm.exceptions import ValidationError

PRIVATE_KEY_PATTERN = re.compile(r"^(0x)?[a-fA-F0-9]{64}$")

# provider/model or model-name
MODEL_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+(/[a-zA-Z0-9._-]+)?$")

MAX_TOKENS_LIMIT = 1_000_000
MAX_TEMPERATURE = 2.0
MAX_TOP_P = 1.0


def _has_http_scheme(url: str) -> bool:
    try:
        scheme = urlparse(url).scheme
    except ValueError:
        return False
    return scheme in ("http", "https")


def validate_private_key(key: str) -> None:
    if not key:
        raise ValidationError("privateKey", "Private key is required")
    if not PRIVATE_KEY_PATTERN.match(key):
        raise ValidationError(
            "privateKey",
            "Private key must be a 64-character hex string (with optional 0x prefix)",
        )


def validate_api_url(url: str) -> None:
    if not url:
        raise ValidationError("apiURL", "API URL is required")
    if not _has_http_scheme(url):
        raise ValidationError("apiURL", "URL must use http or https scheme")


def validate_model(model: str) -> None:
    if not model:
        raise ValidationError("model", "Model is required")
    if not MODEL_PATTERN.match(model):
        raise ValidationError(
            "model",
            "Invalid model format. Expected format: 'provider/model' or 'model-name'",
        )


def validate_max_tokens(max_tokens: int) -> None:
    if max_tokens < 0:
        raise ValidationError("maxTokens", "max_tokens must be non-negative")
    if max_tokens > MAX_TOKENS_LIMIT:
        raise ValidationError("maxTokens", "max_tokens exceeds maximum allowed value")


def validate_temperature(temperature: float) -> None:
    if temperature < 0:
        raise ValidationError("temperature", "temperature must be non-negative")
    if temperature > MAX_TEMPERATURE:
        raise ValidationError("temperature", "temperature must be at most 2.0")


def validate_top_p(top_p: float) -> None:
    if top_p < 0:
        raise ValidationError("topP", "top_p must be non-negative")
    if top_p > MAX_TOP_P:
        raise ValidationError("topP", "top_p must be at most 1.0")


def validate_resource_url(resource_url: str, expected_base: str) -> str:
    """Normalize the resource URL a challenge names.

    Returns:
        The URL without a trailing slash, or the chat completions endpoint
        under ``expected_base`` when the challenge names none.

    Raises:
        ValidationError: If the URL does not use http or https
    """
    if not resource_url:
        return expected_base + "/v1/chat/completions"
    if not _has_http_scheme(resource_url):
        raise ValidationError("resourceURL", "Resource URL must use http or https scheme")
    return resource_url.removesuffix("/")
