import pytest

from blockrun_llm.exceptions import ValidationError
from blockrun_llm.validation import (
    validate_api_url,
    validate_max_tokens,
    validate_model,
    validate_private_key,
    validate_resource_url,
    validate_temperature,
    validate_top_p,
)


def test_validate_private_key(private_key):
    validate_private_key(private_key)
    validate_private_key(private_key.removeprefix("0x"))

    for bad in ["", "0x1234", "zz" * 32, private_key + "00"]:
        with pytest.raises(ValidationError) as exc_info:
            validate_private_key(bad)
        assert exc_info.value.field == "privateKey"


def test_validate_api_url():
    validate_api_url("https://blockrun.ai/api")
    validate_api_url("http://localhost:3000")

    for bad in ["", "ftp://blockrun.ai", "blockrun.ai/api"]:
        with pytest.raises(ValidationError):
            validate_api_url(bad)


def test_validate_model():
    validate_model("openai/gpt-4o")
    validate_model("anthropic/claude-3.5-sonnet")
    validate_model("gpt-4o")

    for bad in ["", "openai/gpt 4o", "a/b/c", "../etc"]:
        with pytest.raises(ValidationError) as exc_info:
            validate_model(bad)
        assert exc_info.value.field == "model"


def test_validate_ranges():
    validate_max_tokens(0)
    validate_max_tokens(1_000_000)
    validate_temperature(0)
    validate_temperature(2.0)
    validate_top_p(1.0)

    with pytest.raises(ValidationError):
        validate_max_tokens(-1)
    with pytest.raises(ValidationError):
        validate_max_tokens(1_000_001)
    with pytest.raises(ValidationError):
        validate_temperature(2.1)
    with pytest.raises(ValidationError):
        validate_temperature(-0.1)
    with pytest.raises(ValidationError):
        validate_top_p(1.5)


def test_validate_resource_url():
    base = "https://blockrun.ai/api"

    assert validate_resource_url("", base) == base + "/v1/chat/completions"
    assert validate_resource_url(base + "/v1/images/generations/", base) == (
        base + "/v1/images/generations"
    )

    with pytest.raises(ValidationError):
        validate_resource_url("javascript:alert(1)", base)


def test_validation_error_message():
    error = ValidationError("model", "Model is required")

    assert str(error) == "Validation error for model: Model is required"
