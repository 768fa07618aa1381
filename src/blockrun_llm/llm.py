from __future__ import annotations

from typing import Any, Optional

from blockrun_llm.api import BaseAPIClient
from blockrun_llm.exceptions import APIError, ValidationError
from blockrun_llm.types import (
    AllModel,
    ChatCompletionOptions,
    ChatMessage,
    ChatResponse,
    Model,
)
from blockrun_llm.validation import (
    validate_max_tokens,
    validate_model,
    validate_temperature,
    validate_top_p,
)

DEFAULT_MAX_TOKENS = 1024


class LLMClient(BaseAPIClient):
    """Pay-per-request client for the BlockRun LLM gateway.

    Example:
        ```python
        from blockrun_llm import LLMClient

        with LLMClient() as client:  # key from BLOCKRUN_WALLET_KEY
            print(client.chat("openai/gpt-4o", "Hello!"))
            print(client.get_spending())
        ```
    """

    DEFAULT_TIMEOUT = 60.0

    def chat(self, model: str, prompt: str, system: Optional[str] = None) -> str:
        """Send a single prompt and return the reply text."""
        messages = []
        if system:
            messages.append(ChatMessage(role="system", content=system))
        messages.append(ChatMessage(role="user", content=prompt))

        response = self.chat_completion(model, messages)
        if not response.choices:
            raise APIError(200, "No choices in response")
        return response.choices[0].message.content

    def chat_completion(
        self,
        model: str,
        messages: list[ChatMessage],
        options: Optional[ChatCompletionOptions] = None,
    ) -> ChatResponse:
        """Send an OpenAI-compatible chat completion request.

        Args:
            model: Model ID, e.g. ``openai/gpt-4o``
            messages: Conversation so far, at least one message
            options: Optional sampling and search parameters

        Returns:
            ChatResponse

        Raises:
            ValidationError: If the model, messages or options are invalid
            APIError: If the gateway returns an error
            PaymentError: If the request cannot be paid for
        """
        validate_model(model)
        if not messages:
            raise ValidationError("messages", "At least one message is required")

        options = options or ChatCompletionOptions()
        body: dict[str, Any] = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
        }

        max_tokens = DEFAULT_MAX_TOKENS
        if options.max_tokens:
            validate_max_tokens(options.max_tokens)
            max_tokens = options.max_tokens
        if options.temperature:
            validate_temperature(options.temperature)
            body["temperature"] = options.temperature
        if options.top_p:
            validate_top_p(options.top_p)
            body["top_p"] = options.top_p

        if options.search_parameters is not None:
            body["search_parameters"] = options.search_parameters
        elif options.search:
            body["search_parameters"] = {"mode": "on"}

        body["max_tokens"] = max_tokens

        data = self._request_with_payment("/v1/chat/completions", body)
        return ChatResponse.model_validate(data)

    def list_models(self) -> list[Model]:
        """List available LLMs with pricing (USD per 1M tokens)."""
        return [Model.model_validate(m) for m in self._get_json("/v1/models")]

    def list_all_models(self) -> list[AllModel]:
        """List LLM and image models in one listing."""
        models = [
            AllModel(
                id=m.id,
                name=m.name,
                provider=m.provider,
                type="llm",
                input_price=m.input_price,
                output_price=m.output_price,
                context_limit=m.context_limit,
            )
            for m in self.list_models()
        ]
        models.extend(
            AllModel(
                id=m.id,
                name=m.name,
                provider=m.provider,
                type="image",
                price_per_image=m.price_per_image,
                supported_sizes=m.supported_sizes,
            )
            for m in self.list_image_models()
        )
        return models
