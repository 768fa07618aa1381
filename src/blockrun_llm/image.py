from __future__ import annotations

from typing import Any, Optional

from blockrun_llm.api import BaseAPIClient
from blockrun_llm.exceptions import ValidationError
from blockrun_llm.types import ImageGenerateOptions, ImageResponse

DEFAULT_IMAGE_MODEL = "google/nano-banana"
DEFAULT_IMAGE_SIZE = "1024x1024"


class ImageClient(BaseAPIClient):
    """Pay-per-image client for BlockRun image generation."""

    # Image generation is slower than chat
    DEFAULT_TIMEOUT = 120.0

    def generate(
        self,
        prompt: str,
        options: Optional[ImageGenerateOptions] = None,
    ) -> ImageResponse:
        """Generate images from a text prompt.

        Raises:
            ValidationError: If the prompt is empty
            APIError: If the gateway returns an error
            PaymentError: If the request cannot be paid for
        """
        if not prompt:
            raise ValidationError("prompt", "Prompt is required")

        options = options or ImageGenerateOptions()
        body: dict[str, Any] = {
            "prompt": prompt,
            "model": options.model or DEFAULT_IMAGE_MODEL,
            "size": options.size or DEFAULT_IMAGE_SIZE,
            "n": options.n if options.n and options.n > 0 else 1,
        }
        if options.quality:
            body["quality"] = options.quality

        data = self._request_with_payment("/v1/images/generations", body)
        return ImageResponse.model_validate(data)
