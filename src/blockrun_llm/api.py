"""Shared plumbing for the BlockRun gateway clients.

SECURITY: the private key is used only for local EIP-712 signing. It never
leaves the machine; only signatures are sent to the gateway.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests
from eth_account import Account

from blockrun_llm.clients.base import x402Client
from blockrun_llm.clients.requests import wrapRequestsWithPayment
from blockrun_llm.config import ClientConfig
from blockrun_llm.exceptions import APIError, ValidationError
from blockrun_llm.spending import Spending
from blockrun_llm.types import ImageModel
from blockrun_llm.validation import validate_api_url, validate_private_key

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = (
    "Private key required. Pass private_key or set the BLOCKRUN_WALLET_KEY "
    "(or BASE_CHAIN_WALLET_KEY) environment variable. NOTE: Your key never "
    "leaves your machine - only signatures are sent."
)


class BaseAPIClient:
    """Base class for clients that call paid BlockRun endpoints.

    Every request goes through a requests.Session with the x402 adapter
    mounted, so a 402 challenge is paid and retried transparently.
    """

    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        private_key: Optional[str] = None,
        *,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        token_name: Optional[str] = None,
        token_version: Optional[str] = None,
    ) -> None:
        """Create a client.

        Args:
            private_key: Hex private key, with or without 0x. Falls back to
                BLOCKRUN_WALLET_KEY, then BASE_CHAIN_WALLET_KEY.
            api_url: Gateway base URL. Falls back to BLOCKRUN_API_URL, then
                https://blockrun.ai/api.
            timeout: Per-request timeout in seconds.
            session: Optional requests.Session to mount the payment adapter on.
            token_name: Optional EIP-712 domain name override.
            token_version: Optional EIP-712 domain version override.

        Raises:
            ValidationError: If no key is available or the key or URL is malformed.
        """
        config = ClientConfig.from_env(
            private_key=private_key,
            api_url=api_url,
            timeout=timeout,
            token_name=token_name,
            token_version=token_version,
            default_timeout=self.DEFAULT_TIMEOUT,
        )
        if not config.private_key:
            raise ValidationError("privateKey", MISSING_KEY_MESSAGE)
        validate_private_key(config.private_key)
        validate_api_url(config.api_url)

        key = config.private_key
        if not key.startswith("0x"):
            key = "0x" + key
        try:
            account = Account.from_key(key)
        except ValueError as e:
            raise ValidationError("privateKey", f"Invalid private key: {e}") from e

        self.api_url = config.api_url
        self.timeout = config.timeout
        self._x402 = x402Client(
            account,
            token_name=config.token_name,
            token_version=config.token_version,
        )
        self._owns_session = session is None
        self._session = wrapRequestsWithPayment(session or requests.Session(), self._x402)

    def get_wallet_address(self) -> str:
        """The checksummed address that pays for requests."""
        return self._x402.address

    def get_spending(self) -> Spending:
        """Total settled USD and number of paid calls for this client."""
        return self._x402.get_spending()

    def list_image_models(self) -> list[ImageModel]:
        return [ImageModel.model_validate(m) for m in self._get_json("/v1/images/models")]

    def _get_json(self, endpoint: str) -> list[dict[str, Any]]:
        """GET a listing endpoint and return its ``data`` array."""
        url = f"{self.api_url}{endpoint}"
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise APIError(None, f"request to {endpoint} failed: {e}") from e

        if response.status_code != 200:
            raise APIError(
                response.status_code,
                f"failed to fetch {endpoint}",
                response.text,
            )
        try:
            return response.json().get("data") or []
        except (ValueError, AttributeError) as e:
            raise APIError(200, f"invalid response from {endpoint}", response.text) from e

    def _request_with_payment(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body, paying for it if the gateway asks.

        The body is serialized once; the paid retry resends the same bytes.

        Raises:
            APIError: On a non-200 answer, a 402 without a payment challenge,
                or a transport failure (status_code None).
            PaymentError: If the payment cannot be made or is rejected.
        """
        url = f"{self.api_url}{endpoint}"
        data = json.dumps(body).encode("utf-8")
        logger.debug(f"POST {url}")

        try:
            response = self._session.post(
                url,
                data=data,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise APIError(None, f"request failed: {e}") from e

        if response.status_code == 402:
            raise APIError(402, "payment required but no payment challenge was offered", response.text)
        if response.status_code != 200:
            raise APIError(response.status_code, f"API error: {response.text}", response.text)

        try:
            return response.json()
        except ValueError as e:
            raise APIError(200, "failed to decode response", response.text) from e

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.get_wallet_address()!r}, api_url={self.api_url!r})"
