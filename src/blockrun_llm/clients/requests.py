"""requests library wrapper with automatic x402 payment handling.

Provides an HTTPAdapter that answers a 402 Payment Required response with a
signed payment and retries the request exactly once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import requests
from requests.adapters import HTTPAdapter

from blockrun_llm.clients.base import decode_x_payment_response
from blockrun_llm.encoding import (
    PAYMENT_REQUIRED_HEADER,
    PAYMENT_RESPONSE_HEADER,
    PAYMENT_SIGNATURE_HEADER,
)
from blockrun_llm.exceptions import PaymentError, PaymentRejectedError
from blockrun_llm.spending import MICRO_UNITS_PER_USD

if TYPE_CHECKING:
    from blockrun_llm.clients.base import x402Client

logger = logging.getLogger(__name__)


class x402HTTPAdapter(HTTPAdapter):
    """HTTP adapter that handles 402 Payment Required responses.

    A 402 carrying a payment challenge is paid once: the challenge is parsed,
    an authorization is signed and a copy of the request is resent with the
    PAYMENT-SIGNATURE header. A second 402 means the server rejected the
    payment and is never paid again. Successful paid calls are recorded in
    the client's SpendingLedger.

    A 402 without a recognizable challenge is returned untouched so the
    caller can surface it as an API error.
    """

    def __init__(self, client: x402Client, **kwargs: Any) -> None:
        """Initialize payment adapter.

        Args:
            client: x402Client that signs payments.
            **kwargs: Additional arguments for HTTPAdapter.
        """
        super().__init__(**kwargs)
        self.client = client

    def send(
        self,
        request: requests.PreparedRequest,
        **kwargs: Any,
    ) -> requests.Response:
        """Send request with automatic 402 payment handling.

        Args:
            request: The prepared request.
            **kwargs: Additional send arguments.

        Returns:
            Response (original, or the paid retry).

        Raises:
            PaymentError: If the challenge cannot be decoded or signed.
            PaymentRejectedError: If the server answers the paid retry with 402.
        """
        response = super().send(request, **kwargs)

        if response.status_code != 402:
            return response

        requirement = self.client.parse_payment_required(
            response.headers.get(PAYMENT_REQUIRED_HEADER),
            response.content,
        )
        if requirement is None:
            logger.debug("402 response carries no payment challenge")
            return response

        try:
            payment_header, option = self.client.create_payment_header(
                requirement, request.url or ""
            )
        except PaymentError:
            raise
        except Exception as e:
            raise PaymentError(f"failed to handle payment: {e}") from e

        logger.debug(f"Received 402 for {request.url}, retrying with payment")

        retry_request = request.copy()
        retry_request.headers[PAYMENT_SIGNATURE_HEADER] = payment_header
        retry_response = super().send(retry_request, **kwargs)

        if retry_response.status_code == 402:
            logger.warning("Payment was rejected by the server")
            raise PaymentRejectedError("payment rejected, check balance")

        if retry_response.status_code == 200:
            self.client.record_payment(option)
            receipt_header = retry_response.headers.get(PAYMENT_RESPONSE_HEADER)
            if receipt_header:
                receipt = decode_x_payment_response(receipt_header)
                if receipt is not None:
                    logger.debug(
                        f"Payment settled: success={receipt.success} "
                        f"transaction={receipt.transaction}"
                    )
            logger.info(
                f"Paid {int(option.amount) / MICRO_UNITS_PER_USD:.6f} USD to {option.pay_to}"
            )

        return retry_response


def x402_http_adapter(client: x402Client, **kwargs: Any) -> x402HTTPAdapter:
    """Create an HTTP adapter with 402 payment handling.

    Args:
        client: x402Client that signs payments.
        **kwargs: Additional arguments for HTTPAdapter.

    Returns:
        x402HTTPAdapter that can be mounted to a session.

    Example:
        ```python
        import requests
        from eth_account import Account
        from blockrun_llm.clients import x402Client, x402_http_adapter

        x402 = x402Client(Account.from_key("0x..."))

        session = requests.Session()
        adapter = x402_http_adapter(x402)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        response = session.post("https://blockrun.ai/api/v1/chat/completions", json=body)
        ```
    """
    return x402HTTPAdapter(client, **kwargs)


def wrapRequestsWithPayment(
    session: requests.Session,
    client: x402Client,
    **adapter_kwargs: Any,
) -> requests.Session:
    """Wrap a requests Session with automatic 402 payment handling.

    Mounts a payment-aware adapter for both HTTP and HTTPS.

    Args:
        session: requests Session to wrap.
        client: x402Client that signs payments.
        **adapter_kwargs: Additional arguments for the adapter.

    Returns:
        The same session with payment adapter mounted.
    """
    adapter = x402HTTPAdapter(client, **adapter_kwargs)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def x402_requests(client: x402Client, **adapter_kwargs: Any) -> requests.Session:
    """Create a requests Session with x402 payment handling.

    Args:
        client: x402Client that signs payments.
        **adapter_kwargs: Additional arguments for the adapter.

    Returns:
        New session with payment handling configured.
    """
    return wrapRequestsWithPayment(requests.Session(), client, **adapter_kwargs)
