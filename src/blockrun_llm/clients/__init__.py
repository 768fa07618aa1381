"""x402 payment client and requests integration.

The x402Client signs payments; the requests adapter runs the 402 handshake.
"""

from .base import decode_x_payment_response, x402Client
from .requests import (
    wrapRequestsWithPayment,
    x402_http_adapter,
    x402_requests,
    x402HTTPAdapter,
)

__all__ = [
    "x402Client",
    "decode_x_payment_response",
    # requests
    "x402HTTPAdapter",
    "wrapRequestsWithPayment",
    "x402_http_adapter",
    "x402_requests",
]
