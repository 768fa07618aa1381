"""Error hierarchy for the BlockRun client.

Callers branch on the exception class:

- ``ValidationError``: bad local input, raised before any network call.
- ``APIError``: the gateway answered with a status outside {200, 402}, a 402
  without a usable challenge, or the transport failed (``status_code`` is None).
- ``PaymentError``: the x402 handshake could not complete. Never retried.
"""

from __future__ import annotations

from typing import Optional


class BlockRunError(Exception):
    """Base class for all BlockRun client errors."""

    pass


class ValidationError(BlockRunError):
    """Raised when local input fails validation."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"Validation error for {field}: {message}")


class APIError(BlockRunError):
    """Raised when the gateway returns an unexpected response."""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        body: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.body = body
        super().__init__(f"BlockRun API error (status {status_code}): {message}")


class PaymentError(BlockRunError):
    """Raised when an x402 payment cannot be created or is refused."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Payment error: {message}")


class PaymentRejectedError(PaymentError):
    """Raised when the server answers the signed retry with another 402."""

    pass


class SigningError(PaymentError):
    """Raised when a transfer authorization cannot be signed."""

    pass


class CryptoError(SigningError):
    """Raised when the system entropy source is unavailable."""

    pass
