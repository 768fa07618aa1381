import json
import logging
from typing import TYPE_CHECKING, Optional

from blockrun_llm.eip712 import TypedDataSigner
from blockrun_llm.encoding import (
    decode_payment_required_header,
    decode_payment_required_json,
    decode_payment_response_header,
)
from blockrun_llm.exact import create_payment_payload, encode_payment
from blockrun_llm.exceptions import PaymentError
from blockrun_llm.spending import Spending, SpendingLedger
from blockrun_llm.types import (
    PaymentOption,
    PaymentRequirement,
    ResourceInfo,
    SettleResponse,
)

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)

# Body fields that mark a 402 body as carrying a payment challenge
CHALLENGE_MARKERS = ("x402", "x402Version")


def decode_x_payment_response(header: str) -> Optional[SettleResponse]:
    """Decode the PAYMENT-RESPONSE header of a settled request.

    Returns None when the header cannot be decoded; the receipt is
    informational and never changes the outcome of a call.
    """
    try:
        return decode_payment_response_header(header)
    except ValueError as e:
        logger.warning(f"Unreadable payment response header: {e}")
        return None


class x402Client:
    """Creates x402 payments for a single local account.

    Owns the account and the session SpendingLedger. Parsing a challenge,
    choosing the option and signing happen here; the HTTP round trips live
    in the transport adapter.
    """

    def __init__(
        self,
        account: "LocalAccount",
        token_name: Optional[str] = None,
        token_version: Optional[str] = None,
        ledger: Optional[SpendingLedger] = None,
    ):
        """Initialize the x402 client.

        Args:
            account: eth_account LocalAccount used for EIP-712 signing
            token_name: Optional EIP-712 domain name override
            token_version: Optional EIP-712 domain version override
            ledger: Optional ledger to record settled payments in
        """
        self._signer = TypedDataSigner(account)
        self.token_name = token_name
        self.token_version = token_version
        self.ledger = ledger or SpendingLedger()

    @property
    def address(self) -> str:
        return self._signer.address

    def get_spending(self) -> Spending:
        return self.ledger.snapshot()

    def parse_payment_required(
        self,
        header: Optional[str],
        body: Optional[bytes] = None,
    ) -> Optional[PaymentRequirement]:
        """Recover the payment challenge from a 402 response.

        The payment-required header wins. Without it, the body is used when it
        is a JSON object carrying a challenge marker: a string ``x402`` field
        is decoded like the header, an object ``x402`` field is the requirement
        itself, otherwise the raw body bytes are validated as the requirement
        document as-is.

        Args:
            header: Value of the payment-required header, if any
            body: Raw response body

        Returns:
            The PaymentRequirement, or None if the response carries no challenge

        Raises:
            PaymentError: If a challenge is present but cannot be decoded
        """
        if header:
            return decode_payment_required_header(header)

        if not body:
            return None

        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None

        if not isinstance(data, dict) or not any(m in data for m in CHALLENGE_MARKERS):
            return None

        marker = data.get("x402")
        if isinstance(marker, str):
            return decode_payment_required_header(marker)
        if isinstance(marker, dict):
            try:
                return PaymentRequirement.model_validate(marker)
            except ValueError as e:
                raise PaymentError(f"challenge is unparsable: {e}") from e
        return decode_payment_required_json(body)

    @staticmethod
    def select_payment_option(requirement: PaymentRequirement) -> PaymentOption:
        """Select the option to pay and resolve its amount.

        Always takes the first option the server offers. The amount comes from
        ``amount``, falling back to the legacy ``extra.maxAmountRequired``.

        Raises:
            PaymentError: If no option is offered or no amount can be found
        """
        if not requirement.accepts:
            raise PaymentError("no payment options offered")

        option = requirement.accepts[0]
        if option.amount:
            return option

        legacy_amount = option.extra.legacy_amount if option.extra else None
        if not legacy_amount:
            raise PaymentError("no amount found in payment requirements")
        return option.model_copy(update={"amount": legacy_amount})

    def create_payment_header(
        self,
        requirement: PaymentRequirement,
        request_url: str,
    ) -> tuple[str, PaymentOption]:
        """Sign a payment for a challenge and encode it as a header value.

        Args:
            requirement: Parsed payment challenge
            request_url: URL of the original request, used when the challenge
                names no resource URL

        Returns:
            Tuple of (PAYMENT-SIGNATURE header value, option that was paid)

        Raises:
            PaymentError: If the option cannot be selected or signed
        """
        option = self.select_payment_option(requirement)
        resource = ResourceInfo(
            url=requirement.resource.url or request_url,
            description=requirement.resource.description,
            mime_type=requirement.resource.mime_type,
        )

        try:
            payload = create_payment_payload(
                self._signer,
                option,
                resource,
                extensions=requirement.extensions,
                token_name=self.token_name,
                token_version=self.token_version,
            )
        except PaymentError:
            raise
        except Exception as e:
            raise PaymentError(f"failed to create payment: {e}") from e

        return encode_payment(payload), option

    def record_payment(self, option: PaymentOption) -> None:
        """Record a settled payment in the session ledger."""
        self.ledger.record(int(option.amount))

    def __repr__(self) -> str:
        return f"x402Client(address={self.address!r})"

