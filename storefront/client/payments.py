import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import stripe

from storefront.client.errors import PaymentTokenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardDetails:
    """Card input as captured by the provider's hosted fields.

    ``token`` is the provider-side card token; raw card numbers never pass
    through this package.
    """

    token: str
    cardholder_name: Optional[str] = None
    postal_code: Optional[str] = None


class PaymentProvider(Protocol):
    def tokenize(self, card: CardDetails) -> str:
        """Return a payment-method id or raise PaymentTokenError."""
        ...


class StripeTokenizer:
    """Creates Stripe PaymentMethods with the publishable key."""

    def __init__(self, publishable_key: str):
        self.publishable_key = publishable_key

    def tokenize(self, card: CardDetails) -> str:
        billing_details = {}
        if card.cardholder_name:
            billing_details["name"] = card.cardholder_name
        if card.postal_code:
            billing_details["address"] = {"postal_code": card.postal_code}

        try:
            payment_method = stripe.PaymentMethod.create(
                api_key=self.publishable_key,
                type="card",
                card={"token": card.token},
                billing_details=billing_details or None,
            )
        except stripe.StripeError as e:
            logger.warning(f"Card tokenization failed: {e}")
            raise PaymentTokenError(e.user_message)

        return payment_method.id
