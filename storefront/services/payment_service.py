import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import stripe
from fastapi import HTTPException

from storefront.config import settings

logger = logging.getLogger(__name__)

# intent statuses that still need a payment method or a confirm call
CONFIRMABLE = {"requires_payment_method", "requires_confirmation"}
DECLINED = {"requires_payment_method", "canceled"}


@dataclass
class ChargeResult:
    payment_intent_id: str
    status: str
    payment_method_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


class StripeGateway:
    """Thin wrapper over the stripe SDK; every call passes the key explicitly."""

    def __init__(self, api_key: str, currency: str = "usd", webhook_secret: str = ""):
        self.api_key = api_key
        self.currency = currency
        self.webhook_secret = webhook_secret

    def create_intent(self, amount_cents: int, metadata: Optional[Dict[str, Any]] = None) -> Tuple[str, str]:
        logger.info(f"Creating payment intent for amount: {amount_cents}")
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount_cents,
                currency=self.currency,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                metadata=metadata or {},
            )
        except stripe.StripeError as e:
            logger.exception("Error creating payment intent")
            raise HTTPException(502, f"Failed to create payment intent: {e.user_message or e}")

        return intent.id, intent.client_secret

    def charge(
        self,
        amount_cents: int,
        *,
        payment_intent_id: Optional[str] = None,
        payment_method_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChargeResult:
        if not payment_intent_id and not payment_method_id:
            raise HTTPException(400, "Payment information is missing")

        try:
            if payment_intent_id:
                intent = self._confirm_existing(amount_cents, payment_intent_id, payment_method_id)
            else:
                intent = stripe.PaymentIntent.create(
                    api_key=self.api_key,
                    amount=amount_cents,
                    currency=self.currency,
                    payment_method=payment_method_id,
                    confirm=True,
                    automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                    metadata=metadata or {},
                )
        except stripe.CardError as e:
            logger.warning(f"Card declined: {e.user_message}")
            raise HTTPException(402, e.user_message or "Your card was declined")
        except stripe.StripeError:
            logger.exception("Payment provider error")
            raise HTTPException(502, "Payment provider is unavailable, please try again")

        if intent.status in DECLINED:
            raise HTTPException(402, "Payment was not completed")

        payment_method = intent.payment_method
        if payment_method is not None and not isinstance(payment_method, str):
            payment_method = payment_method.id

        return ChargeResult(
            payment_intent_id=intent.id,
            status=intent.status,
            payment_method_id=payment_method or payment_method_id,
        )

    def _confirm_existing(self, amount_cents: int, payment_intent_id: str, payment_method_id: Optional[str]):
        intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)

        if intent.amount != amount_cents:
            if intent.status not in CONFIRMABLE:
                logger.warning(
                    f"Intent {intent.id} amount {intent.amount} does not match order amount {amount_cents}"
                )
                raise HTTPException(400, "Payment amount does not match order total")
            intent = stripe.PaymentIntent.modify(intent.id, api_key=self.api_key, amount=amount_cents)

        if intent.status in CONFIRMABLE and payment_method_id:
            intent = stripe.PaymentIntent.confirm(
                intent.id,
                api_key=self.api_key,
                payment_method=payment_method_id,
            )

        return intent

    def parse_webhook(self, payload: bytes, signature: Optional[str]):
        try:
            return stripe.Webhook.construct_event(payload, signature or "", self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise HTTPException(400, f"Webhook Error: {e}")


def get_payment_gateway() -> StripeGateway:
    return StripeGateway(
        api_key=settings.stripe_secret_key,
        currency=settings.stripe_currency,
        webhook_secret=settings.stripe_webhook_secret,
    )
