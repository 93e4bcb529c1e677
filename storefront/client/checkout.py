"""Checkout state machine for guest and signed-in customers.

    collecting-info -> awaiting-payment-token -> submitting-order -> success
                                                                  \-> failed -> (retry) collecting-info

A provider error while tokenizing drops back to collecting-info. The order
endpoint is only ever called with a payment token in hand.
"""
import logging
import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Optional

from pydantic import ValidationError

from storefront.client.address_book import AddressBook
from storefront.client.api import StorefrontClient
from storefront.client.cart import Cart
from storefront.client.errors import (
    CheckoutValidationError,
    ConnectivityError,
    InvalidStateError,
    MissingPaymentToken,
    PaymentTokenError,
    StorefrontError,
)
from storefront.client.payments import CardDetails, PaymentProvider
from storefront.schemas.checkout_schemas import (
    CustomerInfo,
    GuestOrderRequest,
    InlineAddress,
    OrderTotalIn,
    SavedAddressRef,
    UserOrderRequest,
)
from storefront.services.pricing import OrderTotals, PricingRules

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


class CheckoutState(str, Enum):
    COLLECTING_INFO = "collecting-info"
    AWAITING_PAYMENT_TOKEN = "awaiting-payment-token"
    SUBMITTING_ORDER = "submitting-order"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ContactInfo:
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""


@dataclass
class ShippingForm:
    full_name: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = "US"
    phone_number: str = ""

    def to_inline(self) -> InlineAddress:
        return InlineAddress(
            kind="inline",
            full_name=self.full_name or None,
            address1=self.address1,
            address2=self.address2 or None,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country or "US",
            phone_number=self.phone_number or None,
        )


def _humanize(field_name: str) -> str:
    return field_name.replace("_", " ")


def _update(target, values: dict):
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            raise TypeError(f"unknown field {key!r}")
        setattr(target, key, value)


class CheckoutFlow:
    flow = ""

    def __init__(
        self,
        client: StorefrontClient,
        cart: Cart,
        payment_provider: PaymentProvider,
        rules: PricingRules = PricingRules(),
    ):
        self.client = client
        self.cart = cart
        self.payment_provider = payment_provider
        self.rules = rules

        self.state = CheckoutState.COLLECTING_INFO
        self.contact = ContactInfo()
        self.shipping = ShippingForm()
        self.payment_token: Optional[str] = None
        self.order_id: Optional[int] = None
        self.error: Optional[str] = None

    # form editing

    def _require(self, *states: CheckoutState):
        if self.state not in states:
            raise InvalidStateError(
                f"Cannot do this while checkout is {self.state.value}"
            )

    def update_contact(self, **values):
        self._require(CheckoutState.COLLECTING_INFO)
        _update(self.contact, values)

    def update_shipping(self, **values):
        self._require(CheckoutState.COLLECTING_INFO)
        _update(self.shipping, values)

    def totals(self) -> OrderTotals:
        return self.cart.totals(self.rules)

    def _order_total(self) -> OrderTotalIn:
        return OrderTotalIn(**self.totals().as_dict())

    def validate(self) -> Dict[str, str]:
        errors = {}
        if not self.contact.email:
            errors["email"] = "Please fill in your email"
        elif not EMAIL_PATTERN.fullmatch(self.contact.email):
            errors["email"] = "Please enter a valid email address"
        if self.cart.is_empty:
            errors["cart"] = "Your cart is empty"
        return errors

    # transitions

    def proceed_to_payment(self):
        self._require(CheckoutState.COLLECTING_INFO)

        errors = self.validate()
        if errors:
            self.error = next(iter(errors.values()))
            raise CheckoutValidationError(errors)

        self.error = None
        self.state = CheckoutState.AWAITING_PAYMENT_TOKEN

    def back_to_info(self):
        self._require(CheckoutState.AWAITING_PAYMENT_TOKEN)
        self.payment_token = None
        self.state = CheckoutState.COLLECTING_INFO

    def tokenize_payment(self, card: CardDetails) -> str:
        self._require(CheckoutState.AWAITING_PAYMENT_TOKEN)

        try:
            token = self.payment_provider.tokenize(card)
        except PaymentTokenError as e:
            self.error = e.message
            self.state = CheckoutState.COLLECTING_INFO
            raise

        self.payment_token = token
        return token

    def submit_order(self, payment_token: Optional[str] = None) -> int:
        token = payment_token or self.payment_token
        if not token:
            self.error = MissingPaymentToken.message
            raise MissingPaymentToken()

        self._require(CheckoutState.AWAITING_PAYMENT_TOKEN)
        self.payment_token = token
        self.state = CheckoutState.SUBMITTING_ORDER

        try:
            if not self.client.is_healthy():
                raise ConnectivityError("Cannot connect to server. Please try again later.")
            order_id = self._send(token)
        except ValidationError as e:
            # form data the order schema refuses goes back to the form
            errors = {
                str(err["loc"][-1]) if err["loc"] else "form": err["msg"]
                for err in e.errors()
            }
            logger.warning(f"{self.flow} checkout rejected by order schema: {errors}")
            self.payment_token = None
            self.error = next(iter(errors.values()))
            self.state = CheckoutState.COLLECTING_INFO
            raise CheckoutValidationError(errors) from e
        except StorefrontError as e:
            logger.warning(f"{self.flow} checkout failed: {e.message}")
            self.error = e.message
            self.state = CheckoutState.FAILED
            raise

        self.cart.clear()
        self.order_id = order_id
        self.payment_token = None
        self.error = None
        self.state = CheckoutState.SUCCESS
        logger.info(f"{self.flow} checkout placed order {order_id}")
        return order_id

    def place_order(self, card: CardDetails) -> int:
        """Run the remaining steps from wherever the flow currently is."""
        if self.state == CheckoutState.COLLECTING_INFO:
            self.proceed_to_payment()
        if not self.payment_token:
            self.tokenize_payment(card)
        return self.submit_order()

    def retry(self):
        self._require(CheckoutState.FAILED)
        self.payment_token = None
        self.error = None
        self.state = CheckoutState.COLLECTING_INFO

    def cancel(self):
        self._require(
            CheckoutState.COLLECTING_INFO,
            CheckoutState.AWAITING_PAYMENT_TOKEN,
            CheckoutState.FAILED,
        )
        self.contact = ContactInfo()
        self.shipping = ShippingForm()
        self.payment_token = None
        self.error = None
        self.state = CheckoutState.CANCELLED

    def _send(self, payment_token: str) -> int:
        raise NotImplementedError


class GuestCheckout(CheckoutFlow):
    flow = "guest"

    REQUIRED_SHIPPING = ("address1", "city", "state", "postal_code")

    def validate(self) -> Dict[str, str]:
        errors = {}
        for name in ("first_name", "last_name"):
            if not getattr(self.contact, name):
                errors[name] = f"Please fill in your {_humanize(name)}"
        for name in self.REQUIRED_SHIPPING:
            if not getattr(self.shipping, name):
                errors[name] = f"Please fill in your {_humanize(name)}"
        errors.update(super().validate())
        return errors

    def _send(self, payment_token: str) -> int:
        lines = self.cart.to_order_lines()
        intent = self.client.create_payment_intent(lines, flow=self.flow)

        shipping = self.shipping.to_inline()
        if not shipping.full_name:
            shipping.full_name = f"{self.contact.first_name} {self.contact.last_name}"

        request = GuestOrderRequest(
            flow="guest",
            customer=CustomerInfo(
                email=self.contact.email,
                first_name=self.contact.first_name,
                last_name=self.contact.last_name,
                phone=self.contact.phone or None,
            ),
            shipping_address=shipping,
            cart_items=lines,
            order_total=self._order_total(),
            payment_intent_id=intent.payment_intent_id,
            payment_method_id=payment_token,
        )
        return self.client.create_guest_order(request)


class UserCheckout(CheckoutFlow):
    """Checkout for a signed-in customer, shipping to a saved or typed address."""

    flow = "user"

    def __init__(self, client: StorefrontClient, cart: Cart, payment_provider: PaymentProvider,
                 rules: PricingRules = PricingRules(), address_book: Optional[AddressBook] = None):
        super().__init__(client, cart, payment_provider, rules)
        self.address_book = address_book or AddressBook(client)
        self.selected_address_id: Optional[int] = None

    def load_addresses(self):
        self.address_book.refresh()
        preferred = self.address_book.preferred()
        self.selected_address_id = preferred.id if preferred else None

    def select_address(self, address_id: Optional[int]):
        self._require(CheckoutState.COLLECTING_INFO)
        if address_id is not None and self.address_book.get(address_id) is None:
            raise KeyError(address_id)
        self.selected_address_id = address_id

    def validate(self) -> Dict[str, str]:
        errors = {}
        if self.selected_address_id is None:
            for name in GuestCheckout.REQUIRED_SHIPPING:
                if not getattr(self.shipping, name):
                    errors["shipping"] = "Please select or enter a shipping address"
                    break
        errors.update(super().validate())
        return errors

    def _customer(self) -> Optional[CustomerInfo]:
        if not (self.contact.first_name and self.contact.last_name):
            # the server fills names in from the account
            return None
        return CustomerInfo(
            email=self.contact.email,
            first_name=self.contact.first_name,
            last_name=self.contact.last_name,
            phone=self.contact.phone or None,
        )

    def _send(self, payment_token: str) -> int:
        if self.selected_address_id is not None:
            shipping = SavedAddressRef(kind="saved", address_id=self.selected_address_id)
        else:
            shipping = self.shipping.to_inline()

        request = UserOrderRequest(
            flow="user",
            customer=self._customer(),
            shipping=shipping,
            items=self.cart.to_order_lines(),
            order_total=self._order_total(),
            payment_method_id=payment_token,
        )
        return self.client.create_user_order(request)
