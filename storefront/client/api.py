import logging
from typing import Any, Dict, List, Optional

import requests

from storefront.client.errors import ConnectivityError, RequestTimeout, ServerError
from storefront.client.session import ApiSession
from storefront.schemas.address_schemas import AddressCreate, AddressRead, AddressUpdate
from storefront.schemas.checkout_schemas import (
    GuestOrderRequest,
    OrderCreatedResponse,
    OrderLine,
    PaymentIntentRequest,
    PaymentIntentResponse,
    UserOrderRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
HEALTH_TIMEOUT = 3
ORDER_TIMEOUT = 30


def _error_message(response: requests.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None

    if not isinstance(body, dict):
        return None

    detail = body.get("detail") or body.get("message") or body.get("error")
    if isinstance(detail, list):
        # pydantic validation errors
        return "; ".join(str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail)
    return detail


class StorefrontClient:
    """Blocking client for the storefront REST API."""

    def __init__(self, session: ApiSession):
        self.session = session

    def _request(self, method: str, path: str, *, timeout: float = DEFAULT_TIMEOUT, **kwargs) -> Any:
        url = self.session.url(path)
        try:
            response = self.session.http.request(
                method,
                url,
                headers=self.session.headers(),
                timeout=timeout,
                **kwargs,
            )
        except requests.Timeout:
            logger.warning(f"{method} {url} timed out after {timeout}s")
            raise RequestTimeout()
        except requests.ConnectionError:
            logger.warning(f"{method} {url} got no response")
            raise ConnectivityError()

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"{method} {url} failed ({response.status_code}): {message}")
            raise ServerError(response.status_code, message)

        if not response.content:
            return None
        return response.json()

    # health

    def is_healthy(self, timeout: float = HEALTH_TIMEOUT) -> bool:
        try:
            body = self._request("GET", "/api/health", timeout=timeout)
        except (ConnectivityError, RequestTimeout, ServerError):
            return False
        return bool(body) and body.get("status") == "ok"

    # auth

    def login(self, email: str, password: str) -> str:
        body = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.session.sign_in(body["access_token"])
        return body["access_token"]

    # payment + orders

    def create_payment_intent(self, items: List[OrderLine], flow: str = "guest") -> PaymentIntentResponse:
        payload = PaymentIntentRequest(items=items, flow=flow)
        body = self._request(
            "POST",
            "/api/payment/create-intent",
            json=payload.model_dump(mode="json", by_alias=True),
        )
        return PaymentIntentResponse.model_validate(body)

    def create_guest_order(self, request: GuestOrderRequest, timeout: float = ORDER_TIMEOUT) -> int:
        body = self._request(
            "POST",
            "/api/payment/create-order",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
            timeout=timeout,
        )
        return OrderCreatedResponse.model_validate(body).order_id

    def create_user_order(self, request: UserOrderRequest, timeout: float = ORDER_TIMEOUT) -> int:
        body = self._request(
            "POST",
            "/api/orders/create-order",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
            timeout=timeout,
        )
        return OrderCreatedResponse.model_validate(body).order_id

    def get_order(self, order_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/payment/order/{order_id}")

    # addresses

    def list_addresses(self) -> List[AddressRead]:
        body = self._request("GET", "/api/addresses")
        return [AddressRead.model_validate(a) for a in body]

    def create_address(self, data: AddressCreate) -> AddressRead:
        body = self._request("POST", "/api/addresses", json=data.model_dump(mode="json"))
        return AddressRead.model_validate(body)

    def update_address(self, address_id: int, data: AddressUpdate) -> AddressRead:
        body = self._request(
            "PUT",
            f"/api/addresses/{address_id}",
            json=data.model_dump(mode="json", exclude_unset=True),
        )
        return AddressRead.model_validate(body)

    def delete_address(self, address_id: int) -> None:
        self._request("DELETE", f"/api/addresses/{address_id}")

    def set_default_address(self, address_id: int) -> AddressRead:
        body = self._request("PUT", f"/api/addresses/{address_id}/default")
        return AddressRead.model_validate(body)
