import logging
from decimal import Decimal

import httpx

from gymstore.core.config import Settings
from gymstore.db.models.order import PaymentMethod

from .gateway import (
    CheckoutLineItem,
    CheckoutSession,
    GatewayPaymentStatus,
    PaymentGateway,
    PaymentGatewayError,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class RazorpayGateway(PaymentGateway):
    """Razorpay Orders API over plain HTTP.

    Razorpay checkout runs in the browser: the created order id and the public
    key id are handed to the frontend, and the order is later looked up by id
    to learn whether it was paid.
    """

    method = PaymentMethod.RAZORPAY

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        super().__init__(settings)
        if not settings.razorpay_key_id or not settings.razorpay_key_secret:
            raise PaymentGatewayError("Razorpay credentials are not configured")
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.settings.razorpay_api_url,
            auth=(self.settings.razorpay_key_id, self.settings.razorpay_key_secret),
            timeout=self.settings.gateway_timeout_seconds,
            transport=self._transport,
        )

    def create_checkout_session(
        self,
        order_id: int,
        amount: Decimal,
        currency: str,
        line_items: list[CheckoutLineItem],
        success_url: str,
        failure_url: str,
    ) -> CheckoutSession:
        body = {
            "amount": to_minor_units(amount),
            "currency": currency.upper(),
            "receipt": str(order_id),
            "notes": {"order_id": str(order_id)},
        }
        try:
            with self._client() as client:
                response = client.post("/orders", json=body)
                response.raise_for_status()
                data = response.json()
            reference = data["id"]
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            raise PaymentGatewayError(f"Razorpay order creation failed: {exc}") from exc

        logger.info("razorpay_order_created order_id=%s razorpay_order_id=%s", order_id, reference)
        return CheckoutSession(
            reference=reference,
            payload={
                "id": reference,
                "amount": data.get("amount", body["amount"]),
                "currency": data.get("currency", body["currency"]),
                "receipt": data.get("receipt", body["receipt"]),
                "key_id": self.settings.razorpay_key_id,
                "callback_url": success_url,
                "cancel_url": failure_url,
            },
        )

    def fetch_order_status(self, reference: str) -> GatewayPaymentStatus:
        try:
            with self._client() as client:
                response = client.get(f"/orders/{reference}")
                response.raise_for_status()
                status = response.json()["status"]
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            raise PaymentGatewayError(f"Razorpay order lookup failed: {exc}") from exc
        return "paid" if status == "paid" else "unpaid"
