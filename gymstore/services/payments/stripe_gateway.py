import logging
from decimal import Decimal

import stripe

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


class StripeGateway(PaymentGateway):
    method = PaymentMethod.STRIPE

    def __init__(self, settings: Settings, client: stripe.StripeClient | None = None) -> None:
        super().__init__(settings)
        if not settings.stripe_secret_key:
            raise PaymentGatewayError("Stripe secret key is not configured")
        # per-instance client; the module-level stripe defaults stay untouched
        self._client = client or stripe.StripeClient(
            settings.stripe_secret_key,
            http_client=stripe.RequestsClient(timeout=settings.gateway_timeout_seconds),
            max_network_retries=0,
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
        try:
            session = self._client.v1.checkout.sessions.create(
                params={
                    "mode": "payment",
                    "success_url": success_url,
                    "cancel_url": failure_url,
                    "client_reference_id": str(order_id),
                    "metadata": {"order_id": str(order_id)},
                    "line_items": [
                        {
                            "price_data": {
                                "currency": currency.lower(),
                                "product_data": {"name": item.name},
                                "unit_amount": to_minor_units(item.unit_amount),
                            },
                            "quantity": item.quantity,
                        }
                        for item in line_items
                    ],
                }
            )
        except stripe.StripeError as exc:
            raise PaymentGatewayError(f"Stripe checkout session failed: {exc}") from exc

        logger.info("stripe_session_created order_id=%s session_id=%s", order_id, session.id)
        return CheckoutSession(reference=session.id, redirect_url=session.url)

    def fetch_order_status(self, reference: str) -> GatewayPaymentStatus:
        try:
            session = self._client.v1.checkout.sessions.retrieve(reference)
        except stripe.StripeError as exc:
            raise PaymentGatewayError(f"Stripe session lookup failed: {exc}") from exc
        return "paid" if session.payment_status == "paid" else "unpaid"
