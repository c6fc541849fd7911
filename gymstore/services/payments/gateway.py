from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Literal

from gymstore.core.config import Settings, settings
from gymstore.db.models.order import PaymentMethod

GatewayPaymentStatus = Literal["paid", "unpaid"]


class PaymentGatewayError(Exception):
    """Raised when a gateway call fails, times out or returns an unusable answer."""


@dataclass(slots=True)
class CheckoutLineItem:
    name: str
    unit_amount: Decimal
    quantity: int


@dataclass(slots=True)
class CheckoutSession:
    reference: str
    redirect_url: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway(ABC):
    method: PaymentMethod

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @abstractmethod
    def create_checkout_session(
        self,
        order_id: int,
        amount: Decimal,
        currency: str,
        line_items: list[CheckoutLineItem],
        success_url: str,
        failure_url: str,
    ) -> CheckoutSession:
        raise NotImplementedError

    @abstractmethod
    def fetch_order_status(self, reference: str) -> GatewayPaymentStatus:
        raise NotImplementedError


def get_gateway(method: PaymentMethod, config: Settings) -> PaymentGateway:
    if method == PaymentMethod.STRIPE:
        from .stripe_gateway import StripeGateway

        return StripeGateway(config)
    if method == PaymentMethod.RAZORPAY:
        from .razorpay_gateway import RazorpayGateway

        return RazorpayGateway(config)
    raise ValueError(f"Unsupported payment gateway {method}")


GatewayResolver = Callable[[PaymentMethod], PaymentGateway]


def resolve_gateway(method: PaymentMethod) -> PaymentGateway:
    return get_gateway(method, settings)
