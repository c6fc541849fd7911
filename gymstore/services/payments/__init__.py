from .gateway import (
    CheckoutLineItem,
    CheckoutSession,
    GatewayPaymentStatus,
    GatewayResolver,
    PaymentGateway,
    PaymentGatewayError,
    get_gateway,
    resolve_gateway,
)
from .razorpay_gateway import RazorpayGateway
from .stripe_gateway import StripeGateway

__all__ = [
    "CheckoutLineItem",
    "CheckoutSession",
    "GatewayPaymentStatus",
    "GatewayResolver",
    "PaymentGateway",
    "PaymentGatewayError",
    "get_gateway",
    "resolve_gateway",
    "RazorpayGateway",
    "StripeGateway",
]
