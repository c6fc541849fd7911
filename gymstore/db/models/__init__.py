from gymstore.db.models.booking import Booking, BookingStatus
from gymstore.db.models.email_otp import EmailOtp
from gymstore.db.models.order import Order, OrderStatus, PaymentMethod
from gymstore.db.models.product import Product
from gymstore.db.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "EmailOtp",
    "Product",
    "Order",
    "OrderStatus",
    "PaymentMethod",
    "Booking",
    "BookingStatus",
]
