import pytest
from fastapi import HTTPException

from gymstore.db.models import Order, OrderStatus
from gymstore.services.order_service import check_transition


def _order(status: OrderStatus, payment: bool = False) -> Order:
    return Order(status=status.value, payment=payment)


@pytest.mark.parametrize(
    ("current", "payment", "target"),
    [
        (OrderStatus.PAYMENT_PENDING, True, OrderStatus.ORDER_PLACED),
        (OrderStatus.PAYMENT_PENDING, False, OrderStatus.CANCELLED),
        (OrderStatus.ORDER_PLACED, False, OrderStatus.DELIVERED),
        (OrderStatus.ORDER_PLACED, False, OrderStatus.CANCELLED),
    ],
)
def test_allowed_transitions(current, payment, target):
    check_transition(_order(current, payment), target)


@pytest.mark.parametrize(
    ("current", "target", "detail"),
    [
        (OrderStatus.PAYMENT_PENDING, OrderStatus.ORDER_PLACED, "Payment has not been confirmed for this order"),
        (OrderStatus.DELIVERED, OrderStatus.CANCELLED, "Delivered orders cannot be cancelled"),
        (OrderStatus.CANCELLED, OrderStatus.CANCELLED, "Order is already cancelled"),
        (OrderStatus.PAYMENT_PENDING, OrderStatus.DELIVERED, "Cannot change order status from Payment Pending to Delivered"),
        (OrderStatus.CANCELLED, OrderStatus.ORDER_PLACED, "Cannot change order status from Cancelled to Order Placed"),
        (OrderStatus.DELIVERED, OrderStatus.ORDER_PLACED, "Cannot change order status from Delivered to Order Placed"),
    ],
)
def test_rejected_transitions(current, target, detail):
    with pytest.raises(HTTPException) as exc_info:
        check_transition(_order(current), target)

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == detail
