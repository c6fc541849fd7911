"""Order lifecycle and payment reconciliation.

Status flow::

    Payment Pending -> Order Placed -> Delivered
          |                 |
          +---> Cancelled <-+

Cash-on-delivery orders start in ``Order Placed``. Gateway orders start in
``Payment Pending`` and leave it only through gateway verification: a paid
order is promoted and the owner's cart is cleared; an unpaid one is deleted.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gymstore.core.config import settings
from gymstore.core.metrics import ORDER_TRANSITIONS
from gymstore.db.models import Order, OrderStatus, PaymentMethod, Product, User, UserRole
from gymstore.schemas.order import OrderCreateRequest, OrderDetailsUpdateRequest, OrderItemRequest
from gymstore.services.notification_service import EmailSender, NotificationResult, notify_order_cancelled
from gymstore.services.payments import (
    CheckoutLineItem,
    CheckoutSession,
    GatewayResolver,
    PaymentGateway,
    PaymentGatewayError,
)

logger = logging.getLogger(__name__)

ORDER_NOT_FOUND_DETAIL = "Order not found"
EMPTY_ORDER_DETAIL = "Order must contain at least one item"
AMOUNT_MISMATCH_DETAIL = "Order amount does not match item prices"
ORDER_ALREADY_CANCELLED_DETAIL = "Order is already cancelled"
DELIVERED_NOT_CANCELLABLE_DETAIL = "Delivered orders cannot be cancelled"
PAYMENT_NOT_CONFIRMED_DETAIL = "Payment has not been confirmed for this order"
ORDER_NOT_AWAITING_PAYMENT_DETAIL = "Order is not awaiting payment"
GATEWAY_UNAVAILABLE_DETAIL = "Payment gateway is unavailable. Try again later."
NOT_ORDER_OWNER_DETAIL = "Not enough permissions"

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PAYMENT_PENDING: frozenset({OrderStatus.ORDER_PLACED, OrderStatus.CANCELLED}),
    OrderStatus.ORDER_PLACED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


@dataclass(slots=True)
class OrderCheckout:
    order: Order
    session: CheckoutSession | None = None


@dataclass(slots=True)
class OrderStatusChange:
    order: Order
    notification: NotificationResult | None = None


def check_transition(order: Order, new_status: OrderStatus) -> None:
    current = OrderStatus(order.status)
    if new_status == OrderStatus.CANCELLED:
        if current == OrderStatus.CANCELLED:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ORDER_ALREADY_CANCELLED_DETAIL)
        if current == OrderStatus.DELIVERED:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DELIVERED_NOT_CANCELLABLE_DETAIL)

    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot change order status from {current.value} to {new_status.value}",
        )

    if current == OrderStatus.PAYMENT_PENDING and new_status == OrderStatus.ORDER_PLACED and not order.payment:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=PAYMENT_NOT_CONFIRMED_DETAIL)


def _record_transition(order_id: int, from_status: str, to_status: str) -> None:
    ORDER_TRANSITIONS.labels(from_status=from_status, to_status=to_status).inc()
    logger.info("order_status_changed order_id=%s from=%s to=%s", order_id, from_status, to_status)


def _price_items(db: Session, items: list[OrderItemRequest]) -> tuple[list[dict[str, Any]], Decimal]:
    product_ids = {item.product_id for item in items}
    products = {
        product.id: product
        for product in db.scalars(select(Product).where(Product.id.in_(product_ids))).all()
    }

    lines: list[dict[str, Any]] = []
    subtotal = Decimal("0")
    for item in items:
        product = products.get(item.product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Product {item.product_id} not found",
            )
        if item.size not in product.sizes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Size {item.size} is not available for {product.name}",
            )
        unit_price = product.effective_price
        lines.append(
            {
                "product_id": product.id,
                "name": product.name,
                "size": item.size,
                "quantity": item.quantity,
                "unit_price": str(unit_price),
            }
        )
        subtotal += unit_price * item.quantity
    return lines, subtotal


def _checkout_line_items(order: Order) -> list[CheckoutLineItem]:
    line_items = [
        CheckoutLineItem(
            name=f"{item['name']} ({item['size']})",
            unit_amount=Decimal(item["unit_price"]),
            quantity=item["quantity"],
        )
        for item in order.items
    ]
    if settings.delivery_charge > 0:
        line_items.append(CheckoutLineItem(name="Delivery Charges", unit_amount=settings.delivery_charge, quantity=1))
    return line_items


def _get_order(db: Session, order_id: int) -> Order:
    order = db.scalar(select(Order).where(Order.id == order_id).with_for_update())
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ORDER_NOT_FOUND_DETAIL)
    return order


def _ensure_owner_or_admin(order: Order, actor: User) -> None:
    if actor.role != UserRole.ADMIN.value and order.user_id != actor.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_ORDER_OWNER_DETAIL)


def get_order(db: Session, order_id: int, actor: User) -> Order:
    order = db.scalar(select(Order).where(Order.id == order_id))
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ORDER_NOT_FOUND_DETAIL)
    _ensure_owner_or_admin(order, actor)
    return order


def create_order(
    db: Session,
    user: User,
    payload: OrderCreateRequest,
    resolve_gateway: GatewayResolver,
    origin: str,
) -> OrderCheckout:
    if not payload.items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=EMPTY_ORDER_DETAIL)

    lines, subtotal = _price_items(db, payload.items)
    if payload.amount != subtotal + settings.delivery_charge:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=AMOUNT_MISMATCH_DETAIL)

    method = payload.payment_method
    gateway: PaymentGateway | None = None
    if method.is_gateway:
        try:
            gateway = resolve_gateway(method)
        except PaymentGatewayError:
            logger.exception("payment_gateway_unavailable method=%s user_id=%s", method.value, user.id)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=GATEWAY_UNAVAILABLE_DETAIL
            ) from None

    order = Order(
        user_id=user.id,
        items=lines,
        address=payload.address.model_dump(mode="json"),
        amount=payload.amount,
        payment_method=method.value,
        payment=False,
        status=(OrderStatus.PAYMENT_PENDING if gateway is not None else OrderStatus.ORDER_PLACED).value,
    )
    db.add(order)
    if gateway is None:
        user.clear_cart()
    db.commit()
    db.refresh(order)
    _record_transition(order.id, "New", order.status)

    if gateway is None:
        return OrderCheckout(order=order)

    success_url = f"{origin}/verify?success=true&orderId={order.id}"
    failure_url = f"{origin}/verify?success=false&orderId={order.id}"
    try:
        session = gateway.create_checkout_session(
            order_id=order.id,
            amount=order.amount,
            currency=settings.currency,
            line_items=_checkout_line_items(order),
            success_url=success_url,
            failure_url=failure_url,
        )
    except PaymentGatewayError:
        # the pending order stays for reconcile_stale_pending_orders
        logger.exception("checkout_session_failed order_id=%s method=%s", order.id, method.value)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=GATEWAY_UNAVAILABLE_DETAIL
        ) from None

    order.gateway_reference = session.reference
    db.commit()
    db.refresh(order)
    return OrderCheckout(order=order, session=session)


def _mark_paid(db: Session, order: Order) -> Order:
    previous = order.status
    order.payment = True
    order.status = OrderStatus.ORDER_PLACED.value
    owner = db.get(User, order.user_id)
    if owner:
        owner.clear_cart()
    db.commit()
    db.refresh(order)
    _record_transition(order.id, previous, order.status)
    return order


def _delete_unpaid_order(db: Session, order: Order, reason: str) -> None:
    order_id = order.id
    try:
        db.delete(order)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("unpaid_order_delete_failed order_id=%s reason=%s", order_id, reason)
        raise
    ORDER_TRANSITIONS.labels(from_status=OrderStatus.PAYMENT_PENDING.value, to_status="Deleted").inc()
    logger.info("unpaid_order_deleted order_id=%s reason=%s", order_id, reason)


def _gateway_reports_paid(order: Order, resolve_gateway: GatewayResolver) -> bool:
    gateway = resolve_gateway(PaymentMethod(order.payment_method))
    return gateway.fetch_order_status(order.gateway_reference) == "paid"


def confirm_gateway_payment(
    db: Session,
    order_id: int,
    success: bool,
    resolve_gateway: GatewayResolver,
    actor: User,
) -> Order | None:
    """Settle a gateway order after the customer returns from checkout.

    Returns the promoted order, or ``None`` when the payment failed and the
    pending order was deleted.
    """
    order = _get_order(db, order_id)
    _ensure_owner_or_admin(order, actor)

    if order.status == OrderStatus.ORDER_PLACED.value and order.payment:
        return order
    if order.status != OrderStatus.PAYMENT_PENDING.value:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ORDER_NOT_AWAITING_PAYMENT_DETAIL)

    if not success:
        _delete_unpaid_order(db, order, reason="checkout_failed")
        return None
    if not order.gateway_reference:
        _delete_unpaid_order(db, order, reason="missing_gateway_reference")
        return None

    try:
        paid = _gateway_reports_paid(order, resolve_gateway)
    except PaymentGatewayError:
        logger.exception("payment_verification_failed order_id=%s", order.id)
        paid = False

    if not paid:
        _delete_unpaid_order(db, order, reason="not_paid")
        return None
    return _mark_paid(db, order)


def _cancel(db: Session, order: Order, email_sender: EmailSender) -> OrderStatusChange:
    check_transition(order, OrderStatus.CANCELLED)
    previous = order.status
    order.status = OrderStatus.CANCELLED.value
    db.commit()
    db.refresh(order)
    _record_transition(order.id, previous, order.status)

    notification = notify_order_cancelled(email_sender, order)
    return OrderStatusChange(order=order, notification=notification)


def cancel_order(db: Session, order_id: int, email_sender: EmailSender, actor: User) -> OrderStatusChange:
    order = _get_order(db, order_id)
    _ensure_owner_or_admin(order, actor)
    return _cancel(db, order, email_sender)


def update_status(
    db: Session,
    order_id: int,
    new_status: OrderStatus,
    email_sender: EmailSender,
) -> OrderStatusChange:
    order = _get_order(db, order_id)
    if new_status == OrderStatus.CANCELLED:
        return _cancel(db, order, email_sender)

    check_transition(order, new_status)
    previous = order.status
    order.status = new_status.value
    if new_status == OrderStatus.DELIVERED:
        order.payment = True
    db.commit()
    db.refresh(order)
    _record_transition(order.id, previous, order.status)
    return OrderStatusChange(order=order)


def update_order_details(db: Session, order_id: int, payload: OrderDetailsUpdateRequest) -> Order:
    order = _get_order(db, order_id)
    changes = payload.model_dump(exclude_unset=True)
    for field_name, value in changes.items():
        setattr(order, field_name, value)
    db.commit()
    db.refresh(order)
    return order


def list_orders(db: Session, limit: int, offset: int, status_filter: OrderStatus | None = None) -> list[Order]:
    query = select(Order)
    if status_filter is not None:
        query = query.where(Order.status == status_filter.value)
    query = query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset)
    return list(db.scalars(query).all())


def list_user_orders(db: Session, user: User, limit: int, offset: int) -> list[Order]:
    return list(
        db.scalars(
            select(Order)
            .where(Order.user_id == user.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .offset(offset)
        ).all()
    )


def reconcile_stale_pending_orders(
    db: Session,
    resolve_gateway: GatewayResolver,
    now: datetime | None = None,
) -> dict[str, int]:
    current_time = now or datetime.now(UTC)
    cutoff = current_time - timedelta(minutes=settings.pending_order_ttl_minutes)
    stale_orders = db.scalars(
        select(Order)
        .where(Order.status == OrderStatus.PAYMENT_PENDING.value, Order.created_at < cutoff)
        .order_by(Order.id)
    ).all()

    result = {"promoted": 0, "deleted": 0, "skipped": 0}
    for order in stale_orders:
        if not order.gateway_reference:
            _delete_unpaid_order(db, order, reason="stale_without_session")
            result["deleted"] += 1
            continue
        try:
            paid = _gateway_reports_paid(order, resolve_gateway)
        except PaymentGatewayError:
            # retried on the next run
            logger.warning("stale_order_verification_failed order_id=%s", order.id, exc_info=True)
            result["skipped"] += 1
            continue
        if paid:
            _mark_paid(db, order)
            result["promoted"] += 1
        else:
            _delete_unpaid_order(db, order, reason="stale_unpaid")
            result["deleted"] += 1
    return result
