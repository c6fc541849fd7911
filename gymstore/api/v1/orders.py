from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gymstore.api.deps import get_current_user, get_gateway_resolver, get_request_origin, require_roles
from gymstore.api.pagination import LimitParam, OffsetParam
from gymstore.db.models import OrderStatus, User, UserRole
from gymstore.db.session import get_db
from gymstore.schemas.order import (
    AdminOrderResponse,
    CheckoutSessionResponse,
    OrderCancelResponse,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderDetailsUpdateRequest,
    OrderResponse,
    OrderStatusUpdateRequest,
    OrderStatusUpdateResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from gymstore.services import order_service
from gymstore.services.notification_service import EmailSender, get_email_sender
from gymstore.services.payments import GatewayResolver

router = APIRouter(prefix="/orders", tags=["orders"])

PAYMENT_CONFIRMED_MESSAGE = "Payment confirmed"
PAYMENT_FAILED_MESSAGE = "Payment failed. The order was removed."


@router.post("", response_model=OrderCreateResponse, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: OrderCreateRequest,
    current_user: User = Depends(get_current_user),
    resolve_gateway: GatewayResolver = Depends(get_gateway_resolver),
    origin: str = Depends(get_request_origin),
    db: Session = Depends(get_db),
) -> OrderCreateResponse:
    result = order_service.create_order(db, current_user, payload, resolve_gateway, origin)
    checkout = None
    if result.session is not None:
        checkout = CheckoutSessionResponse(
            provider=payload.payment_method,
            reference=result.session.reference,
            redirect_url=result.session.redirect_url,
            payload=result.session.payload,
        )
    return OrderCreateResponse(order=OrderResponse.model_validate(result.order), checkout=checkout)


@router.post("/verify", response_model=PaymentVerifyResponse, status_code=status.HTTP_200_OK)
def verify_payment(
    payload: PaymentVerifyRequest,
    current_user: User = Depends(get_current_user),
    resolve_gateway: GatewayResolver = Depends(get_gateway_resolver),
    db: Session = Depends(get_db),
) -> PaymentVerifyResponse:
    order = order_service.confirm_gateway_payment(
        db, payload.order_id, payload.success, resolve_gateway, current_user
    )
    if order is None:
        return PaymentVerifyResponse(success=False, message=PAYMENT_FAILED_MESSAGE)
    return PaymentVerifyResponse(
        success=True,
        message=PAYMENT_CONFIRMED_MESSAGE,
        order=OrderResponse.model_validate(order),
    )


@router.get("/me", response_model=list[OrderResponse], status_code=status.HTTP_200_OK)
def list_my_orders(
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[OrderResponse]:
    orders = order_service.list_user_orders(db, current_user, limit, offset)
    return [OrderResponse.model_validate(order) for order in orders]


@router.get("", response_model=list[AdminOrderResponse], status_code=status.HTTP_200_OK)
def list_all_orders(
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> list[AdminOrderResponse]:
    orders = order_service.list_orders(db, limit, offset, status_filter=status_filter)
    return [AdminOrderResponse.model_validate(order) for order in orders]


@router.get("/{order_id}", response_model=OrderResponse, status_code=status.HTTP_200_OK)
def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrderResponse:
    return OrderResponse.model_validate(order_service.get_order(db, order_id, current_user))


@router.patch("/{order_id}/status", response_model=OrderStatusUpdateResponse, status_code=status.HTTP_200_OK)
def change_order_status(
    order_id: int,
    payload: OrderStatusUpdateRequest,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    email_sender: EmailSender = Depends(get_email_sender),
    db: Session = Depends(get_db),
) -> OrderStatusUpdateResponse:
    change = order_service.update_status(db, order_id, payload.status, email_sender)
    notification = change.notification
    return OrderStatusUpdateResponse(
        order=AdminOrderResponse.model_validate(change.order),
        notification_sent=notification.sent if notification else None,
        notification_error=notification.error if notification else None,
    )


@router.patch("/{order_id}/details", response_model=AdminOrderResponse, status_code=status.HTTP_200_OK)
def change_order_details(
    order_id: int,
    payload: OrderDetailsUpdateRequest,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> AdminOrderResponse:
    order = order_service.update_order_details(db, order_id, payload)
    return AdminOrderResponse.model_validate(order)


@router.post("/{order_id}/cancel", response_model=OrderCancelResponse, status_code=status.HTTP_200_OK)
def cancel_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    email_sender: EmailSender = Depends(get_email_sender),
    db: Session = Depends(get_db),
) -> OrderCancelResponse:
    change = order_service.cancel_order(db, order_id, email_sender, current_user)
    return OrderCancelResponse(
        order=OrderResponse.model_validate(change.order),
        notification_sent=change.notification.sent,
        notification_error=change.notification.error,
    )
