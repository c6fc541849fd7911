from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gymstore.api.deps import get_current_user
from gymstore.db.models.user import User
from gymstore.db.session import get_db
from gymstore.schemas.cart import CartAddRequest, CartResponse, CartUpdateRequest
from gymstore.services import cart_service

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartResponse, status_code=status.HTTP_200_OK)
def get_cart(current_user: User = Depends(get_current_user)) -> CartResponse:
    return CartResponse(cart_data=cart_service.get_cart(current_user))


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_200_OK)
def add_item(
    payload: CartAddRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CartResponse:
    cart = cart_service.add_to_cart(db, current_user, payload.product_id, payload.size)
    return CartResponse(cart_data=cart)


@router.put("/items", response_model=CartResponse, status_code=status.HTTP_200_OK)
def update_item(
    payload: CartUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CartResponse:
    cart = cart_service.update_cart_item(db, current_user, payload.product_id, payload.size, payload.quantity)
    return CartResponse(cart_data=cart)


@router.delete("", response_model=CartResponse, status_code=status.HTTP_200_OK)
def clear_cart(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CartResponse:
    return CartResponse(cart_data=cart_service.clear_cart(db, current_user))
