from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from gymstore.db.models import User
from gymstore.services.product_service import get_product

SIZE_NOT_AVAILABLE_DETAIL = "Size is not available for this product"


def _validated_key(db: Session, product_id: int, size: str) -> str:
    product = get_product(db, product_id)
    if size not in product.sizes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=SIZE_NOT_AVAILABLE_DETAIL)
    return str(product.id)


def _copy_cart(user: User) -> dict[str, dict[str, int]]:
    # JSON columns only detect reassignment, so mutate a copy
    return {product_id: dict(sizes) for product_id, sizes in (user.cart_data or {}).items()}


def get_cart(user: User) -> dict[str, dict[str, int]]:
    return user.cart_data or {}


def add_to_cart(db: Session, user: User, product_id: int, size: str) -> dict[str, dict[str, int]]:
    key = _validated_key(db, product_id, size)
    cart = _copy_cart(user)
    sizes = cart.setdefault(key, {})
    sizes[size] = sizes.get(size, 0) + 1
    user.cart_data = cart
    db.commit()
    return cart


def update_cart_item(
    db: Session,
    user: User,
    product_id: int,
    size: str,
    quantity: int,
) -> dict[str, dict[str, int]]:
    key = _validated_key(db, product_id, size)
    cart = _copy_cart(user)
    if quantity == 0:
        sizes = cart.get(key, {})
        sizes.pop(size, None)
        if not sizes:
            cart.pop(key, None)
    else:
        cart.setdefault(key, {})[size] = quantity
    user.cart_data = cart
    db.commit()
    return cart


def clear_cart(db: Session, user: User) -> dict[str, dict[str, int]]:
    user.clear_cart()
    db.commit()
    return {}
