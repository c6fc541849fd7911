from typing import Literal

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from gymstore.api.deps import require_roles
from gymstore.api.pagination import LimitParam, OffsetParam
from gymstore.db.models.user import User, UserRole
from gymstore.db.session import get_db
from gymstore.schemas.product import ProductCreateRequest, ProductResponse, ProductUpdateRequest
from gymstore.services import product_service
from gymstore.services.media_service import MediaUploader, get_media_uploader

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductResponse], status_code=status.HTTP_200_OK)
def list_products(
    category: str | None = Query(default=None),
    bestseller: bool | None = Query(default=None),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    db: Session = Depends(get_db),
) -> list[ProductResponse]:
    products = product_service.list_products(db, limit, offset, category=category, bestseller=bestseller)
    return [ProductResponse.model_validate(product) for product in products]


@router.get("/{product_id}", response_model=ProductResponse, status_code=status.HTTP_200_OK)
def get_product(product_id: int, db: Session = Depends(get_db)) -> ProductResponse:
    return ProductResponse.model_validate(product_service.get_product(db, product_id))


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreateRequest,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> ProductResponse:
    return ProductResponse.model_validate(product_service.create_product(db, payload))


@router.patch("/{product_id}", response_model=ProductResponse, status_code=status.HTTP_200_OK)
def update_product(
    product_id: int,
    payload: ProductUpdateRequest,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> ProductResponse:
    return ProductResponse.model_validate(product_service.update_product(db, product_id, payload))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> Response:
    product_service.delete_product(db, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{product_id}/media", response_model=ProductResponse, status_code=status.HTTP_200_OK)
def upload_product_media(
    product_id: int,
    files: list[UploadFile] = File(...),
    kind: Literal["image", "video"] = Query(default="image"),
    _: User = Depends(require_roles(UserRole.ADMIN)),
    uploader: MediaUploader = Depends(get_media_uploader),
    db: Session = Depends(get_db),
) -> ProductResponse:
    product = product_service.attach_product_media(db, product_id, files, uploader, resource_type=kind)
    return ProductResponse.model_validate(product)
