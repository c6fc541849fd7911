import logging

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gymstore.db.models import Product
from gymstore.schemas.product import ProductCreateRequest, ProductUpdateRequest
from gymstore.services.media_service import MediaUploader, MediaUploadError, ResourceType

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND_DETAIL = "Product not found"
MEDIA_UPLOAD_FAILED_DETAIL = "Media upload failed. Try again later."


def get_product(db: Session, product_id: int) -> Product:
    product = db.scalar(select(Product).where(Product.id == product_id))
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND_DETAIL)
    return product


def list_products(
    db: Session,
    limit: int,
    offset: int,
    category: str | None = None,
    bestseller: bool | None = None,
) -> list[Product]:
    query = select(Product)
    if category is not None:
        query = query.where(Product.category == category)
    if bestseller is not None:
        query = query.where(Product.bestseller == bestseller)
    query = query.order_by(Product.created_at.desc(), Product.id.desc()).limit(limit).offset(offset)
    return list(db.scalars(query).all())


def create_product(db: Session, payload: ProductCreateRequest) -> Product:
    product = Product(**payload.model_dump(), image_urls=[], video_urls=[])
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("product_created product_id=%s", product.id)
    return product


def update_product(db: Session, product_id: int, payload: ProductUpdateRequest) -> Product:
    product = get_product(db, product_id)
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(product, field_name, value)
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> None:
    product = get_product(db, product_id)
    db.delete(product)
    db.commit()
    logger.info("product_deleted product_id=%s", product_id)


def attach_product_media(
    db: Session,
    product_id: int,
    files: list[UploadFile],
    uploader: MediaUploader,
    resource_type: ResourceType = "image",
) -> Product:
    product = get_product(db, product_id)

    urls: list[str] = []
    for upload in files:
        try:
            urls.append(uploader.upload(upload.file.read(), upload.filename or "upload", resource_type))
        except MediaUploadError:
            logger.exception("media_upload_failed product_id=%s filename=%s", product_id, upload.filename)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=MEDIA_UPLOAD_FAILED_DETAIL
            ) from None

    if resource_type == "video":
        product.video_urls = [*product.video_urls, *urls]
    else:
        product.image_urls = [*product.image_urls, *urls]
    db.commit()
    db.refresh(product)
    return product
