from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


def _clean_sizes(sizes: list[str]) -> list[str]:
    cleaned: list[str] = []
    for size in sizes:
        value = size.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


class ProductCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    discount: int = Field(default=0, ge=0, le=100)
    category: str = Field(min_length=1, max_length=80)
    sub_category: str = Field(min_length=1, max_length=80)
    sizes: list[str] = Field(min_length=1)
    bestseller: bool = False

    @field_validator("sizes")
    @classmethod
    def validate_sizes(cls, sizes: list[str]) -> list[str]:
        cleaned = _clean_sizes(sizes)
        if not cleaned:
            raise ValueError("at least one size is required")
        return cleaned


class ProductUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    discount: int | None = Field(default=None, ge=0, le=100)
    category: str | None = Field(default=None, min_length=1, max_length=80)
    sub_category: str | None = Field(default=None, min_length=1, max_length=80)
    sizes: list[str] | None = None
    bestseller: bool | None = None

    @field_validator("sizes")
    @classmethod
    def validate_sizes(cls, sizes: list[str] | None) -> list[str] | None:
        if sizes is None:
            return None
        cleaned = _clean_sizes(sizes)
        if not cleaned:
            raise ValueError("at least one size is required")
        return cleaned


class ProductResponse(BaseModel):
    id: int
    name: str
    description: str
    price: Decimal
    discount: int
    effective_price: Decimal
    category: str
    sub_category: str
    sizes: list[str]
    bestseller: bool
    image_urls: list[str]
    video_urls: list[str]
    created_at: datetime

    model_config = {"from_attributes": True}
