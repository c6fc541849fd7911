from pydantic import BaseModel, Field


class CartAddRequest(BaseModel):
    product_id: int
    size: str = Field(min_length=1, max_length=20)


class CartUpdateRequest(BaseModel):
    product_id: int
    size: str = Field(min_length=1, max_length=20)
    quantity: int = Field(ge=0, le=100)


class CartResponse(BaseModel):
    cart_data: dict[str, dict[str, int]]
