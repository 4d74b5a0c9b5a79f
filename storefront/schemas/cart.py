from pydantic import BaseModel
from typing import List, Optional


class CartItemAdd(BaseModel):
    product_id: int
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int = 1


class CartItemUpdate(BaseModel):
    product_id: int
    quantity: int


class CartLineResponse(BaseModel):
    product_id: int
    name: str = ""
    category: str = ""
    image: str = ""
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    price: int
    original_price: Optional[int] = None
    discount: int = 0
    line_total: int

    class Config:
        extra = "ignore"


class CartSummary(BaseModel):
    subtotal: int
    discount_total: int
    shipping_cost: int
    free_shipping_remaining: int
    free_shipping_progress: float
    total: int
    item_count: int
    line_count: int


class CartResponse(BaseModel):
    items: List[CartLineResponse]
    summary: CartSummary
    cart_count: int
