from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime
from typing import List, Literal

from storefront.schemas.cart import CartLineResponse, CartSummary


class CheckoutForm(BaseModel):
    full_name: str
    email: EmailStr
    phone: str
    address: str
    city: str
    payment_method: Literal["cod", "transfer", "ewallet"] = "cod"

    @field_validator("full_name", "phone", "address", "city", mode="before")
    @classmethod
    def not_blank(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("This field is required")
        return str(value).strip()


class OrderConfirmation(BaseModel):
    order_number: str
    customer: CheckoutForm
    items: List[CartLineResponse]
    summary: CartSummary
    placed_at: datetime
    clear_at: float
