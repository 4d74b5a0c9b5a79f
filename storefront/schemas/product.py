from pydantic import BaseModel, Field
from typing import List


class Product(BaseModel):
    id: int
    name: str
    category: str
    price: int
    discount: int = 0
    final_price: int = Field(alias="finalPrice")
    stock: int = 0
    sizes: List[str] = []
    colors: List[str] = []
    rating: float = 0.0
    reviews: int = 0
    description: str = ""
    features: List[str] = []
    image: str = ""

    class Config:
        populate_by_name = True
        frozen = True


class CategoryResponse(BaseModel):
    name: str
    count: int


class ProductListResponse(BaseModel):
    products: List[Product]
    total: int
    page: int
    limit: int
    total_pages: int
