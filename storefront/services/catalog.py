import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from storefront.core.catalog_client import CatalogClient
from storefront.schemas.product import Product

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"
DEFAULT_PRICE_RANGE = (0, 2000000)
SORT_OPTIONS = ("default", "price-low", "price-high", "name", "rating", "discount")


def load_static_products(path: Union[str, Path]) -> List[Product]:
    """Read the bundled product dataset."""
    with open(path, encoding="utf-8") as f:
        return [Product.model_validate(record) for record in json.load(f)]


class CatalogProvider:
    """
    Read-only product source.

    Serves the bundled dataset after a simulated loading delay, or the remote
    catalog when a client is configured. A failed remote fetch falls back to
    the bundled dataset.
    """

    def __init__(
        self,
        path: Union[str, Path],
        client: Optional[CatalogClient] = None,
        delay: float = 0.0,
    ):
        self.path = path
        self.client = client
        self.delay = delay
        self._static: Optional[List[Product]] = None

    def static_products(self) -> List[Product]:
        if self._static is None:
            self._static = load_static_products(self.path)
        return self._static

    async def get_products(self) -> List[Product]:
        if self.client is not None and self.client.configured:
            try:
                records = await self.client.fetch_products()
                return [Product.model_validate(record) for record in records]
            except Exception as e:
                logger.error(f"Error fetching products, using local catalog: {str(e)}")
                return list(self.static_products())

        # Simulated loading happens once, on the first read of the dataset
        if self.delay and self._static is None:
            await asyncio.sleep(self.delay)
        return list(self.static_products())

    async def get_product_by_id(self, product_id: Union[int, str]) -> Optional[Product]:
        try:
            product_id = int(product_id)
        except (TypeError, ValueError):
            return None

        products = await self.get_products()
        return next((p for p in products if p.id == product_id), None)

    async def get_products_by_category(self, category: str) -> List[Product]:
        products = await self.get_products()
        if category == ALL_CATEGORIES:
            return products
        return [p for p in products if p.category == category]


def filter_products(
    products: List[Product],
    category: Optional[str] = None,
    min_price: int = DEFAULT_PRICE_RANGE[0],
    max_price: int = DEFAULT_PRICE_RANGE[1],
    search: Optional[str] = None,
) -> List[Product]:
    result = products

    if category and category.lower() not in (ALL_CATEGORIES, "semua"):
        result = [p for p in result if p.category.lower() == category.lower()]

    result = [p for p in result if min_price <= p.final_price <= max_price]

    if search:
        query = search.lower()
        result = [
            p for p in result
            if query in p.name.lower()
            or query in p.category.lower()
            or query in p.description.lower()
        ]

    return result


def sort_products(products: List[Product], sort_by: Optional[str] = "default") -> List[Product]:
    if sort_by == "price-low":
        return sorted(products, key=lambda p: p.final_price)
    if sort_by == "price-high":
        return sorted(products, key=lambda p: p.final_price, reverse=True)
    if sort_by == "name":
        return sorted(products, key=lambda p: p.name.lower())
    if sort_by == "discount":
        return sorted(products, key=lambda p: p.discount, reverse=True)
    # "rating" and the featured default share the same order
    return sorted(products, key=lambda p: p.rating, reverse=True)


def category_counts(products: List[Product]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for product in products:
        counts[product.category] = counts.get(product.category, 0) + 1
    return counts


def related_products(products: List[Product], product: Product, limit: int = 4) -> List[Product]:
    return [p for p in products if p.category == product.category and p.id != product.id][:limit]


def line_from_product(
    product: Product,
    size: Optional[str] = None,
    color: Optional[str] = None,
    quantity: int = 1,
) -> dict:
    """
    Build the cart item for a product, defaulting to its first size and color.

    Only identity and pricing fields are kept; display fields are looked up
    from the catalog when the cart is rendered (see hydrate_lines).
    """
    return {
        "product_id": product.id,
        "size": size or (product.sizes[0] if product.sizes else ""),
        "color": color or (product.colors[0] if product.colors else ""),
        "quantity": quantity,
        "price": product.price,
        "original_price": product.price,
        "discount": product.discount,
    }


def hydrate_lines(lines: List[dict], products: List[Product]) -> List[dict]:
    """Add catalog display fields (name, category, image) to stored cart lines."""
    by_id = {product.id: product for product in products}
    hydrated = []
    for line in lines:
        product = by_id.get(line.get("product_id"))
        display = {"name": product.name, "category": product.category, "image": product.image} if product else {}
        hydrated.append({**display, **line})
    return hydrated
