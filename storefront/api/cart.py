from fastapi import APIRouter, Depends, HTTPException
import logging

from storefront.api.dependencies import get_cart_store, get_catalog
from storefront.schemas.cart import CartItemAdd, CartItemUpdate, CartResponse
from storefront.schemas.product import Product
from storefront.services import pricing
from storefront.services.cart import CartStore
from storefront.services.catalog import CatalogProvider, hydrate_lines, line_from_product
from storefront.services.checkout import line_responses

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cart", tags=["cart"])


async def build_cart_response(store: CartStore, catalog: CatalogProvider) -> CartResponse:
    """Cart lines with catalog display fields and totals. Used by web routes too."""
    lines = store.lines
    products = await catalog.get_products()
    return CartResponse(
        items=line_responses(hydrate_lines(lines, products)),
        summary=pricing.summarize(lines),
        cart_count=store.cart_count
    )


async def validate_product(catalog: CatalogProvider, item: CartItemAdd) -> Product:
    """
    Validate that the product exists and the chosen size and color are offered.
    Returns the Product if valid, raises HTTPException otherwise.
    """
    product = await catalog.get_product_by_id(item.product_id)

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    if item.size is not None and item.size not in product.sizes:
        raise HTTPException(status_code=400, detail=f"Size {item.size} is not available for {product.name}")

    if item.color is not None and item.color not in product.colors:
        raise HTTPException(status_code=400, detail=f"Color {item.color} is not available for {product.name}")

    if item.quantity < 1:
        raise HTTPException(status_code=400, detail="Quantity must be greater than 0")

    return product


@router.get("", response_model=CartResponse)
async def get_cart(
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    """Get current shopping cart."""
    return await build_cart_response(store, catalog)


@router.post("/add", response_model=CartResponse)
async def add_to_cart(
    item: CartItemAdd,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    """Add item to cart."""
    product = await validate_product(catalog, item)
    store.add_to_cart(line_from_product(product, item.size, item.color, item.quantity))
    return await build_cart_response(store, catalog)


@router.put("/update", response_model=CartResponse)
async def update_cart_item(
    item: CartItemUpdate,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    """Update cart item quantity. Quantities below 1 are clamped to 1."""
    if not any(line.get("product_id") == item.product_id for line in store.lines):
        raise HTTPException(status_code=404, detail="Item not in cart")

    store.update_cart(item.product_id, item.quantity)
    return await build_cart_response(store, catalog)


@router.delete("/remove/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: int,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    """Remove item from cart."""
    store.remove_from_cart(product_id)
    return await build_cart_response(store, catalog)


@router.post("/clear", response_model=CartResponse)
async def clear_cart(
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    """Clear entire cart."""
    store.clear_cart()
    return await build_cart_response(store, catalog)
