from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional, List
import logging

from storefront.api.dependencies import get_catalog
from storefront.schemas.product import Product, ProductListResponse, CategoryResponse
from storefront.services.catalog import (
    CatalogProvider,
    DEFAULT_PRICE_RANGE,
    category_counts,
    filter_products,
    related_products,
    sort_products,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_price: int = Query(DEFAULT_PRICE_RANGE[0], ge=0),
    max_price: int = Query(DEFAULT_PRICE_RANGE[1], ge=0),
    sort: str = "default",
    catalog: CatalogProvider = Depends(get_catalog)
):
    """List products, filtered by category, price range and search text, then sorted."""
    products = await catalog.get_products()

    filtered = filter_products(
        products,
        category=category,
        min_price=min_price,
        max_price=max_price,
        search=search
    )
    filtered = sort_products(filtered, sort)
    total = len(filtered)

    # Paginate
    offset = (page - 1) * limit
    total_pages = (total + limit - 1) // limit

    return ProductListResponse(
        products=filtered[offset:offset + limit],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages
    )


@router.get("/categories/all", response_model=List[CategoryResponse])
async def list_categories(catalog: CatalogProvider = Depends(get_catalog)):
    """List categories with their product counts, in catalog order."""
    products = await catalog.get_products()
    return [CategoryResponse(name=name, count=count) for name, count in category_counts(products).items()]


@router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: int,
    catalog: CatalogProvider = Depends(get_catalog)
):
    """Get single product detail."""
    product = await catalog.get_product_by_id(product_id)

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    return product


@router.get("/{product_id}/related", response_model=List[Product])
async def get_related_products(
    product_id: int,
    catalog: CatalogProvider = Depends(get_catalog)
):
    """Other products from the same category."""
    products = await catalog.get_products()
    product = next((p for p in products if p.id == product_id), None)

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    return related_products(products, product)
