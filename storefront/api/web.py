from fastapi import APIRouter, Request, Depends, Query, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from typing import Optional
from urllib.parse import urlparse
import logging

from storefront.api.cart import build_cart_response
from storefront.api.dependencies import get_cart_store, get_catalog, get_checkout
from storefront.core.config import BASE_DIR, settings
from storefront.schemas.order import CheckoutForm
from storefront.services.cart import CartStore
from storefront.services.catalog import (
    CatalogProvider,
    DEFAULT_PRICE_RANGE,
    SORT_OPTIONS,
    category_counts,
    filter_products,
    line_from_product,
    related_products,
    sort_products,
)
from storefront.services.checkout import CheckoutFlow, form_errors
from storefront.services.pricing import format_price
from storefront.services.storage import SessionStorage

logger = logging.getLogger(__name__)
router = APIRouter(tags=["web"])
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.filters["price"] = format_price
templates.env.globals["shop_name"] = settings.SHOP_NAME


# Helper to get common data for all templates
def get_base_context(store: CartStore):
    return {
        "shop_name": settings.SHOP_NAME,
        "cart_count": store.cart_count,
    }


def render_not_found(request: Request):
    # Also used by the app-level 404 handler, outside dependency injection
    store = CartStore(SessionStorage(request.session), key=settings.CART_STORAGE_KEY)
    return templates.TemplateResponse(request, "not_found.html", get_base_context(store), status_code=404)


def safe_redirect_target(target: str, default: str = "/cart") -> str:
    """Only same-site paths; rejects absolute and protocol-relative URLs."""
    parsed = urlparse(target)
    if (
        not target.startswith("/")
        or target.startswith("//")
        or target.startswith("/\\")
        or parsed.scheme
        or parsed.netloc
    ):
        return default
    return target


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    products = await catalog.get_products()

    return templates.TemplateResponse(request, "home.html", {
        **get_base_context(store),
        "featured_products": products[:4],
        "new_arrivals": products[4:8],
        "categories": category_counts(products),
    })


@router.get("/products", response_class=HTMLResponse)
async def products_page(
    request: Request,
    page: int = Query(1, ge=1),
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_price: int = Query(DEFAULT_PRICE_RANGE[0], ge=0),
    max_price: int = Query(DEFAULT_PRICE_RANGE[1], ge=0),
    sort: str = "default",
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    products = await catalog.get_products()

    # Handle empty search strings
    search_term = search.strip() if search and search.strip() else None

    filtered = filter_products(
        products,
        category=category,
        min_price=min_price,
        max_price=max_price,
        search=search_term
    )
    filtered = sort_products(filtered, sort)

    limit = settings.PAGE_SIZE
    total_pages = max(1, (len(filtered) + limit - 1) // limit)
    offset = (page - 1) * limit

    return templates.TemplateResponse(request, "products.html", {
        **get_base_context(store),
        "products": filtered[offset:offset + limit],
        "total": len(filtered),
        "catalog_size": len(products),
        "page": page,
        "total_pages": total_pages,
        "categories": category_counts(products),
        "sort_options": SORT_OPTIONS,
        "current_category": category,
        "current_search": search_term,
        "current_sort": sort,
        "min_price": min_price,
        "max_price": max_price,
    })


@router.get("/products/{product_id}", response_class=HTMLResponse)
async def product_detail(
    request: Request,
    product_id: int,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    products = await catalog.get_products()
    product = next((p for p in products if p.id == product_id), None)

    if not product:
        return render_not_found(request)

    return templates.TemplateResponse(request, "product_detail.html", {
        **get_base_context(store),
        "product": product,
        "related_products": related_products(products, product),
    })


@router.post("/cart/add")
async def add_to_cart_form(
    product_id: int = Form(...),
    size: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    quantity: int = Form(1),
    next: str = Form("/cart"),
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    product = await catalog.get_product_by_id(product_id)
    if not product:
        return RedirectResponse(url="/products", status_code=303)

    # Fall back to the first option when the submitted one is not offered
    if size not in product.sizes:
        size = None
    if color not in product.colors:
        color = None

    store.add_to_cart(line_from_product(product, size, color, max(1, quantity)))
    return RedirectResponse(url=safe_redirect_target(next), status_code=303)


@router.get("/cart", response_class=HTMLResponse)
async def view_cart(
    request: Request,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    return templates.TemplateResponse(request, "cart.html", {
        **get_base_context(store),
        "cart": await build_cart_response(store, catalog),
    })


@router.post("/cart/update")
async def update_cart_form(
    product_id: int = Form(...),
    quantity: int = Form(...),
    store: CartStore = Depends(get_cart_store)
):
    store.update_cart(product_id, quantity)
    return RedirectResponse(url="/cart", status_code=303)


@router.post("/cart/remove/{product_id}")
async def remove_from_cart_form(product_id: int, store: CartStore = Depends(get_cart_store)):
    store.remove_from_cart(product_id)
    return RedirectResponse(url="/cart", status_code=303)


@router.post("/cart/clear")
async def clear_cart_form(store: CartStore = Depends(get_cart_store)):
    store.clear_cart()
    return RedirectResponse(url="/cart", status_code=303)


@router.get("/checkout", response_class=HTMLResponse)
async def checkout_page(
    request: Request,
    store: CartStore = Depends(get_cart_store),
    catalog: CatalogProvider = Depends(get_catalog)
):
    base_context = get_base_context(store)
    cart = await build_cart_response(store, catalog)

    if not cart.items:
        return templates.TemplateResponse(request, "cart.html", {
            **base_context,
            "cart": cart,
            "error": "Your cart is empty"
        })

    return templates.TemplateResponse(request, "checkout.html", {
        **base_context,
        "cart": cart,
        "errors": {},
        "form_data": {"payment_method": "cod"}
    })


@router.post("/checkout", response_class=HTMLResponse)
async def checkout_post(
    request: Request,
    full_name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    address: str = Form(""),
    city: str = Form(""),
    payment_method: str = Form("cod"),
    store: CartStore = Depends(get_cart_store),
    checkout: CheckoutFlow = Depends(get_checkout),
    catalog: CatalogProvider = Depends(get_catalog)
):
    base_context = get_base_context(store)
    form_data = {
        "full_name": full_name,
        "email": email,
        "phone": phone,
        "address": address,
        "city": city,
        "payment_method": payment_method
    }

    try:
        form = CheckoutForm(**form_data)
    except ValidationError as e:
        return templates.TemplateResponse(request, "checkout.html", {
            **base_context,
            "cart": await build_cart_response(store, catalog),
            "errors": form_errors(e),
            "form_data": form_data
        }, status_code=422)

    try:
        confirmation = checkout.place_order(form, await catalog.get_products())
    except ValueError as e:
        return templates.TemplateResponse(request, "cart.html", {
            **base_context,
            "cart": await build_cart_response(store, catalog),
            "error": str(e)
        }, status_code=400)

    return templates.TemplateResponse(request, "confirmation.html", {
        **base_context,
        "order": confirmation,
        "clear_delay": settings.CHECKOUT_CLEAR_DELAY
    })
