from fastapi import Depends, Request

from storefront.core.catalog_client import catalog_client
from storefront.core.config import settings
from storefront.services.cart import CartStore
from storefront.services.catalog import CatalogProvider
from storefront.services.checkout import CheckoutFlow
from storefront.services.storage import SessionStorage

catalog = CatalogProvider(
    path=settings.CATALOG_PATH,
    client=catalog_client,
    delay=settings.CATALOG_DELAY,
)


def get_catalog() -> CatalogProvider:
    return catalog


def get_storage(request: Request) -> SessionStorage:
    return SessionStorage(request.session)


def get_cart_store(storage: SessionStorage = Depends(get_storage)) -> CartStore:
    """
    Cart for the current visitor.
    Applies any checkout clear whose display delay has elapsed before returning.
    """
    store = CartStore(storage, key=settings.CART_STORAGE_KEY)
    CheckoutFlow(store, storage, clear_delay=settings.CHECKOUT_CLEAR_DELAY).settle()
    return store


def get_checkout(
    storage: SessionStorage = Depends(get_storage),
    store: CartStore = Depends(get_cart_store),
) -> CheckoutFlow:
    return CheckoutFlow(
        store,
        storage,
        clear_delay=settings.CHECKOUT_CLEAR_DELAY,
        order_prefix=settings.ORDER_PREFIX,
    )
