import os

os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ["CATALOG_DELAY"] = "0"
os.environ.pop("CATALOG_URL", None)

import pytest
from fastapi.testclient import TestClient

from storefront.core.config import settings
from storefront.services.cart import CartStore
from storefront.services.catalog import CatalogProvider
from storefront.services.storage import MemoryStorage


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return CartStore(storage)


@pytest.fixture
def catalog():
    return CatalogProvider(path=settings.CATALOG_PATH)


@pytest.fixture
async def products(catalog):
    return await catalog.get_products()


@pytest.fixture
def client():
    from storefront.main import app

    with TestClient(app) as test_client:
        yield test_client


def make_line(product_id, price, quantity=1, size="42", color="Black", **extra):
    return {
        "product_id": product_id,
        "name": f"Product {product_id}",
        "size": size,
        "color": color,
        "quantity": quantity,
        "price": price,
        **extra,
    }
