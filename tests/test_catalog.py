import httpx
import pytest

from storefront.core.catalog_client import CatalogClient
from storefront.core.config import settings
from storefront.services.catalog import (
    CatalogProvider,
    category_counts,
    filter_products,
    hydrate_lines,
    line_from_product,
    related_products,
    sort_products,
)


def mock_client(handler, api_key=None):
    client = CatalogClient(base_url="https://catalog.test/b/abc", api_key=api_key)
    client.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


@pytest.mark.asyncio
async def test_get_products_static(catalog):
    products = await catalog.get_products()

    assert len(products) == 12
    assert products[0].id == 1
    assert products[0].final_price == 719200


@pytest.mark.asyncio
async def test_get_products_returns_a_copy(catalog):
    products = await catalog.get_products()
    products.clear()

    assert len(await catalog.get_products()) == 12


@pytest.mark.asyncio
async def test_get_product_by_id(catalog):
    product = await catalog.get_product_by_id(3)
    assert product.name == "Court King Pro"

    assert (await catalog.get_product_by_id("3")).id == 3
    assert await catalog.get_product_by_id(999) is None
    assert await catalog.get_product_by_id("abc") is None


@pytest.mark.asyncio
async def test_get_products_by_category(catalog):
    running = await catalog.get_products_by_category("Running")
    assert [p.id for p in running] == [1, 9]

    assert len(await catalog.get_products_by_category("all")) == 12
    assert await catalog.get_products_by_category("running") == []


@pytest.mark.asyncio
async def test_remote_catalog_unwraps_record():
    record = {
        "id": 100, "name": "Remote Shoe", "category": "Running",
        "price": 200000, "discount": 0, "finalPrice": 200000,
    }

    def handler(request):
        assert request.url.path == "/b/abc/latest"
        assert request.headers["X-Master-Key"] == "secret"
        return httpx.Response(200, json={"record": [record]})

    client = mock_client(handler, api_key="secret")
    provider = CatalogProvider(path=settings.CATALOG_PATH, client=client)

    products = await provider.get_products()
    await client.close()

    assert [p.name for p in products] == ["Remote Shoe"]


@pytest.mark.asyncio
async def test_remote_failure_falls_back_to_static():
    client = mock_client(lambda request: httpx.Response(503, text="unavailable"))
    provider = CatalogProvider(path=settings.CATALOG_PATH, client=client)

    products = await provider.get_products()
    await client.close()

    assert len(products) == 12


@pytest.mark.asyncio
async def test_unconfigured_client_uses_static():
    provider = CatalogProvider(path=settings.CATALOG_PATH, client=CatalogClient(base_url=""))

    assert len(await provider.get_products()) == 12


@pytest.mark.asyncio
async def test_filter_by_category_case_insensitive(products):
    result = filter_products(products, category="casual")

    assert {p.id for p in result} == {2, 10, 11}
    assert filter_products(products, category="Semua") == products
    assert filter_products(products, category="all") == products


@pytest.mark.asyncio
async def test_filter_by_price_range_inclusive(products):
    result = filter_products(products, min_price=412500, max_price=509150)

    assert {p.id for p in result} == {2, 6, 11}


@pytest.mark.asyncio
async def test_filter_by_search(products):
    assert [p.id for p in filter_products(products, search="BOOT")] == [4, 7, 8, 12]
    assert [p.id for p in filter_products(products, search="hiking")] == [4]
    assert filter_products(products, search="sandal") == []


@pytest.mark.asyncio
async def test_sort_orders(products):
    by_price = sort_products(products, "price-low")
    assert by_price[0].id == 10
    assert by_price[-1].id == 8

    assert sort_products(products, "price-high")[0].id == 8
    assert sort_products(products, "name")[0].name == "AeroStride Runner"
    assert sort_products(products, "discount")[0].id == 7
    assert sort_products(products, "rating")[0].id == 8
    assert [p.id for p in sort_products(products, "unknown")] == [p.id for p in sort_products(products, "rating")]


@pytest.mark.asyncio
async def test_sort_does_not_mutate_input(products):
    ids = [p.id for p in products]

    sort_products(products, "price-high")

    assert [p.id for p in products] == ids


@pytest.mark.asyncio
async def test_category_counts(products):
    counts = category_counts(products)

    assert list(counts)[:3] == ["Running", "Casual", "Basketball"]
    assert counts["Casual"] == 3
    assert sum(counts.values()) == 12


@pytest.mark.asyncio
async def test_related_products(products):
    casual = next(p for p in products if p.id == 2)

    assert [p.id for p in related_products(products, casual)] == [10, 11]
    assert [p.id for p in related_products(products, casual, limit=1)] == [10]


@pytest.mark.asyncio
async def test_line_from_product_defaults_first_options(products):
    line = line_from_product(products[0])

    assert line["product_id"] == 1
    assert line["size"] == "39"
    assert line["color"] == "Black"
    assert line["quantity"] == 1
    assert line["price"] == 899000
    assert line["discount"] == 20

    assert line_from_product(products[0], "42", "Blue", 3)["size"] == "42"


@pytest.mark.asyncio
async def test_line_from_product_keeps_only_key_and_pricing_fields(products):
    line = line_from_product(products[0], "42", "Blue")

    assert set(line) == {"product_id", "size", "color", "quantity", "price", "original_price", "discount"}


@pytest.mark.asyncio
async def test_hydrate_lines_adds_display_fields(products):
    lines = [
        line_from_product(products[1]),
        {"product_id": 999, "size": "42", "color": "Black", "quantity": 1, "price": 1000},
        {"product_id": 2, "name": "Stored Name", "quantity": 1, "price": 1000},
    ]

    hydrated = hydrate_lines(lines, products)

    assert hydrated[0]["name"] == "Urban Canvas Low"
    assert hydrated[0]["category"] == "Casual"
    assert hydrated[0]["image"] == products[1].image
    assert "name" not in hydrated[1]
    assert hydrated[2]["name"] == "Stored Name"
    assert "name" not in lines[0]


@pytest.mark.asyncio
async def test_simulated_delay_only_on_first_load(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("storefront.services.catalog.asyncio.sleep", fake_sleep)
    provider = CatalogProvider(path=settings.CATALOG_PATH, delay=0.5)

    await provider.get_products()
    await provider.get_product_by_id(1)
    await provider.get_products_by_category("Running")

    assert delays == [0.5]
