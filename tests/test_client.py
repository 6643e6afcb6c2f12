import json
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from product_api.main import create_app
from product_api.schemas import ProductCreate, ProductUpdate
from product_web.client import ProductApiClient
from product_web.errors import ProductApiError


@pytest_asyncio.fixture()
async def api(settings, seeded_store):
    """ProductApiClient wired in-process to the real app (no network)."""
    app = create_app(settings=settings, store=seeded_store)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield ProductApiClient(client=http)


def _mocked(handler) -> ProductApiClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver")
    return ProductApiClient(client=http)


@pytest.mark.asyncio
async def test_get_all_returns_products(api):
    products = await api.get_all()

    assert len(products) == 3
    assert {p.name for p in products} == {"Sample Product 1", "Sample Product 2", "Sample Product 3"}


@pytest.mark.asyncio
async def test_lifecycle_through_client(api):
    created = await api.create(ProductCreate(name="Widget", price=Decimal("10.99"), description="x"))
    assert created.id > 0
    assert created.price == Decimal("10.99")
    assert created.updated_at is None

    fetched = await api.get_by_id(created.id)
    assert fetched == created

    updated = await api.update(created.id, ProductUpdate(name="Gadget", price=Decimal("12.00")))
    assert updated is not None
    assert (updated.name, updated.price, updated.description) == ("Gadget", Decimal("12.00"), None)
    assert updated.updated_at >= updated.created_at

    assert await api.delete(created.id) is True
    assert await api.get_by_id(created.id) is None
    assert await api.delete(created.id) is False
    assert await api.update(created.id, ProductUpdate(name="Ghost", price=Decimal("1.00"))) is None


@pytest.mark.asyncio
async def test_validation_failure_raises_api_error(api):
    # Bypass client-side validation to let the server reject the body.
    request = ProductCreate.model_construct(name="", price=Decimal("0"), description=None)

    with pytest.raises(ProductApiError) as excinfo:
        await api.create(request)

    assert excinfo.value.status_code == 400
    assert excinfo.value.operation == "create"


@pytest.mark.asyncio
async def test_server_error_raises_api_error_with_context():
    client = _mocked(lambda request: httpx.Response(500, json={"title": "boom"}))

    with pytest.raises(ProductApiError) as excinfo:
        await client.get_by_id(7)

    err = excinfo.value
    assert (err.operation, err.product_id, err.status_code) == ("get", 7, 500)
    assert "product 7" in str(err)


@pytest.mark.asyncio
async def test_get_all_non_success_raises():
    client = _mocked(lambda request: httpx.Response(503))

    with pytest.raises(ProductApiError) as excinfo:
        await client.get_all()

    assert excinfo.value.operation == "list"
    assert excinfo.value.product_id is None


@pytest.mark.asyncio
async def test_delete_non_success_raises():
    client = _mocked(lambda request: httpx.Response(500))

    with pytest.raises(ProductApiError) as excinfo:
        await client.delete(3)

    assert (excinfo.value.operation, excinfo.value.product_id) == ("delete", 3)


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _mocked(handler)

    with pytest.raises(ProductApiError) as excinfo:
        await client.update(5, ProductUpdate(name="Widget", price=Decimal("1.00")))

    assert excinfo.value.operation == "update"
    assert excinfo.value.product_id == 5
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_undecodable_body_is_wrapped():
    client = _mocked(lambda request: httpx.Response(200, text="<html>not json</html>"))

    with pytest.raises(ProductApiError) as excinfo:
        await client.get_by_id(1)

    assert excinfo.value.__cause__ is not None


@pytest.mark.asyncio
async def test_request_body_uses_camel_case_and_numeric_price():
    seen = {}

    def handler(request):
        seen["body"] = request.read()
        return httpx.Response(
            201,
            json={
                "id": 9,
                "name": "Widget",
                "price": 10.99,
                "description": None,
                "createdAt": "2026-01-01T00:00:00Z",
                "updatedAt": None,
            },
        )

    client = _mocked(handler)
    product = await client.create(ProductCreate(name="Widget", price=Decimal("10.99")))

    assert product.id == 9
    assert json.loads(seen["body"]) == {"name": "Widget", "price": 10.99, "description": None}


@pytest.mark.asyncio
async def test_owned_client_is_closed():
    async with ProductApiClient("http://localhost:9") as client:
        http = client._client
    assert http.is_closed


def test_client_requires_base_url_or_http_client():
    with pytest.raises(ValueError):
        ProductApiClient()
