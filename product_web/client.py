from __future__ import annotations

import logging
from typing import Any, NoReturn, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from product_api.core.logging import get_logger
from product_api.schemas import Product, ProductCreate, ProductUpdate
from product_web.errors import ProductApiError

_PRODUCT_LIST = TypeAdapter(list[Product])


class ProductApiClient:
    """
    Async client for the product-api HTTP surface.

    Mirrors the product store contract: 404 comes back as None (or False for
    delete); every other failure, including network and decoding errors, is
    raised as ProductApiError.

    Either pass a base_url (the client then owns its httpx.AsyncClient) or an
    already configured httpx.AsyncClient.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if client is None and not base_url:
            raise ValueError("ProductApiClient needs a base_url or an httpx.AsyncClient")

        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._owns_client = client is None
        self._log = logger or get_logger(__name__)

    async def __aenter__(self) -> "ProductApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ---- operations ----

    async def get_all(self) -> list[Product]:
        self._log.info("Fetching all products from API")
        response = await self._send("list", "GET", "/products")
        if not response.is_success:
            self._fail("list", response)

        products = self._decode("list", response, _PRODUCT_LIST)
        self._log.info("Retrieved %d products", len(products))
        return products

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        self._log.info("Fetching product with ID: %s", product_id)
        response = await self._send("get", "GET", f"/products/{product_id}", product_id)
        if response.status_code == httpx.codes.NOT_FOUND:
            self._log.warning("Product not found with ID: %s", product_id)
            return None
        if not response.is_success:
            self._fail("get", response, product_id)
        return self._decode("get", response, Product, product_id)

    async def create(self, request: ProductCreate) -> Product:
        self._log.info("Creating new product: %s", request.name)
        response = await self._send("create", "POST", "/products", json=self._body(request))
        if not response.is_success:
            self._fail("create", response)

        product = self._decode("create", response, Product)
        self._log.info("Created product with ID: %s", product.id)
        return product

    async def update(self, product_id: int, request: ProductUpdate) -> Optional[Product]:
        self._log.info("Updating product with ID: %s", product_id)
        response = await self._send("update", "PUT", f"/products/{product_id}", product_id, json=self._body(request))
        if response.status_code == httpx.codes.NOT_FOUND:
            self._log.warning("Product not found for update with ID: %s", product_id)
            return None
        if not response.is_success:
            self._fail("update", response, product_id)
        return self._decode("update", response, Product, product_id)

    async def delete(self, product_id: int) -> bool:
        self._log.info("Deleting product with ID: %s", product_id)
        response = await self._send("delete", "DELETE", f"/products/{product_id}", product_id)
        if response.status_code == httpx.codes.NOT_FOUND:
            self._log.warning("Product not found for deletion with ID: %s", product_id)
            return False
        if not response.is_success:
            self._fail("delete", response, product_id)
        return True

    # ---- helpers ----

    @staticmethod
    def _body(request: ProductCreate | ProductUpdate) -> dict[str, Any]:
        return request.model_dump(mode="json", by_alias=True)

    async def _send(
        self,
        operation: str,
        method: str,
        url: str,
        product_id: Optional[int] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            self._log.error("Transport error during %s (product ID: %s): %s", operation, product_id, exc)
            raise ProductApiError(operation, product_id, message=f"Failed to reach the server during {operation}") from exc

    def _fail(self, operation: str, response: httpx.Response, product_id: Optional[int] = None) -> NoReturn:
        self._log.warning(
            "Failed to %s (product ID: %s). Status: %s", operation, product_id, response.status_code
        )
        self._log.error("API Error Response: %s - %s", response.status_code, response.text)
        raise ProductApiError(operation, product_id, status_code=response.status_code)

    def _decode(self, operation: str, response: httpx.Response, model: Any, product_id: Optional[int] = None):
        try:
            if isinstance(model, TypeAdapter):
                return model.validate_json(response.content)
            return model.model_validate_json(response.content)
        except (ValidationError, ValueError) as exc:
            self._log.error("Could not decode %s response (product ID: %s): %s", operation, product_id, exc)
            raise ProductApiError(operation, product_id, message=f"Invalid response from the server during {operation}") from exc
