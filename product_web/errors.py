from __future__ import annotations

from typing import Optional


class ProductApiError(Exception):
    """
    The only error ProductApiClient lets escape.

    Carries the client operation and target product id; the underlying
    transport or decoding error, if any, is chained as __cause__.
    """

    def __init__(
        self,
        operation: str,
        product_id: Optional[int] = None,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.product_id = product_id
        self.status_code = status_code

        if product_id is not None:
            target = f"product {product_id}"
        else:
            target = "products" if operation == "list" else "product"
        text = message or f"Failed to {operation} {target}"
        if status_code is not None:
            text = f"{text} (HTTP {status_code})"
        super().__init__(text)
