from __future__ import annotations

from typing import Optional


class ProductValidationError(Exception):
    """
    Raised by a product store when the database rejects a write
    (check constraint, value out of range, NOT NULL).

    Surfaces as 400 at the HTTP layer.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
