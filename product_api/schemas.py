from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

MAX_PRICE = Decimal("999999.99")

# Decimal in Python, plain JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

Price = Annotated[Money, Field(gt=0, le=MAX_PRICE, decimal_places=2)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductWrite(CamelModel):
    name: str = Field(max_length=100)
    price: Price
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("Product name is required")
        if not value.strip():
            raise ValueError("Product name cannot be empty or whitespace")
        return value


class ProductCreate(ProductWrite):
    pass


class ProductUpdate(ProductWrite):
    """Full replacement of name, price and description."""


class Product(CamelModel):
    id: int
    name: str
    price: Money
    description: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
