from __future__ import annotations

from enum import Enum
from typing import Optional, Annotated, Union
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Money is kept as Decimal in Python and written to JSON as a number.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ProductStatus(str, Enum):
    """Lifecycle status of a product."""
    NEW = "new"
    SOLD = "sold"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ProductBase(BaseModel):
    name: str = Field(
        ...,
        description="Product name.",
        min_length=1,
        max_length=255,
        json_schema_extra={"example": "Widget"},
    )
    price: Money = Field(
        ...,
        description="Product price.",
        ge=0,
        decimal_places=2,
        json_schema_extra={"example": 9.99},
    )
    description: Optional[str] = Field(
        None,
        description="Free-form product description.",
        json_schema_extra={"example": "Blue widget, pack of ten"},
    )


class ProductCreate(ProductBase):
    """Creation payload for a Product; status defaults to ``new``."""
    status: ProductStatus = Field(
        default=ProductStatus.NEW,
        description="Initial lifecycle status.",
        json_schema_extra={"example": "new"},
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Widget",
                    "price": 9.99,
                    "status": "new",
                    "description": "Blue widget, pack of ten",
                }
            ]
        }
    }


class ProductReplace(ProductBase):
    """Full update for a Product; every mutable field is overwritten."""
    status: ProductStatus = Field(
        ...,
        description="Lifecycle status.",
        json_schema_extra={"example": "shipped"},
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Widget XL",
                    "price": 12.5,
                    "status": "shipped",
                    "description": None,
                }
            ]
        }
    }


class ProductStatusUpdate(BaseModel):
    """Status-only update for a Product."""
    status: ProductStatus = Field(
        ...,
        description="New lifecycle status.",
        json_schema_extra={"example": "sold"},
    )


class ProductRead(BaseModel):
    """
    Server representation returned to clients and broadcast to dashboards.

    Mirrors whatever the store holds: input constraints are not re-applied, so a
    row written outside the API still reads back. A status outside the known
    set is kept as its raw string.
    """
    id: int = Field(
        ...,
        description="Store-assigned Product ID.",
        json_schema_extra={"example": 1},
    )
    name: str = Field(..., description="Product name.", json_schema_extra={"example": "Widget"})
    price: Money = Field(..., description="Product price.", json_schema_extra={"example": 9.99})
    description: Optional[str] = Field(None, description="Free-form product description.")
    status: Union[ProductStatus, str] = Field(
        ...,
        description="Lifecycle status.",
        union_mode="left_to_right",
    )
    created_at: datetime = Field(
        ...,
        description="Creation timestamp, assigned by the store.",
        json_schema_extra={"example": "2025-09-30T10:20:30"},
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "id": 1,
                    "name": "Widget",
                    "price": 9.99,
                    "status": "new",
                    "description": "Blue widget, pack of ten",
                    "created_at": "2025-09-30T10:20:30",
                }
            ]
        }
    )


class DeleteResponse(BaseModel):
    message: str = "Product deleted successfully"
