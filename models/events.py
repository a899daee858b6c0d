"""Real-time events published after a product mutation commits.

On the wire every event is a JSON envelope ``{"event": <name>, "data": <payload>}``.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Union
from pydantic import BaseModel, Field, TypeAdapter

from models.product import ProductRead

PRODUCT_CREATED = "product_created"
PRODUCT_UPDATED = "product_updated"
PRODUCT_STATUS_UPDATED = "product_status_updated"
PRODUCT_DELETED = "product_deleted"


class DeletedProduct(BaseModel):
    id: int = Field(..., description="ID passed to the delete operation.")


class ProductCreated(BaseModel):
    event: Literal["product_created"] = PRODUCT_CREATED
    data: ProductRead


class ProductUpdated(BaseModel):
    event: Literal["product_updated"] = PRODUCT_UPDATED
    data: ProductRead


class ProductStatusUpdated(BaseModel):
    event: Literal["product_status_updated"] = PRODUCT_STATUS_UPDATED
    data: ProductRead


class ProductDeleted(BaseModel):
    event: Literal["product_deleted"] = PRODUCT_DELETED
    data: DeletedProduct


ProductEvent = Annotated[
    Union[ProductCreated, ProductUpdated, ProductStatusUpdated, ProductDeleted],
    Field(discriminator="event"),
]

_event_adapter: TypeAdapter = TypeAdapter(ProductEvent)


def encode_event(event: BaseModel) -> Dict[str, Any]:
    """JSON-ready envelope for a product event."""
    return event.model_dump(mode="json")


def decode_event(raw: Union[str, bytes, Dict[str, Any]]):
    """Parse an envelope back into its event class; raises ``ValidationError`` on unknown events."""
    if isinstance(raw, (str, bytes)):
        return _event_adapter.validate_json(raw)
    return _event_adapter.validate_python(raw)
