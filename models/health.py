from __future__ import annotations

from typing import Literal
from pydantic import BaseModel, Field


class Health(BaseModel):
    status: int = Field(..., json_schema_extra={"example": 200})
    status_message: str = Field(..., json_schema_extra={"example": "OK"})
    timestamp: str = Field(
        ...,
        description="Server time (UTC, ISO 8601).",
        json_schema_extra={"example": "2025-09-30T10:20:30Z"},
    )
    ip_address: str = Field(..., json_schema_extra={"example": "10.0.0.12"})
    database: Literal["ok", "error"] = Field(
        ...,
        description="Result of a trivial query against the store.",
    )
    connected_clients: int = Field(
        ...,
        description="Dashboards currently attached to the real-time channel.",
        ge=0,
    )
