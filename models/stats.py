from __future__ import annotations

from typing import List, Union
from pydantic import BaseModel, Field

from models.product import Money, ProductStatus


class StatusStatistics(BaseModel):
    # Raw store value when it falls outside the known statuses.
    status: Union[ProductStatus, str] = Field(
        ...,
        description="Status the group was aggregated over.",
        union_mode="left_to_right",
        json_schema_extra={"example": "new"},
    )
    count: int = Field(
        ...,
        description="Number of products in this status.",
        ge=0,
        json_schema_extra={"example": 1},
    )
    total_value: Money = Field(
        ...,
        description="Sum of prices of products in this status.",
        json_schema_extra={"example": 9.99},
    )


class StatisticsTotals(BaseModel):
    total_products: int = Field(
        ...,
        description="Number of products in the store.",
        ge=0,
        json_schema_extra={"example": 1},
    )
    total_value: Money = Field(
        ...,
        description="Sum of all product prices.",
        json_schema_extra={"example": 9.99},
    )


class StatisticsSnapshot(BaseModel):
    """Per-status and global aggregates, recomputed on every request."""
    by_status: List[StatusStatistics] = Field(
        default_factory=list,
        description="One entry per status present in the store.",
    )
    totals: StatisticsTotals

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "by_status": [
                        {"status": "new", "count": 1, "total_value": 9.99}
                    ],
                    "totals": {"total_products": 1, "total_value": 9.99},
                }
            ]
        }
    }

    def count_for(self, status: ProductStatus) -> int:
        """Count for a status, zero when no product has it."""
        for entry in self.by_status:
            if entry.status == status:
                return entry.count
        return 0
