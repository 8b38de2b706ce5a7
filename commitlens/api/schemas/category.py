from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CategoryWeightItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    weight: int
    updated_at: datetime | None = None


class SetCategoryWeightRequest(BaseModel):
    weight: int
