"""Pydantic schemas for product endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    batch_code: str = Field(..., min_length=1, max_length=100)
    description: str = ""


class ProductResponse(BaseModel):
    id: int
    name: str
    batch_code: str
    description: str
    created_by: int
    created_at: datetime

    model_config = {"from_attributes": True}
