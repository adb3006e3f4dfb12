"""Pydantic schemas for supply-chain ledger endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_serializer, field_validator

from farmtrace.common.exceptions import StageValidationError
from farmtrace.ledger.blocks import format_timestamp


def require_text(field_name: str, value: str | None) -> str:
    """Return ``value`` stripped, or raise if it is missing or blank."""
    if value is None or not value.strip():
        raise StageValidationError(f"{field_name} is required")
    return value.strip()


def validate_stage_fields(stage_name: str | None, location: str | None) -> tuple[str, str]:
    return require_text("stage_name", stage_name), require_text("location", location)


# ── Requests ──

class StageCreate(BaseModel):
    stage_name: str
    location: str
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("stage_name", "location")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return require_text(info.field_name, value)


# ── Responses ──

class StageResponse(BaseModel):
    id: int
    product_id: int
    stage_name: str
    location: str
    updated_by: int
    updated_by_name: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    timestamp: datetime

    model_config = {"from_attributes": True}

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class BatchStageResponse(StageResponse):
    product_name: str
    batch_code: str


class ProducerStageResponse(StageResponse):
    product_name: str


class StageAddedResponse(BaseModel):
    message: str = "Stage added"
    stage: StageResponse
    blockHash: str


class BatchProductSummary(BaseModel):
    id: int
    name: str
    batch_code: str

    model_config = {"from_attributes": True}


class NoStagesResponse(BaseModel):
    product: BatchProductSummary
    stages: list[BatchStageResponse] = []
    noStages: bool = True


class ProductNotFoundResponse(BaseModel):
    productNotFound: bool = True
    message: str = "No product found with this batch code"


class IntegrityResponse(BaseModel):
    isValid: bool
    totalStages: int
    message: str


class StageStatsResponse(BaseModel):
    total_stages: int
    first_stage_date: Optional[datetime] = None
    last_stage_date: Optional[datetime] = None
    unique_contributors: int

    @field_serializer("first_stage_date", "last_stage_date")
    def _serialize_dates(self, value: Optional[datetime]) -> Optional[str]:
        return format_timestamp(value) if value is not None else None


class ProductWithStagesResponse(BaseModel):
    id: int
    name: str
    batch_code: str
    description: str
    created_by: int
    created_at: datetime
    stages: list[StageResponse]
    stageCount: int


class StageTemplateResponse(BaseModel):
    name: str
    description: str

    model_config = {"from_attributes": True}
