"""Value objects returned by the ledger service."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from farmtrace.products.models import ProductModel


@dataclass
class StageView:
    """A stage row joined with display fields."""

    id: int
    product_id: int
    stage_name: str
    location: str
    updated_by: int
    timestamp: datetime
    updated_by_name: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    product_name: Optional[str] = None
    batch_code: Optional[str] = None


# ── Batch-code resolution ──


@dataclass(frozen=True)
class ProductNotFound:
    batch_code: str


@dataclass
class ProductFoundNoStages:
    product: ProductModel


@dataclass
class ProductFoundWithStages:
    product: ProductModel
    stages: list[StageView]


BatchResolution = Union[ProductNotFound, ProductFoundNoStages, ProductFoundWithStages]


# ── Producer views ──


@dataclass
class ProductStages:
    product: ProductModel
    stages: list[StageView] = field(default_factory=list)

    @property
    def stage_count(self) -> int:
        return len(self.stages)


@dataclass
class StageStats:
    total_stages: int
    first_stage_date: Optional[datetime]
    last_stage_date: Optional[datetime]
    unique_contributors: int
