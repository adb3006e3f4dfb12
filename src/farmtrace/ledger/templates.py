"""Suggested stage names offered to producers.

Templates are hints for data entry; ``stage_name`` stays free text.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class StageTemplate:
    name: str
    description: str


STAGE_TEMPLATES: tuple[StageTemplate, ...] = (
    StageTemplate("Harvesting", "Product harvested from farm"),
    StageTemplate("Processing", "Product processed and packaged"),
    StageTemplate("Quality Check", "Quality inspection completed"),
    StageTemplate("Transportation", "Product shipped to destination"),
    StageTemplate("Warehouse Storage", "Product stored in warehouse"),
    StageTemplate("Retail Distribution", "Product distributed to retail"),
    StageTemplate("Final Delivery", "Product delivered to customer"),
)
