"""
Production schedule models for FASHIONSIM.

A PlannedBatch stays on the schedule for the whole season; it becomes
work-in-process in its start week.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ProductionMethod(str, Enum):
    """Manufacturing methods."""

    INHOUSE = "inhouse"
    OUTSOURCE = "outsource"


class ShippingMethod(str, Enum):
    """Finished-goods shipping methods."""

    STANDARD = "standard"
    EXPEDITED = "expedited"


class PlannedBatch(BaseModel):
    """A production batch requested by the player."""

    batch_id: str
    product: str
    method: ProductionMethod = ProductionMethod.INHOUSE
    start_week: int = Field(ge=1)
    quantity: int = Field(gt=0, description="Planned units")
    shipping: ShippingMethod = ShippingMethod.STANDARD
    created_week: int = Field(ge=1, description="Week the batch was scheduled")

    @property
    def is_inhouse(self) -> bool:
        return self.method == ProductionMethod.INHOUSE


class ProductionSchedule(BaseModel):
    """Ordered list of planned batches."""

    batches: list[PlannedBatch] = Field(default_factory=list)

    def get(self, batch_id: str) -> Optional[PlannedBatch]:
        for batch in self.batches:
            if batch.batch_id == batch_id:
                return batch
        return None

    def starting_in(self, week: int) -> list[PlannedBatch]:
        return [b for b in self.batches if b.start_week == week]

    def pending(self, current_week: int) -> list[PlannedBatch]:
        """Batches that have not started yet (start week now or later)."""
        return [b for b in self.batches if b.start_week >= current_week]

    def add_batch(self, batch: PlannedBatch) -> "ProductionSchedule":
        return self.model_copy(update={"batches": self.batches + [batch]})

    def remove_batch(self, batch_id: str) -> "ProductionSchedule":
        return self.model_copy(
            update={"batches": [b for b in self.batches if b.batch_id != batch_id]}
        )
