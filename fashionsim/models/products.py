"""
Product decision models.

A ProductDecision holds the player's strategy choices for one product:
retail price, fabric, print, and the locks applied once the strategy
phase is over.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ProductDecision(BaseModel):
    """Pricing and design choices for a single product."""

    rrp: Optional[Decimal] = Field(default=None, gt=0, description="Recommended retail price")
    fabric: Optional[str] = Field(default=None, description="Material key used for production")
    has_print: bool = Field(default=False, description="Print/pattern added to the design")
    rrp_locked: bool = Field(default=False, description="Price can no longer be changed")
    design_locked: bool = Field(default=False, description="Fabric and print can no longer be changed")
    confirmed_material_cost: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Per-unit material cost confirmed through procurement",
    )

    @property
    def is_priced(self) -> bool:
        return self.rrp is not None

    def discounted_price(self, discount: Decimal) -> Decimal:
        """Selling price after a fractional discount."""
        if self.rrp is None:
            return Decimal("0")
        return self.rrp * (Decimal("1") - discount)
