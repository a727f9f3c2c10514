"""
Weekly summary models for FASHIONSIM.

A WeeklySummary explains one committed week to the player: the cash
waterfall, what arrived, what was paid, how raw materials moved, which
batches started or finished, and the ledger rows behind every number.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from fashionsim.models.money import ZERO
from fashionsim.models.state import LedgerEntry


class CashWaterfall(BaseModel):
    """Step-by-step cash and credit movement of a week."""

    opening_cash: Decimal = ZERO
    opening_credit: Decimal = ZERO
    revenue: Decimal = ZERO
    operating_outflows: Decimal = ZERO
    cash_after_outflows: Decimal = ZERO
    credit_after_outflows: Decimal = ZERO
    interest: Decimal = ZERO
    paydown: Decimal = ZERO
    gmc_penalty: Decimal = ZERO
    final_paydown: Decimal = ZERO
    closing_cash: Decimal = ZERO
    closing_credit: Decimal = ZERO

    @property
    def credit_drawn(self) -> Decimal:
        return max(ZERO, self.closing_credit - self.opening_credit)


class MaterialArrival(BaseModel):
    """Material received from a supplier."""

    ref_id: str
    supplier: str
    material: str
    units: int
    good_units: int
    unit_price: Decimal

    @property
    def defective_units(self) -> int:
        return self.units - self.good_units


class Settlement(BaseModel):
    """A procurement payment made this week."""

    ref_id: str
    contract_id: str
    contract_type: str
    supplier: str
    material: str
    amount: Decimal


class RawMaterialDelta(BaseModel):
    """Change in one material's stock over the week."""

    material: str
    opening_units: int
    received_units: int
    consumed_units: int
    closing_units: int
    closing_value: Decimal


class ProductionEvent(BaseModel):
    """A batch starting, shipping, or arriving as finished goods."""

    batch_id: str
    product: str
    event: str = Field(description="started, shipped, arrived or skipped")
    quantity: int
    week: int
    detail: Optional[str] = None


class ProductSales(BaseModel):
    """Sales outcome for one product."""

    product: str
    demand: int
    sold: int
    lost: int
    price: Decimal
    discount: Decimal
    revenue: Decimal
    blocked_below_cost: bool = False


class WeeklySummary(BaseModel):
    """Player-facing summary of one committed week."""

    session_id: str
    week_number: int
    phase: str
    cash: CashWaterfall
    arrivals: list[MaterialArrival] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)
    raw_materials: list[RawMaterialDelta] = Field(default_factory=list)
    production: list[ProductionEvent] = Field(default_factory=list)
    sales: list[ProductSales] = Field(default_factory=list)
    ledger: list[LedgerEntry] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def total_settled(self) -> Decimal:
        return sum((s.amount for s in self.settlements), ZERO)
