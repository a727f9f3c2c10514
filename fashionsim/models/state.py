"""
Weekly state models for FASHIONSIM.

A WeeklyState is the complete snapshot of one week of one game. It is
created as a draft, edited through decision intake, and frozen once
committed. Committing produces the next week's draft by copying every
carry-over structure forward and resetting the week's flow fields.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from fashionsim.models.contracts import ProcurementBook
from fashionsim.models.decisions import MarketingPlan
from fashionsim.models.inventory import (
    FinishedGoodsLot,
    RawMaterialStock,
    Shipment,
    WorkInProcessBatch,
)
from fashionsim.models.money import ZERO, to_money
from fashionsim.models.production import ProductionSchedule
from fashionsim.models.products import ProductDecision


class Phase(str, Enum):
    """Season phases."""

    STRATEGY = "strategy"
    DEVELOPMENT = "development"
    SALES = "sales"
    RUNOUT = "runout"


class EntryType(str, Enum):
    """Kinds of cash movement recorded in the ledger."""

    REVENUE = "revenue"
    MARKETING = "marketing"
    MATERIALS_SPT = "materials_spt"
    MATERIALS_GMC = "materials_gmc"
    MATERIALS_FVC = "materials_fvc"
    PRODUCTION = "production"
    LOGISTICS = "logistics"
    HOLDING = "holding"
    INTEREST = "interest"
    GMC_PENALTY = "gmc_penalty"
    PAYDOWN = "paydown"


class LedgerEntry(BaseModel):
    """One cash movement of a committed week.

    Amounts are positive; revenue flows in, everything else flows out
    (a paydown moves cash to the credit line).
    """

    week_number: int = Field(ge=1)
    entry_type: EntryType
    ref_id: Optional[str] = Field(default=None, description="Contract, batch or shipment id")
    amount: Decimal = Field(ge=0)
    memo: str = ""


class CostBuckets(BaseModel):
    """Season-to-date costs by category."""

    materials: Decimal = ZERO
    production: Decimal = ZERO
    logistics: Decimal = ZERO
    holding: Decimal = ZERO
    interest: Decimal = ZERO
    marketing: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return (
            self.materials
            + self.production
            + self.logistics
            + self.holding
            + self.interest
            + self.marketing
        )

    def add(self, other: "CostBuckets") -> "CostBuckets":
        """Add another set of buckets, rounding each to the cent."""
        return CostBuckets(
            materials=to_money(self.materials + other.materials),
            production=to_money(self.production + other.production),
            logistics=to_money(self.logistics + other.logistics),
            holding=to_money(self.holding + other.holding),
            interest=to_money(self.interest + other.interest),
            marketing=to_money(self.marketing + other.marketing),
        )


class SeasonTotals(BaseModel):
    """Season-to-date sales totals used for the no-loss price floor."""

    revenue: Decimal = ZERO
    units_sold: int = Field(default=0, ge=0)
    cogs_materials: Decimal = ZERO
    cogs_production: Decimal = ZERO
    cogs_logistics: Decimal = ZERO
    cogs_marketing: Decimal = ZERO

    @property
    def total_cogs(self) -> Decimal:
        return self.cogs_materials + self.cogs_production + self.cogs_logistics + self.cogs_marketing

    @property
    def actual_unit_cost(self) -> Decimal:
        """Trailing fully-loaded cost per unit sold."""
        return self.total_cogs / max(1, self.units_sold)


class WeeklyState(BaseModel):
    """Complete snapshot of one week of a game session."""

    state_id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str
    week_number: int = Field(ge=1)
    phase: Phase = Phase.STRATEGY

    # Finance
    cash_on_hand: Decimal = Field(default=ZERO, ge=0)
    credit_used: Decimal = Field(default=ZERO, ge=0)

    # Strategy
    product_data: dict[str, ProductDecision] = Field(default_factory=dict)

    # Inventory pipeline
    raw_materials: dict[str, RawMaterialStock] = Field(default_factory=dict)
    work_in_process: list[WorkInProcessBatch] = Field(default_factory=list)
    shipments_in_transit: list[Shipment] = Field(default_factory=list)
    finished_goods: list[FinishedGoodsLot] = Field(default_factory=list)
    production_schedule: ProductionSchedule = Field(default_factory=ProductionSchedule)

    # Contracts
    procurement: ProcurementBook = Field(default_factory=ProcurementBook)

    # Weekly plan
    marketing_plan: MarketingPlan = Field(default_factory=MarketingPlan)
    weekly_discounts: dict[str, Decimal] = Field(default_factory=dict)

    # Weekly flows
    weekly_demand: dict[str, int] = Field(default_factory=dict)
    weekly_sales: dict[str, int] = Field(default_factory=dict)
    lost_sales: dict[str, int] = Field(default_factory=dict)
    weekly_revenue: Decimal = ZERO
    ledger: list[LedgerEntry] = Field(default_factory=list)

    # Season-to-date accumulators
    costs: CostBuckets = Field(default_factory=CostBuckets)
    totals: SeasonTotals = Field(default_factory=SeasonTotals)

    validation_errors: list[str] = Field(default_factory=list)
    validation_warnings: list[str] = Field(default_factory=list)
    is_committed: bool = False

    @field_validator("weekly_discounts")
    @classmethod
    def validate_discounts(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        for product, discount in v.items():
            if discount < 0 or discount > 1:
                raise ValueError(f"Discount for {product} must be between 0 and 1")
        return v

    @property
    def marketing_spend(self) -> Decimal:
        return self.marketing_plan.total_spend

    def discount_for(self, product: str) -> Decimal:
        return self.weekly_discounts.get(product, Decimal("0"))

    def finished_units(self, product: Optional[str] = None) -> int:
        """Units available for sale, for one product or all."""
        return sum(
            lot.quantity
            for lot in self.finished_goods
            if product is None or lot.product == product
        )

    def raw_material(self, material: str) -> RawMaterialStock:
        return self.raw_materials.get(material, RawMaterialStock())

    @property
    def inventory_value(self) -> Decimal:
        """Book value of raw materials, WIP and finished goods."""
        raw = sum((stock.on_hand_value for stock in self.raw_materials.values()), ZERO)
        wip = sum((batch.value for batch in self.work_in_process), ZERO)
        finished = sum((lot.value for lot in self.finished_goods), ZERO)
        return to_money(raw + wip + finished)

    @property
    def units_sold(self) -> int:
        return sum(self.weekly_sales.values())

    @property
    def units_demanded(self) -> int:
        return sum(self.weekly_demand.values())
