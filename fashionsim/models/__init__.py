"""
Data models for FASHIONSIM.

This module contains Pydantic models representing:
- Money helpers (cent rounding)
- Product decisions
- Procurement contracts
- Production schedule and inventory pipeline
- Player decisions
- Weekly state and game session
- Weekly summary
"""

from fashionsim.models.money import (
    CENT,
    ZERO,
    format_money,
    round_units,
    to_decimal,
    to_money,
)
from fashionsim.models.products import ProductDecision
from fashionsim.models.contracts import (
    ContractType,
    Delivery,
    GMCOrderLine,
    ProcurementBook,
    ProcurementContract,
    ScheduledPayment,
)
from fashionsim.models.production import (
    PlannedBatch,
    ProductionMethod,
    ProductionSchedule,
    ShippingMethod,
)
from fashionsim.models.inventory import (
    FinishedGoodsLot,
    RawMaterialStock,
    Shipment,
    WorkInProcessBatch,
)
from fashionsim.models.decisions import (
    BatchRequest,
    Decisions,
    GMCCommitment,
    MarketingPlan,
    ProductInput,
    PurchaseOrder,
)
from fashionsim.models.state import (
    CostBuckets,
    EntryType,
    LedgerEntry,
    Phase,
    SeasonTotals,
    WeeklyState,
)
from fashionsim.models.session import GameSession, SeasonResult
from fashionsim.models.report import (
    CashWaterfall,
    MaterialArrival,
    ProductionEvent,
    ProductSales,
    RawMaterialDelta,
    Settlement,
    WeeklySummary,
)

__all__ = [
    # Money
    "CENT",
    "ZERO",
    "format_money",
    "round_units",
    "to_decimal",
    "to_money",
    # Products
    "ProductDecision",
    # Contracts
    "ContractType",
    "Delivery",
    "GMCOrderLine",
    "ProcurementBook",
    "ProcurementContract",
    "ScheduledPayment",
    # Production
    "PlannedBatch",
    "ProductionMethod",
    "ProductionSchedule",
    "ShippingMethod",
    # Inventory
    "FinishedGoodsLot",
    "RawMaterialStock",
    "Shipment",
    "WorkInProcessBatch",
    # Decisions
    "BatchRequest",
    "Decisions",
    "GMCCommitment",
    "MarketingPlan",
    "ProductInput",
    "PurchaseOrder",
    # State
    "CostBuckets",
    "EntryType",
    "LedgerEntry",
    "Phase",
    "SeasonTotals",
    "WeeklyState",
    # Session
    "GameSession",
    "SeasonResult",
    # Report
    "CashWaterfall",
    "MaterialArrival",
    "ProductionEvent",
    "ProductSales",
    "RawMaterialDelta",
    "Settlement",
    "WeeklySummary",
]
