"""
FASHIONSIM settlement engine.

This module contains the core weekly settlement logic:
- Demand model
- Procurement contracts (SPT, GMC, FVC)
- Production and inventory pipeline
- Sales resolution
- Cash and credit waterfall
- Pre-commit validation
- Season KPIs
- Week commit orchestration
"""

from fashionsim.engine.cash import CashLedger, CreditLimitExceededError
from fashionsim.engine.demand import DemandBreakdown, DemandModel
from fashionsim.engine.intake import DecisionIntake, IntakeError
from fashionsim.engine.kpi import compute_season_result, dead_stock, service_level
from fashionsim.engine.procurement import (
    ProcurementError,
    ProcurementLedger,
    ProcurementWeekResult,
)
from fashionsim.engine.production import (
    CapacityViolation,
    ProductionPipeline,
    ProductionWeekResult,
    ScheduleError,
)
from fashionsim.engine.report import build_ledger, build_summary
from fashionsim.engine.sales import LotConsumption, SalesResolver, SalesResult, consume_fifo
from fashionsim.engine.simulation import (
    CommitInProgressError,
    CommitOutcome,
    Simulation,
    SimulationWeekResult,
    WeekAlreadyCommittedError,
    WeekCommitOrchestrator,
)
from fashionsim.engine.validation import (
    ValidationError,
    ValidationResult,
    immediate_obligations,
    price_floor,
    validate_week,
)

__all__ = [
    # Demand
    "DemandBreakdown",
    "DemandModel",
    # Procurement
    "ProcurementError",
    "ProcurementLedger",
    "ProcurementWeekResult",
    # Production
    "CapacityViolation",
    "ProductionPipeline",
    "ProductionWeekResult",
    "ScheduleError",
    # Sales
    "LotConsumption",
    "SalesResolver",
    "SalesResult",
    "consume_fifo",
    # Cash
    "CashLedger",
    "CreditLimitExceededError",
    # Intake
    "DecisionIntake",
    "IntakeError",
    # Validation
    "ValidationError",
    "ValidationResult",
    "immediate_obligations",
    "price_floor",
    "validate_week",
    # KPIs
    "compute_season_result",
    "dead_stock",
    "service_level",
    # Reports
    "build_ledger",
    "build_summary",
    # Simulation
    "CommitInProgressError",
    "CommitOutcome",
    "Simulation",
    "SimulationWeekResult",
    "WeekAlreadyCommittedError",
    "WeekCommitOrchestrator",
]
