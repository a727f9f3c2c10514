"""
Game session models for FASHIONSIM.

A GameSession owns the ordered sequence of weekly states of one
player's season. Its SeasonResult is set only when week 15 commits.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SeasonResult(BaseModel):
    """Terminal KPIs of a finished season."""

    service_level: float = Field(ge=0, le=100, description="Percent of demand served, weeks 7-12")
    units_sold: int = Field(ge=0, description="Units sold in the service-level window")
    units_demanded: int = Field(ge=0, description="Units demanded in the service-level window")
    total_revenue: Decimal
    total_costs: Decimal
    capital_charge: Decimal
    economic_profit: Decimal
    dead_stock_units: int = Field(ge=0)
    dead_stock_penalty: Decimal
    final_score: Decimal
    final_cash: Decimal
    final_credit: Decimal


class GameSession(BaseModel):
    """One player's game."""

    session_id: str = Field(default_factory=lambda: uuid4().hex[:12])
    player_name: str = Field(default="Player", max_length=100)
    created_at: datetime = Field(default_factory=_now)
    current_week: int = Field(default=1, ge=1)
    is_completed: bool = False
    result: Optional[SeasonResult] = None
