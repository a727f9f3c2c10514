"""
Season KPIs for FASHIONSIM.

Computed once, when the final week commits:
- Service level: units sold / units demanded over the sales weeks, in percent
- Economic profit: revenue - total costs - capital charge on starting capital
- Final score: economic profit - dead stock valued at unit cost basis
"""

from decimal import Decimal
from typing import Optional

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.models.money import ZERO, to_money
from fashionsim.models.session import SeasonResult
from fashionsim.models.state import WeeklyState


def service_level(states: list[WeeklyState], first_week: int, last_week: int) -> tuple[float, int, int]:
    """Percent of demand served in a window of committed weeks.

    Returns:
        Tuple of (service level percent, units sold, units demanded)
    """
    sold = 0
    demanded = 0
    for state in states:
        if first_week <= state.week_number <= last_week and state.is_committed:
            sold += state.units_sold
            demanded += state.units_demanded
    if demanded == 0:
        return 0.0, sold, demanded
    return round(sold / demanded * 100, 2), sold, demanded


def dead_stock(final_state: WeeklyState) -> tuple[int, Decimal]:
    """Unsold finished goods and their value at unit cost basis."""
    units = sum(lot.quantity for lot in final_state.finished_goods)
    value = to_money(sum((lot.quantity * lot.unit_cost_basis for lot in final_state.finished_goods), ZERO))
    return units, value


def compute_season_result(
    states: list[WeeklyState],
    final_state: WeeklyState,
    config: Optional[FashionSimConfig] = None,
) -> SeasonResult:
    """Compute terminal KPIs from the season's committed states.

    Args:
        states: Committed states of earlier weeks (any order)
        final_state: The committed final-week state
        config: Constants catalog (uses defaults if None)
    """
    config = config or get_default_config()
    history = [s for s in states if s.week_number != final_state.week_number] + [final_state]
    first_week, last_week = config.season.sales_weeks
    level, sold, demanded = service_level(history, first_week, last_week)

    revenue = final_state.totals.revenue
    total_costs = to_money(final_state.costs.total)
    capital_charge = to_money(config.finance.starting_capital * config.finance.capital_charge_rate)
    economic_profit = to_money(revenue - total_costs - capital_charge)
    dead_units, dead_value = dead_stock(final_state)

    return SeasonResult(
        service_level=level,
        units_sold=sold,
        units_demanded=demanded,
        total_revenue=revenue,
        total_costs=total_costs,
        capital_charge=capital_charge,
        economic_profit=economic_profit,
        dead_stock_units=dead_units,
        dead_stock_penalty=dead_value,
        final_score=to_money(economic_profit - dead_value),
        final_cash=final_state.cash_on_hand,
        final_credit=final_state.credit_used,
    )
