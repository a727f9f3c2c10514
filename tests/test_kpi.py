"""Tests for season KPIs."""

from decimal import Decimal

from conftest import make_lot, make_state
from fashionsim.config.schema import get_default_config
from fashionsim.engine.kpi import compute_season_result, dead_stock, service_level
from fashionsim.models.state import CostBuckets, SeasonTotals


def committed_week(week: int, sold: int, demanded: int, **fields):
    return make_state(
        week,
        weekly_sales={"jacket": sold},
        weekly_demand={"jacket": demanded},
        is_committed=True,
        **fields,
    )


class TestServiceLevel:
    """Tests for the sales-window service level."""

    def test_only_sales_window_counts(self) -> None:
        states = [
            committed_week(6, 0, 1_000),
            committed_week(7, 800, 1_000),
            committed_week(12, 1_000, 1_000),
            committed_week(13, 0, 5_000),
        ]

        level, sold, demanded = service_level(states, 7, 12)

        assert (level, sold, demanded) == (90.0, 1_800, 2_000)

    def test_drafts_ignored(self) -> None:
        states = [committed_week(8, 500, 1_000), make_state(9, weekly_demand={"jacket": 1_000})]

        assert service_level(states, 7, 12) == (50.0, 500, 1_000)

    def test_no_demand(self) -> None:
        assert service_level([], 7, 12) == (0.0, 0, 0)


class TestSeasonResult:
    """Tests for the terminal score."""

    def test_dead_stock(self) -> None:
        state = make_state(15, finished_goods=[make_lot("jacket", 100), make_lot("dress", 50, "lot-2")])

        assert dead_stock(state) == (150, Decimal("5850.00"))

    def test_compute_season_result(self) -> None:
        final = committed_week(
            15,
            0,
            0,
            costs=CostBuckets(materials=Decimal("500000"), production=Decimal("1250000")),
            totals=SeasonTotals(revenue=Decimal("3000000"), units_sold=30_000),
            finished_goods=[make_lot("jacket", 1_000)],
            cash_on_hand=Decimal("1234.56"),
        )
        history = [committed_week(8, 30_000, 40_000)]

        result = compute_season_result(history, final, get_default_config())

        assert result.service_level == 75.0
        assert result.total_revenue == Decimal("3000000")
        assert result.total_costs == Decimal("1750000.00")
        assert result.capital_charge == Decimal("100000.00")
        assert result.economic_profit == Decimal("1150000.00")
        assert result.dead_stock_units == 1_000
        assert result.dead_stock_penalty == Decimal("39000.00")
        assert result.final_score == Decimal("1111000.00")
        assert result.final_cash == Decimal("1234.56")

    def test_final_week_not_counted_twice(self) -> None:
        """A stale copy of the final week in the history is replaced."""
        final = committed_week(12, 100, 100)
        history = [committed_week(12, 0, 100), committed_week(11, 0, 100)]

        result = compute_season_result(history, final, get_default_config())

        assert (result.units_sold, result.units_demanded) == (100, 200)
