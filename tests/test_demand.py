"""Tests for the demand model."""

import math
from decimal import Decimal

import pytest

from fashionsim.config.schema import get_default_config
from fashionsim.engine.demand import DemandModel


@pytest.fixture
def model() -> DemandModel:
    return DemandModel(get_default_config())


class TestDemandFactors:
    """Tests for the individual demand factors."""

    def test_price_effect_at_full_price(self, model: DemandModel) -> None:
        """No discount leaves demand unchanged."""
        assert model.price_effect("jacket", 100.0, 0.0) == 1.0

    def test_price_effect_with_discount(self, model: DemandModel) -> None:
        """The effect is (rrp / discounted price) raised to the elasticity."""
        effect = model.price_effect("jacket", 100.0, 0.2)

        assert effect == pytest.approx((1 / 0.8) ** -1.40)

    def test_promo_lift_at_baseline(self, model: DemandModel) -> None:
        assert model.promo_lift(216_667) == pytest.approx(1.0)

    def test_promo_lift_floor(self, model: DemandModel) -> None:
        """Zero marketing does not wipe out demand."""
        assert model.promo_lift(0) == pytest.approx(0.2)

    def test_positioning_effect(self, model: DemandModel) -> None:
        """Sigmoid on the ratio to the mass-market reference price."""
        ratio = 100 / 80 - 1
        expected = 1 + 0.8 / (1 + math.exp(50 * (ratio - 0.2))) - 0.4

        assert model.positioning_effect("jacket", 100.0) == pytest.approx(expected)

    def test_positioning_effect_very_high_price(self, model: DemandModel) -> None:
        """Extreme prices settle at the sigmoid floor without overflowing."""
        assert model.positioning_effect("jacket", 10_000.0) == pytest.approx(0.6)

    def test_design_effect(self, model: DemandModel) -> None:
        assert model.design_effect(True) == 1.05
        assert model.design_effect(False) == 0.95


class TestDemand:
    """Tests for the combined demand figure."""

    def test_reference_jacket_week(self, model: DemandModel) -> None:
        """Full-price plain jacket at 100 with baseline marketing in week 6."""
        breakdown = model.breakdown(
            "jacket", 6, Decimal("100"), Decimal("0"), Decimal("216667"), False
        )

        assert breakdown.seasonality == 1.0
        assert breakdown.price_effect == 1.0
        assert breakdown.promo_lift == pytest.approx(1.0)
        assert breakdown.design_effect == 0.95
        assert breakdown.units == 62_765

    def test_demand_is_pure(self, model: DemandModel) -> None:
        """Same inputs always give the same units."""
        first = model.demand("dress", 8, 60, 0.1, 150_000, True)
        second = model.demand("dress", 8, 60, 0.1, 150_000, True)

        assert first == second
        assert first > 0

    def test_zero_seasonality_week(self, model: DemandModel) -> None:
        """Week 1 has no demand."""
        assert model.demand("jacket", 1, 100) == 0

    def test_full_discount_means_no_demand(self, model: DemandModel) -> None:
        """A 100% discount has no sellable price."""
        breakdown = model.breakdown("jacket", 8, 100, 1)

        assert breakdown.units == 0
        assert breakdown.price_effect == 0.0

    def test_zero_price_means_no_demand(self, model: DemandModel) -> None:
        assert model.demand("jacket", 8, 0) == 0

    def test_print_sells_more_than_plain(self, model: DemandModel) -> None:
        plain = model.demand("pants", 9, 70, 0, 216_667, False)
        printed = model.demand("pants", 9, 70, 0, 216_667, True)

        assert printed > plain

    def test_discount_scales_by_price_effect(self, model: DemandModel) -> None:
        full_price = model.breakdown("jacket", 8, 100, 0)
        discounted = model.breakdown("jacket", 8, 100, 0.3)

        assert discounted.raw_units == pytest.approx(full_price.raw_units * (1 / 0.7) ** -1.40)

    def test_raw_units_matches_factors(self, model: DemandModel) -> None:
        """Rounded units come from the unrounded product of factors."""
        breakdown = model.breakdown("dress", 10, 55, 0.15, 300_000, True)

        assert breakdown.units == math.floor(breakdown.raw_units + 0.5)

    def test_unknown_product(self, model: DemandModel) -> None:
        with pytest.raises(KeyError):
            model.demand("scarf", 8, 50)

    def test_alternate_constants(self) -> None:
        """Demand follows the injected configuration."""
        config = get_default_config().merge({"products": {"jacket": {"forecast": 200_000}}})
        doubled = DemandModel(config).demand("jacket", 6, 100, 0, 216_667)

        assert doubled == pytest.approx(2 * 62_765, abs=1)
