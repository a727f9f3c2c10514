"""
Demand model for FASHIONSIM.

Weekly unit demand for a product is the product of six factors:

    units = forecast x seasonality(week) x price_effect x promo_lift
            x positioning_effect x design_effect

where:
    price_effect       = (rrp / (rrp x (1 - discount))) ^ elasticity
    promo_lift         = max(floor, marketing_spend / baseline_spend)
    positioning_effect = 1 + amplitude / (1 + exp(steepness x (ratio - center))) + offset
                         with ratio = rrp / hm_price - 1
    design_effect      = print uplift or plain discount

The model is pure: the same arguments always return the same units,
so it serves both settlement and speculative previews.
"""

import math
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional, Union

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.models.money import round_units

Price = Union[Decimal, float, int]


@dataclass(frozen=True)
class DemandBreakdown:
    """Every factor behind one demand figure."""

    product: str
    week: int
    base_forecast: int
    seasonality: float
    price_effect: float
    promo_lift: float
    positioning_effect: float
    design_effect: float
    units: int

    @property
    def raw_units(self) -> float:
        """Unrounded product of all factors."""
        return (
            self.base_forecast
            * self.seasonality
            * self.price_effect
            * self.promo_lift
            * self.positioning_effect
            * self.design_effect
        )


class DemandModel:
    """Computes weekly demand from price, promotion and design choices."""

    def __init__(self, config: Optional[FashionSimConfig] = None):
        """Initialize demand model.

        Args:
            config: Constants catalog (uses defaults if None)
        """
        self.config = config or get_default_config()

    def price_effect(self, product: str, rrp: float, discount: float) -> float:
        elasticity = self.config.products[product].elasticity
        final_price = rrp * (1 - discount)
        return (rrp / final_price) ** elasticity

    def promo_lift(self, marketing_spend: float) -> float:
        demand = self.config.demand
        return max(demand.promo_lift_floor, marketing_spend / float(demand.baseline_marketing_spend))

    def positioning_effect(self, product: str, rrp: float) -> float:
        """Sigmoid bonus/penalty on the price ratio to the mass-market reference."""
        params = self.config.demand.positioning
        price_ratio = rrp / float(self.config.products[product].hm_price) - 1
        exponent = params["steepness"] * (price_ratio - params["center"])
        # exp overflows past ~709; the sigmoid term is 0 there anyway
        if exponent > 700:
            sigmoid = 0.0
        else:
            sigmoid = params["amplitude"] / (1 + math.exp(exponent))
        return 1 + sigmoid + params["offset"]

    def design_effect(self, has_print: bool) -> float:
        demand = self.config.demand
        return demand.print_design_effect if has_print else demand.plain_design_effect

    def breakdown(
        self,
        product: str,
        week: int,
        rrp: Price,
        discount: Price = 0,
        marketing_spend: Price = 0,
        has_print: bool = False,
    ) -> DemandBreakdown:
        """Compute demand and return every contributing factor.

        Args:
            product: Product key
            week: Season week (1-15)
            rrp: Recommended retail price
            discount: Discount fraction (0-1)
            marketing_spend: Marketing spend for the week
            has_print: Whether the design carries a print

        Returns:
            DemandBreakdown with the rounded unit demand

        Raises:
            KeyError: If the product is unknown
        """
        product_config = self.config.products[product]
        rrp_f = float(rrp)
        discount_f = float(discount)
        seasonality = self.config.seasonality_for_week(week)

        if rrp_f <= 0 or discount_f >= 1:
            # No sellable price: nothing is demanded
            return DemandBreakdown(
                product=product,
                week=week,
                base_forecast=product_config.forecast,
                seasonality=seasonality,
                price_effect=0.0,
                promo_lift=self.promo_lift(float(marketing_spend)),
                positioning_effect=self.positioning_effect(product, max(rrp_f, 0.0)),
                design_effect=self.design_effect(has_print),
                units=0,
            )

        factors = DemandBreakdown(
            product=product,
            week=week,
            base_forecast=product_config.forecast,
            seasonality=seasonality,
            price_effect=self.price_effect(product, rrp_f, discount_f),
            promo_lift=self.promo_lift(float(marketing_spend)),
            positioning_effect=self.positioning_effect(product, rrp_f),
            design_effect=self.design_effect(has_print),
            units=0,
        )
        units = max(0, round_units(factors.raw_units))
        return replace(factors, units=units)

    def demand(
        self,
        product: str,
        week: int,
        rrp: Price,
        discount: Price = 0,
        marketing_spend: Price = 0,
        has_print: bool = False,
    ) -> int:
        """Forecast unit demand for one product in one week."""
        return self.breakdown(product, week, rrp, discount, marketing_spend, has_print).units
