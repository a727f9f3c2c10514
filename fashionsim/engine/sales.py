"""
Sales resolution for FASHIONSIM.

For each product in a week:
1. Demand from the demand model at the applicable discount (run-out
   markdowns replace the player's discount in the last weeks)
2. units = min(available finished goods, demand)
3. No-loss rule: if the discounted price is below the trailing actual
   unit cost (season COGS / max(1, units sold to date)), nothing sells
4. Lots are consumed oldest first, accumulating revenue and COGS
5. lost = demand - units
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.engine.demand import DemandModel
from fashionsim.models.inventory import FinishedGoodsLot
from fashionsim.models.money import ZERO, to_money
from fashionsim.models.products import ProductDecision
from fashionsim.models.report import ProductSales
from fashionsim.models.state import SeasonTotals

logger = logging.getLogger(__name__)


@dataclass
class LotConsumption:
    """Units taken from one lot and their cost."""

    lot_id: str
    units: int
    material_cost: Decimal
    production_cost: Decimal
    shipping_cost: Decimal

    @property
    def total_cost(self) -> Decimal:
        return self.material_cost + self.production_cost + self.shipping_cost


@dataclass
class SalesResult:
    """Result of resolving one week of sales."""

    finished_goods: list[FinishedGoodsLot]
    demand: dict[str, int] = field(default_factory=dict)
    sales: dict[str, int] = field(default_factory=dict)
    lost: dict[str, int] = field(default_factory=dict)
    discounts: dict[str, Decimal] = field(default_factory=dict)
    products: list[ProductSales] = field(default_factory=list)
    revenue: Decimal = ZERO
    cogs_materials: Decimal = ZERO
    cogs_production: Decimal = ZERO
    cogs_logistics: Decimal = ZERO

    @property
    def units_sold(self) -> int:
        return sum(self.sales.values())


def consume_fifo(
    lots: list[FinishedGoodsLot], product: str, units: int
) -> tuple[list[FinishedGoodsLot], list[LotConsumption]]:
    """Consume units of a product from the oldest lots first.

    Depleted lots are pruned; lots of other products are untouched.

    Returns:
        Tuple of (remaining lots, per-lot consumption)

    Raises:
        ValueError: If fewer units are available than requested
    """
    available = sum(lot.quantity for lot in lots if lot.product == product)
    if units > available:
        raise ValueError(f"Cannot consume {units} {product}, only {available} available")

    remaining_units = units
    consumed: list[LotConsumption] = []
    result: list[FinishedGoodsLot] = []
    for lot in lots:
        if lot.product != product or remaining_units == 0:
            result.append(lot)
            continue
        take = min(remaining_units, lot.quantity)
        remaining_units -= take
        if take > 0:
            consumed.append(
                LotConsumption(
                    lot_id=lot.lot_id,
                    units=take,
                    material_cost=lot.unit_material_cost * take,
                    production_cost=lot.unit_production_cost * take,
                    shipping_cost=lot.unit_shipping_cost * take,
                )
            )
        lot = lot.take(take)
        if lot.quantity > 0:
            result.append(lot)
    return result, consumed


class SalesResolver:
    """Resolves weekly demand against finished-goods inventory."""

    def __init__(
        self,
        config: Optional[FashionSimConfig] = None,
        demand_model: Optional[DemandModel] = None,
    ):
        """Initialize sales resolver.

        Args:
            config: Constants catalog (uses defaults if None)
            demand_model: Demand model (built from config if None)
        """
        self.config = config or get_default_config()
        self.demand_model = demand_model or DemandModel(self.config)

    def effective_discount(self, week: int, player_discount: Decimal) -> Decimal:
        """Run-out markdowns override whatever the player set."""
        markdown = self.config.runout_markdown(week)
        return markdown if markdown is not None else player_discount

    def resolve(
        self,
        week: int,
        product_data: dict[str, ProductDecision],
        finished_goods: list[FinishedGoodsLot],
        discounts: dict[str, Decimal],
        marketing_spend: Decimal,
        totals: SeasonTotals,
    ) -> SalesResult:
        """Resolve sales for every product in one week."""
        lots = list(finished_goods)
        result = SalesResult(finished_goods=lots)
        actual_unit_cost = totals.actual_unit_cost

        for product in self.config.product_keys:
            decision = product_data.get(product, ProductDecision())
            discount = self.effective_discount(week, discounts.get(product, Decimal("0")))
            result.discounts[product] = discount

            if decision.rrp is None:
                demand = 0
                price = ZERO
            else:
                demand = self.demand_model.demand(
                    product, week, decision.rrp, discount, marketing_spend, decision.has_print
                )
                price = decision.discounted_price(discount)

            available = sum(lot.quantity for lot in lots if lot.product == product)
            units = min(available, demand)
            blocked = units > 0 and price < actual_unit_cost
            if blocked:
                logger.info(
                    "Week %d: %s sales blocked, price %s below unit cost %s",
                    week,
                    product,
                    price,
                    actual_unit_cost.quantize(Decimal("0.01")),
                )
                units = 0

            lots, consumed = consume_fifo(lots, product, units)
            revenue = to_money(price * units)
            result.revenue = to_money(result.revenue + revenue)
            result.cogs_materials = to_money(
                result.cogs_materials + sum((c.material_cost for c in consumed), ZERO)
            )
            result.cogs_production = to_money(
                result.cogs_production + sum((c.production_cost for c in consumed), ZERO)
            )
            result.cogs_logistics = to_money(
                result.cogs_logistics + sum((c.shipping_cost for c in consumed), ZERO)
            )

            result.demand[product] = demand
            result.sales[product] = units
            result.lost[product] = max(0, demand - units)
            result.products.append(
                ProductSales(
                    product=product,
                    demand=demand,
                    sold=units,
                    lost=max(0, demand - units),
                    price=to_money(price),
                    discount=discount,
                    revenue=revenue,
                    blocked_below_cost=blocked,
                )
            )

        result.finished_goods = lots
        return result

    def update_totals(
        self, totals: SeasonTotals, result: SalesResult, marketing_spend: Decimal
    ) -> SeasonTotals:
        """Fold a week's sales into the season totals.

        Marketing is allocated to COGS only in weeks with sales.
        """
        marketing = marketing_spend if result.units_sold > 0 else ZERO
        return SeasonTotals(
            revenue=to_money(totals.revenue + result.revenue),
            units_sold=totals.units_sold + result.units_sold,
            cogs_materials=to_money(totals.cogs_materials + result.cogs_materials),
            cogs_production=to_money(totals.cogs_production + result.cogs_production),
            cogs_logistics=to_money(totals.cogs_logistics + result.cogs_logistics),
            cogs_marketing=to_money(totals.cogs_marketing + marketing),
        )
