"""
Decision intake for FASHIONSIM.

Merges a Decisions payload into the current draft week, producing a
new draft. Structural problems (unknown keys, locked fields, orders
that cannot exist) are raised immediately; business rules are left to
validation so the player sees them all together before committing.
"""

import logging
from decimal import Decimal
from typing import Optional

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.engine.procurement import ProcurementLedger
from fashionsim.engine.production import ProductionPipeline
from fashionsim.models.contracts import ProcurementBook
from fashionsim.models.decisions import Decisions, ProductInput
from fashionsim.models.money import to_money
from fashionsim.models.products import ProductDecision
from fashionsim.models.state import WeeklyState

logger = logging.getLogger(__name__)


class IntakeError(ValueError):
    """Raised when decisions cannot be merged into the draft."""

    pass


class DecisionIntake:
    """Applies player decisions to a draft weekly state."""

    def __init__(self, config: Optional[FashionSimConfig] = None):
        self.config = config or get_default_config()
        self.procurement = ProcurementLedger(self.config)
        self.production = ProductionPipeline(self.config)

    @property
    def known_materials(self) -> set[str]:
        return {
            material
            for supplier in self.config.suppliers.values()
            for material in supplier.materials
        }

    def apply(self, state: WeeklyState, decisions: Decisions) -> WeeklyState:
        """Merge decisions into a draft.

        Args:
            state: Current draft state
            decisions: Player decisions

        Returns:
            New draft state with decisions applied and validation cleared

        Raises:
            IntakeError: If a decision refers to unknown keys or locked fields
            ProcurementError: If a purchase or cancellation is invalid
            ScheduleError: If a batch change is invalid
        """
        if state.is_committed:
            raise IntakeError(f"Week {state.week_number} is already committed")
        week = state.week_number

        product_data = dict(state.product_data)
        for product, choice in decisions.products.items():
            product_data[product] = self._apply_product(
                product, product_data.get(product, ProductDecision()), choice
            )

        book = state.procurement
        if decisions.single_supplier_deal is not None:
            book = self._sign_deal(book, decisions.single_supplier_deal)
        for commitment in decisions.gmc_commitments:
            book, _ = self.procurement.sign_commitment(book, commitment, week)
        for order_id in decisions.cancel_orders:
            book = self.procurement.cancel_order(book, order_id, week)
        for order in decisions.purchases:
            book, _ = self.procurement.place_purchase(book, order, week)

        schedule = state.production_schedule
        for batch_id in decisions.remove_batches:
            schedule = self.production.remove_batch(schedule, batch_id, week)
        for request in decisions.production_batches:
            schedule, _ = self.production.schedule_batch(schedule, request, week)

        discounts = dict(state.weekly_discounts)
        for product, discount in decisions.discounts.items():
            self._check_product(product)
            discounts[product] = discount

        marketing = decisions.marketing if decisions.marketing is not None else state.marketing_plan

        product_data = self._confirm_material_costs(product_data, book)
        logger.debug("Applied decisions to week %d of %s", week, state.session_id)

        return state.model_copy(
            update={
                "product_data": product_data,
                "procurement": book,
                "production_schedule": schedule,
                "weekly_discounts": discounts,
                "marketing_plan": marketing,
                "validation_errors": [],
                "validation_warnings": [],
            }
        )

    def _check_product(self, product: str) -> None:
        if product not in self.config.products:
            raise IntakeError(f"Unknown product: {product}")

    def _apply_product(
        self, product: str, current: ProductDecision, choice: ProductInput
    ) -> ProductDecision:
        self._check_product(product)
        update = {}
        if choice.rrp is not None and choice.rrp != current.rrp:
            if current.rrp_locked:
                raise IntakeError(f"Price for {product} is locked")
            update["rrp"] = choice.rrp
        if choice.fabric is not None and choice.fabric != current.fabric:
            if current.design_locked:
                raise IntakeError(f"Design for {product} is locked")
            if choice.fabric not in self.known_materials:
                raise IntakeError(f"Unknown fabric: {choice.fabric}")
            update["fabric"] = choice.fabric
        if choice.has_print is not None and choice.has_print != current.has_print:
            if current.design_locked:
                raise IntakeError(f"Design for {product} is locked")
            update["has_print"] = choice.has_print
        return current.model_copy(update=update) if update else current

    def _sign_deal(self, book: ProcurementBook, supplier: str) -> ProcurementBook:
        if supplier not in self.config.suppliers:
            raise IntakeError(f"Unknown supplier: {supplier}")
        if book.single_supplier_deal not in (None, supplier):
            raise IntakeError(
                f"Single-supplier deal already signed with {book.single_supplier_deal}"
            )
        return book.model_copy(update={"single_supplier_deal": supplier})

    def _confirm_material_costs(
        self, product_data: dict[str, ProductDecision], book: ProcurementBook
    ) -> dict[str, ProductDecision]:
        """Set each product's confirmed material cost from its fabric contracts.

        The cost is the unit-weighted net price of every contract for the
        fabric, quoting unpriced contracts at the discount they would get.
        Products without contracts keep their previous value.
        """
        quoted = self.procurement.price_contracts(book)
        confirmed = {}
        for product, decision in product_data.items():
            contracts = [c for c in quoted.contracts if c.material == decision.fabric]
            units = sum(c.units for c in contracts)
            if decision.fabric is None or units == 0:
                confirmed[product] = decision
                continue
            value = sum((c.unit_price * c.units for c in contracts), Decimal("0"))
            confirmed[product] = decision.model_copy(
                update={"confirmed_material_cost": to_money(value / units)}
            )
        return confirmed
