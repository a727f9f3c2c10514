"""
Procurement ledger for FASHIONSIM.

This module handles:
- Turning purchase decisions into contracts and GMC order lines
- Volume discount lookup (supplier tiers + single-supplier bonus)
- Locking prices and scheduling deliveries/payments once
- Collecting payments due and receiving deliveries each week
- GMC shortfall penalties at season end

Commit sequencing for one week:
    (a) price new contracts and order lines
    (b) schedule deliveries and payments
    (c) collect payments due this week
    (d) receive deliveries due this week into raw materials

Contract terms:
    SPT  discount from this week's basket with the supplier; paid on
         delivery for good units only
    GMC  discount from the signed commitment; each order line paid a
         fixed lag after it was placed, delivered after lead time
    FVC  week 1 only; deposit on signing, balance a fixed lag later
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.models.contracts import (
    ContractType,
    Delivery,
    GMCOrderLine,
    ProcurementBook,
    ProcurementContract,
    ScheduledPayment,
)
from fashionsim.models.decisions import GMCCommitment, PurchaseOrder
from fashionsim.models.inventory import RawMaterialStock
from fashionsim.models.money import ZERO, round_units, to_money
from fashionsim.models.report import MaterialArrival, Settlement

logger = logging.getLogger(__name__)


class ProcurementError(ValueError):
    """Raised when a purchase decision cannot be applied."""

    pass


@dataclass
class ProcurementWeekResult:
    """Result of running procurement for one week."""

    book: ProcurementBook
    raw_materials: dict[str, RawMaterialStock]
    settlements: list[Settlement] = field(default_factory=list)
    arrivals: list[MaterialArrival] = field(default_factory=list)

    @property
    def payments_total(self) -> Decimal:
        return to_money(sum((s.amount for s in self.settlements), ZERO))

    def payments_by_type(self) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = {}
        for s in self.settlements:
            totals[s.contract_type] = to_money(totals.get(s.contract_type, ZERO) + s.amount)
        return totals


def _new_id(prefix: str, week: int, supplier: str, material: str) -> str:
    return f"{prefix}-W{week}-{supplier}-{material}-{uuid4().hex[:6]}"


class ProcurementLedger:
    """Manages material contracts, their pricing and settlement calendar."""

    def __init__(self, config: Optional[FashionSimConfig] = None):
        """Initialize procurement ledger.

        Args:
            config: Constants catalog (uses defaults if None)
        """
        self.config = config or get_default_config()

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def tier_discount(self, supplier: str, units: int) -> Decimal:
        """Look up the volume discount for a unit volume with a supplier."""
        for tier in self.config.procurement.volume_discounts.get(supplier, []):
            if tier.contains(units):
                return tier.discount
        return Decimal("0")

    def discount_volume(self, book: ProcurementBook, contract: ProcurementContract) -> int:
        """Unit volume that sets a contract's discount tier.

        GMC contracts use the supplier's total commitment. SPT and FVC use
        the basket of same-type contracts with the supplier that week.
        """
        if contract.contract_type == ContractType.GMC:
            return book.gmc_commitments.get(contract.supplier, 0)
        return sum(
            c.units
            for c in book.contracts
            if c.contract_type == contract.contract_type
            and c.supplier == contract.supplier
            and c.week_signed == contract.week_signed
        )

    def discount_for(self, book: ProcurementBook, contract: ProcurementContract) -> Decimal:
        discount = self.tier_discount(contract.supplier, self.discount_volume(book, contract))
        if book.single_supplier_deal == contract.supplier:
            discount += self.config.procurement.single_supplier_bonus
        return discount

    def good_units(self, supplier: str, units: int) -> int:
        """Units passing inspection: round(units x (1 - defect rate))."""
        defect_rate = self.config.suppliers[supplier].defect_rate
        return round_units(units * (1 - defect_rate))

    def price_contracts(self, book: ProcurementBook) -> ProcurementBook:
        """Lock base price, surcharge and discount on unpriced contracts."""
        priced = []
        for contract in book.contracts:
            if not contract.is_priced:
                catalog = self.config.material_price(contract.supplier, contract.material)
                if catalog is None:
                    raise ProcurementError(
                        f"{contract.supplier} does not stock {contract.material}"
                    )
                contract = contract.model_copy(
                    update={
                        "unit_base_price": catalog.price,
                        "print_surcharge": catalog.print_surcharge if contract.has_print else Decimal("0"),
                        "discount": self.discount_for(book, contract),
                    }
                )
                logger.debug(
                    "Priced %s at %s (discount %s)",
                    contract.contract_id,
                    contract.unit_price,
                    contract.discount,
                )
            if any(line.unit_price is None for line in contract.gmc_orders):
                lines = [
                    line if line.unit_price is not None
                    else line.model_copy(update={"unit_price": contract.unit_price})
                    for line in contract.gmc_orders
                ]
                contract = contract.model_copy(update={"gmc_orders": lines})
            priced.append(contract)
        return book.model_copy(update={"contracts": priced})

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _schedule_contract(self, contract: ProcurementContract) -> ProcurementContract:
        """Add delivery and payment events for anything not yet scheduled.

        Due weeks are not capped at the season length: an order placed late
        enough is scheduled past the final week and never settles.
        Validation warns about such orders before they are committed.
        """
        supplier = self.config.suppliers[contract.supplier]
        terms = self.config.procurement
        unit_price = contract.unit_price

        if contract.contract_type == ContractType.GMC:
            deliveries = list(contract.deliveries)
            payments = list(contract.payments)
            lines = []
            for line in contract.gmc_orders:
                if not line.scheduled:
                    price = line.unit_price if line.unit_price is not None else unit_price
                    deliveries.append(
                        Delivery(
                            ref_id=line.line_id,
                            due_week=line.week_ordered + supplier.lead_time,
                            units=line.units,
                            good_units=self.good_units(contract.supplier, line.units),
                            unit_price=price,
                        )
                    )
                    payments.append(
                        ScheduledPayment(
                            ref_id=line.line_id,
                            due_week=line.week_ordered + terms.gmc_settlement_lag_weeks,
                            amount=to_money(price * line.units),
                        )
                    )
                    line = line.model_copy(update={"scheduled": True})
                lines.append(line)
            return contract.model_copy(
                update={"gmc_orders": lines, "deliveries": deliveries, "payments": payments}
            )

        if contract.deliveries:
            return contract

        delivery_week = contract.week_signed + supplier.lead_time
        good = self.good_units(contract.supplier, contract.units)
        delivery = Delivery(
            ref_id=contract.contract_id,
            due_week=delivery_week,
            units=contract.units,
            good_units=good,
            unit_price=unit_price,
        )
        if contract.contract_type == ContractType.SPOT:
            payments = [
                ScheduledPayment(
                    ref_id=contract.contract_id,
                    due_week=delivery_week,
                    amount=to_money(unit_price * good),
                )
            ]
        else:
            value = contract.contract_value
            deposit = to_money(value * terms.fvc_deposit_fraction)
            payments = [
                ScheduledPayment(
                    ref_id=f"{contract.contract_id}-deposit",
                    due_week=contract.week_signed,
                    amount=deposit,
                ),
                ScheduledPayment(
                    ref_id=f"{contract.contract_id}-balance",
                    due_week=contract.week_signed + terms.fvc_balance_lag_weeks,
                    amount=to_money(value - deposit),
                ),
            ]
        return contract.model_copy(update={"deliveries": [delivery], "payments": payments})

    def schedule_deliveries(self, book: ProcurementBook) -> ProcurementBook:
        """Create delivery and payment schedules not yet on the calendar."""
        contracts = [self._schedule_contract(c) for c in book.contracts]
        return book.model_copy(update={"contracts": contracts})

    # ------------------------------------------------------------------
    # Weekly settlement
    # ------------------------------------------------------------------

    def collect_payments(
        self, book: ProcurementBook, week: int
    ) -> tuple[ProcurementBook, list[Settlement]]:
        """Mark payments due this week as paid.

        Returns:
            Tuple of (updated book, settlements made)
        """
        settlements: list[Settlement] = []
        contracts = []
        for contract in book.contracts:
            due = [p for p in contract.payments if p.is_due(week)]
            if due:
                payments = [
                    p.model_copy(update={"paid": True}) if p.is_due(week) else p
                    for p in contract.payments
                ]
                paid = sum((p.amount for p in due), ZERO)
                contract = contract.model_copy(
                    update={
                        "payments": payments,
                        "paid_to_date": to_money(contract.paid_to_date + paid),
                    }
                )
                for p in due:
                    settlements.append(
                        Settlement(
                            ref_id=p.ref_id,
                            contract_id=contract.contract_id,
                            contract_type=contract.contract_type.value,
                            supplier=contract.supplier,
                            material=contract.material,
                            amount=p.amount,
                        )
                    )
            contracts.append(contract)
        return book.model_copy(update={"contracts": contracts}), settlements

    def receive_deliveries(
        self,
        book: ProcurementBook,
        raw_materials: dict[str, RawMaterialStock],
        week: int,
    ) -> tuple[ProcurementBook, dict[str, RawMaterialStock], list[MaterialArrival]]:
        """Receive deliveries due this week into raw-material stock.

        Only good units are inventoried, valued at the locked unit price.
        """
        stock = dict(raw_materials)
        arrivals: list[MaterialArrival] = []
        contracts = []
        for contract in book.contracts:
            due = [d for d in contract.deliveries if d.is_due(week)]
            if due:
                material = stock.get(contract.material, RawMaterialStock())
                for d in due:
                    material = material.receive(d.good_units, d.unit_price)
                    arrivals.append(
                        MaterialArrival(
                            ref_id=d.ref_id,
                            supplier=contract.supplier,
                            material=contract.material,
                            units=d.units,
                            good_units=d.good_units,
                            unit_price=d.unit_price,
                        )
                    )
                stock[contract.material] = material
                deliveries = [
                    d.model_copy(update={"received": True}) if d.is_due(week) else d
                    for d in contract.deliveries
                ]
                contract = contract.model_copy(
                    update={
                        "deliveries": deliveries,
                        "delivered_units": contract.delivered_units + sum(d.good_units for d in due),
                    }
                )
            contracts.append(contract)
        return book.model_copy(update={"contracts": contracts}), stock, arrivals

    def process_week(
        self,
        book: ProcurementBook,
        raw_materials: dict[str, RawMaterialStock],
        week: int,
    ) -> ProcurementWeekResult:
        """Run steps (a)-(d) for one week."""
        book = self.price_contracts(book)
        book = self.schedule_deliveries(book)
        book, settlements = self.collect_payments(book, week)
        book, stock, arrivals = self.receive_deliveries(book, raw_materials, week)
        if settlements or arrivals:
            logger.info(
                "Week %d procurement: %d payments, %d deliveries",
                week,
                len(settlements),
                len(arrivals),
            )
        return ProcurementWeekResult(
            book=book, raw_materials=stock, settlements=settlements, arrivals=arrivals
        )

    def payments_due(self, book: ProcurementBook, week: int) -> Decimal:
        """Estimate procurement payments falling due in a week.

        Pure: prices and schedules a copy of the book without keeping it.
        """
        scheduled = self.schedule_deliveries(self.price_contracts(book))
        return to_money(
            sum(
                (p.amount for c in scheduled.contracts for p in c.payments if p.is_due(week)),
                ZERO,
            )
        )

    def deliveries_due(self, book: ProcurementBook, material: str, week: int) -> int:
        """Good units of a material arriving in a week (pure estimate)."""
        scheduled = self.schedule_deliveries(self.price_contracts(book))
        return sum(
            d.good_units
            for c in scheduled.contracts
            if c.material == material
            for d in c.deliveries
            if d.is_due(week)
        )

    def shortfall_penalties(self, book: ProcurementBook) -> dict[str, Decimal]:
        """GMC shortfall penalty per supplier at season end.

        penalty = rate x missing units x average delivered GMC unit price
        (simple average of contract prices when nothing was delivered).
        """
        rate = self.config.procurement.gmc_shortfall_penalty_rate
        penalties: dict[str, Decimal] = {}
        for supplier, committed in book.gmc_commitments.items():
            contracts = [
                c for c in book.by_type(ContractType.GMC) if c.supplier == supplier
            ]
            delivered = sum(c.delivered_units for c in contracts)
            missing = max(0, committed - delivered)
            if missing == 0:
                continue
            if delivered > 0:
                average = sum(c.unit_price * c.delivered_units for c in contracts) / delivered
            else:
                average = sum(c.unit_price for c in contracts) / len(contracts)
            penalty = to_money(Decimal(missing) * average * rate)
            if penalty > 0:
                penalties[supplier] = penalty
                logger.info(
                    "GMC shortfall with %s: %d units missing, penalty %s",
                    supplier,
                    missing,
                    penalty,
                )
        return penalties

    # ------------------------------------------------------------------
    # Intake operations
    # ------------------------------------------------------------------

    def _check_catalog(self, supplier: str, material: str) -> None:
        if supplier not in self.config.suppliers:
            raise ProcurementError(f"Unknown supplier: {supplier}")
        if self.config.material_price(supplier, material) is None:
            raise ProcurementError(f"{supplier} does not stock {material}")

    def sign_commitment(
        self, book: ProcurementBook, commitment: GMCCommitment, week: int
    ) -> tuple[ProcurementBook, ProcurementContract]:
        """Sign a GMC commitment for a supplier and material.

        Raises:
            ProcurementError: If the supplier/material is invalid or already committed
        """
        self._check_catalog(commitment.supplier, commitment.material)
        if book.gmc_contract(commitment.supplier, commitment.material) is not None:
            raise ProcurementError(
                f"GMC with {commitment.supplier} for {commitment.material} already signed"
            )
        contract = ProcurementContract(
            contract_id=_new_id("GMC", week, commitment.supplier, commitment.material),
            contract_type=ContractType.GMC,
            supplier=commitment.supplier,
            material=commitment.material,
            units=commitment.units,
            week_signed=week,
            has_print=commitment.has_print,
        )
        return book.add_contract(contract), contract

    def place_purchase(
        self, book: ProcurementBook, order: PurchaseOrder, week: int
    ) -> tuple[ProcurementBook, str]:
        """Turn one purchase into a contract (SPT/FVC) or a GMC order line.

        Returns:
            Tuple of (updated book, id of the new contract or order line)

        Raises:
            ProcurementError: If the order cannot be placed
        """
        self._check_catalog(order.supplier, order.material)

        if order.contract_type == ContractType.GMC:
            contract = book.gmc_contract(order.supplier, order.material)
            if contract is None:
                raise ProcurementError(
                    f"No GMC commitment with {order.supplier} for {order.material}"
                )
            line = GMCOrderLine(
                line_id=_new_id("GMCL", week, order.supplier, order.material),
                week_ordered=week,
                units=order.units,
            )
            updated = contract.model_copy(update={"gmc_orders": contract.gmc_orders + [line]})
            return book.replace_contract(updated), line.line_id

        contract = ProcurementContract(
            contract_id=_new_id(order.contract_type.value, week, order.supplier, order.material),
            contract_type=order.contract_type,
            supplier=order.supplier,
            material=order.material,
            units=order.units,
            week_signed=week,
            has_print=order.has_print,
        )
        return book.add_contract(contract), contract.contract_id

    def cancel_order(self, book: ProcurementBook, order_id: str, week: int) -> ProcurementBook:
        """Remove a contract or GMC order line placed in the current draft week.

        Raises:
            ProcurementError: If the order is unknown or already priced
        """
        contract = book.get(order_id)
        if contract is not None:
            if contract.week_signed != week or contract.is_priced:
                raise ProcurementError(f"Contract {order_id} is already committed")
            return book.remove_contract(order_id)

        for contract in book.contracts:
            line = contract.get_line(order_id)
            if line is None:
                continue
            if line.week_ordered != week or line.scheduled:
                raise ProcurementError(f"Order line {order_id} is already committed")
            lines = [o for o in contract.gmc_orders if o.line_id != order_id]
            return book.replace_contract(contract.model_copy(update={"gmc_orders": lines}))

        raise ProcurementError(f"Unknown order: {order_id}")
