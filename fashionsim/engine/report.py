"""
Weekly summary builder for FASHIONSIM.

Turns the component results of one commit into the player-facing
WeeklySummary and the ledger rows stored with the committed state.
"""

from decimal import Decimal
from typing import Optional

from fashionsim.engine.procurement import ProcurementWeekResult
from fashionsim.engine.production import ProductionWeekResult
from fashionsim.engine.sales import SalesResult
from fashionsim.models.contracts import ContractType
from fashionsim.models.report import CashWaterfall, RawMaterialDelta, WeeklySummary
from fashionsim.models.state import EntryType, LedgerEntry, WeeklyState

MATERIAL_ENTRY_TYPES = {
    ContractType.SPOT.value: EntryType.MATERIALS_SPT,
    ContractType.GMC.value: EntryType.MATERIALS_GMC,
    ContractType.FORWARD.value: EntryType.MATERIALS_FVC,
}


def build_ledger(
    week: int,
    procurement: ProcurementWeekResult,
    production: ProductionWeekResult,
    sales: SalesResult,
    marketing: Decimal,
    holding: Decimal,
    waterfall: CashWaterfall,
    penalties: dict[str, Decimal],
) -> list[LedgerEntry]:
    """One ledger row per cash movement of the week."""
    entries: list[LedgerEntry] = []

    def add(entry_type: EntryType, amount: Decimal, ref_id: Optional[str] = None, memo: str = "") -> None:
        if amount > 0:
            entries.append(
                LedgerEntry(
                    week_number=week, entry_type=entry_type, ref_id=ref_id, amount=amount, memo=memo
                )
            )

    for product in sales.products:
        add(EntryType.REVENUE, product.revenue, product.product, f"{product.sold:,} units")
    for settlement in procurement.settlements:
        add(
            MATERIAL_ENTRY_TYPES[settlement.contract_type],
            settlement.amount,
            settlement.ref_id,
            f"{settlement.supplier} {settlement.material}",
        )
    for batch_id, amount in production.production_charges:
        add(EntryType.PRODUCTION, amount, batch_id)
    for shipment_id, amount in production.shipping_charges:
        add(EntryType.LOGISTICS, amount, shipment_id)
    add(EntryType.MARKETING, marketing)
    add(EntryType.HOLDING, holding)
    add(EntryType.INTEREST, waterfall.interest)
    for supplier, amount in penalties.items():
        add(EntryType.GMC_PENALTY, amount, supplier, "GMC shortfall")
    add(EntryType.PAYDOWN, waterfall.paydown + waterfall.final_paydown)
    return entries


def build_summary(
    previous: WeeklyState,
    committed: WeeklyState,
    procurement: ProcurementWeekResult,
    production: ProductionWeekResult,
    sales: SalesResult,
    waterfall: CashWaterfall,
) -> WeeklySummary:
    """Summarize a committed week against the draft it came from."""
    materials = sorted(set(previous.raw_materials) | set(committed.raw_materials))
    deltas = []
    for material in materials:
        received = sum(a.good_units for a in procurement.arrivals if a.material == material)
        consumed = production.materials_consumed.get(material, 0)
        opening = previous.raw_material(material)
        closing = committed.raw_material(material)
        if opening.on_hand or received or consumed or closing.on_hand:
            deltas.append(
                RawMaterialDelta(
                    material=material,
                    opening_units=opening.on_hand,
                    received_units=received,
                    consumed_units=consumed,
                    closing_units=closing.on_hand,
                    closing_value=closing.on_hand_value,
                )
            )

    return WeeklySummary(
        session_id=committed.session_id,
        week_number=committed.week_number,
        phase=committed.phase.value,
        cash=waterfall,
        arrivals=procurement.arrivals,
        settlements=procurement.settlements,
        raw_materials=deltas,
        production=production.events,
        sales=sales.products,
        ledger=committed.ledger,
        warnings=committed.validation_warnings,
    )
