"""
Procurement contract models for FASHIONSIM.

Tracks material contracts with the fabric suppliers:
- Spot (SPT): one-off basket, paid on delivery of good units
- Guaranteed minimum commitment (GMC): standing commitment filled by
  weekly order lines, each line settled a fixed lag after ordering
- Forward (FVC): week-1 contract, deposit on signing, balance later

Pricing (base price, surcharge, discount) is locked the first time a
contract is priced; deliveries and payments are scheduled once.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from fashionsim.models.money import ZERO, to_money


class ContractType(str, Enum):
    """Types of procurement contracts."""

    SPOT = "SPT"
    GMC = "GMC"
    FORWARD = "FVC"


class Delivery(BaseModel):
    """A scheduled material delivery.

    good_units is fixed when the delivery is scheduled; defective units
    are never inventoried or billed.
    """

    ref_id: str = Field(description="Contract or order line this delivery fulfils")
    due_week: int = Field(ge=1, description="Week the material is received")
    units: int = Field(ge=0, description="Units shipped by the supplier")
    good_units: int = Field(ge=0, description="Units passing inspection")
    unit_price: Decimal = Field(ge=0, description="Locked net price per unit")
    received: bool = False

    def is_due(self, current_week: int) -> bool:
        return not self.received and self.due_week == current_week


class ScheduledPayment(BaseModel):
    """A payment obligation on the settlement calendar."""

    ref_id: str
    due_week: int = Field(ge=1)
    amount: Decimal = Field(ge=0)
    paid: bool = False

    def is_due(self, current_week: int) -> bool:
        return not self.paid and self.due_week == current_week


class GMCOrderLine(BaseModel):
    """A weekly order placed against a GMC commitment."""

    line_id: str
    week_ordered: int = Field(ge=1)
    units: int = Field(gt=0)
    unit_price: Optional[Decimal] = Field(default=None, description="Locked when the line is priced")
    scheduled: bool = False


class ProcurementContract(BaseModel):
    """A material contract with one supplier for one material.

    For GMC contracts `units` is the committed volume; material actually
    flows through `gmc_orders`.
    """

    contract_id: str
    contract_type: ContractType
    supplier: str
    material: str
    units: int = Field(gt=0, description="Contracted (or committed) units")
    week_signed: int = Field(ge=1)
    has_print: bool = False

    unit_base_price: Optional[Decimal] = None
    print_surcharge: Optional[Decimal] = None
    discount: Optional[Decimal] = Field(default=None, description="Locked discount fraction")

    gmc_orders: list[GMCOrderLine] = Field(default_factory=list)
    deliveries: list[Delivery] = Field(default_factory=list)
    payments: list[ScheduledPayment] = Field(default_factory=list)

    paid_to_date: Decimal = ZERO
    delivered_units: int = Field(default=0, ge=0, description="Good units received so far")

    @property
    def is_priced(self) -> bool:
        return self.discount is not None and self.unit_base_price is not None

    @property
    def unit_price(self) -> Decimal:
        """Net price per unit: (base + surcharge) x (1 - discount)."""
        base = self.unit_base_price or Decimal("0")
        surcharge = self.print_surcharge or Decimal("0")
        discount = self.discount or Decimal("0")
        return (base + surcharge) * (Decimal("1") - discount)

    @property
    def contract_value(self) -> Decimal:
        return to_money(self.unit_price * self.units)

    @property
    def ordered_units(self) -> int:
        """Units called off so far (GMC) or contracted (SPT/FVC)."""
        if self.contract_type == ContractType.GMC:
            return sum(line.units for line in self.gmc_orders)
        return self.units

    def get_line(self, line_id: str) -> Optional[GMCOrderLine]:
        for line in self.gmc_orders:
            if line.line_id == line_id:
                return line
        return None


class ProcurementBook(BaseModel):
    """All procurement contracts of a game, plus the single-supplier deal."""

    contracts: list[ProcurementContract] = Field(default_factory=list)
    single_supplier_deal: Optional[str] = Field(
        default=None, description="Supplier granted exclusivity, if any"
    )

    @property
    def gmc_commitments(self) -> dict[str, int]:
        """Committed GMC units per supplier."""
        totals: dict[str, int] = {}
        for contract in self.contracts:
            if contract.contract_type == ContractType.GMC:
                totals[contract.supplier] = totals.get(contract.supplier, 0) + contract.units
        return totals

    @property
    def total_gmc_units(self) -> int:
        return sum(self.gmc_commitments.values())

    def get(self, contract_id: str) -> Optional[ProcurementContract]:
        for contract in self.contracts:
            if contract.contract_id == contract_id:
                return contract
        return None

    def by_type(self, contract_type: ContractType) -> list[ProcurementContract]:
        return [c for c in self.contracts if c.contract_type == contract_type]

    def gmc_contract(self, supplier: str, material: str) -> Optional[ProcurementContract]:
        for contract in self.by_type(ContractType.GMC):
            if contract.supplier == supplier and contract.material == material:
                return contract
        return None

    def add_contract(self, contract: ProcurementContract) -> "ProcurementBook":
        return self.model_copy(update={"contracts": self.contracts + [contract]})

    def replace_contract(self, contract: ProcurementContract) -> "ProcurementBook":
        """Return a new book with the contract of the same id swapped in."""
        contracts = [
            contract if c.contract_id == contract.contract_id else c
            for c in self.contracts
        ]
        return self.model_copy(update={"contracts": contracts})

    def remove_contract(self, contract_id: str) -> "ProcurementBook":
        contracts = [c for c in self.contracts if c.contract_id != contract_id]
        return self.model_copy(update={"contracts": contracts})
