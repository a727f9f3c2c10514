"""
Inventory models for FASHIONSIM.

Material and goods move through these records:
    raw material -> work in process -> shipment in transit -> finished goods lot

Raw material is valued at weighted-average cost; everything downstream
carries per-unit cost components so that sold units are costed exactly.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from fashionsim.models.money import ZERO, to_money
from fashionsim.models.production import ProductionMethod, ShippingMethod


class RawMaterialStock(BaseModel):
    """On-hand stock of one material."""

    on_hand: int = Field(default=0, ge=0, description="Units physically on hand")
    allocated: int = Field(default=0, ge=0, description="Units reserved for starting batches")
    on_hand_value: Decimal = Field(default=ZERO, ge=0, description="Book value of on-hand units")
    last_unit_cost: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def net_available(self) -> int:
        return self.on_hand - self.allocated

    @property
    def average_unit_cost(self) -> Decimal:
        if self.on_hand > 0:
            return self.on_hand_value / self.on_hand
        return self.last_unit_cost

    def receive(self, units: int, unit_price: Decimal) -> "RawMaterialStock":
        """Add delivered units, updating the weighted-average value."""
        if units <= 0:
            return self
        return self.model_copy(
            update={
                "on_hand": self.on_hand + units,
                "on_hand_value": to_money(self.on_hand_value + unit_price * units),
                "last_unit_cost": unit_price,
            }
        )

    def allocate(self, units: int) -> "RawMaterialStock":
        """Reserve units for production."""
        if units > self.net_available:
            raise ValueError(
                f"Cannot allocate {units} units, only {self.net_available} available"
            )
        return self.model_copy(update={"allocated": self.allocated + units})

    def consume_allocated(self, units: int) -> tuple["RawMaterialStock", Decimal]:
        """Remove allocated units from stock at average cost.

        Returns:
            Tuple of (updated stock, average unit cost of consumed units)
        """
        if units > self.allocated:
            raise ValueError(f"Cannot consume {units} units, only {self.allocated} allocated")
        unit_cost = self.average_unit_cost
        remaining = self.on_hand - units
        value = ZERO if remaining == 0 else max(ZERO, to_money(self.on_hand_value - unit_cost * units))
        return (
            self.model_copy(
                update={
                    "on_hand": remaining,
                    "allocated": self.allocated - units,
                    "on_hand_value": value,
                    "last_unit_cost": unit_cost,
                }
            ),
            unit_cost,
        )


class WorkInProcessBatch(BaseModel):
    """A batch in production."""

    batch_id: str
    product: str
    method: ProductionMethod
    start_week: int = Field(ge=1)
    end_week: int = Field(ge=1, description="Week production completes and the batch ships")
    quantity: int = Field(gt=0, description="Units actually in production")
    planned_quantity: int = Field(gt=0, description="Units planned (billed and capacity-charged)")
    material_unit_cost: Decimal = Field(ge=0)
    production_unit_cost: Decimal = Field(ge=0, description="Production cost per produced unit")
    shipping: ShippingMethod = ShippingMethod.STANDARD

    @property
    def value(self) -> Decimal:
        return to_money(self.quantity * (self.material_unit_cost + self.production_unit_cost))


class Shipment(BaseModel):
    """Finished units travelling to the stores."""

    shipment_id: str
    batch_id: str
    product: str
    quantity: int = Field(gt=0)
    unit_material_cost: Decimal = Field(ge=0)
    unit_production_cost: Decimal = Field(ge=0)
    unit_shipping_cost: Decimal = Field(ge=0)
    arrival_week: int = Field(ge=1, description="First week the units can be sold")


class FinishedGoodsLot(BaseModel):
    """Sellable units from one shipment. Quantity only ever decreases."""

    lot_id: str
    product: str
    quantity: int = Field(ge=0)
    created_week: int = Field(ge=1)
    unit_material_cost: Decimal = Field(ge=0)
    unit_production_cost: Decimal = Field(ge=0)
    unit_shipping_cost: Decimal = Field(ge=0)

    @property
    def unit_cost_basis(self) -> Decimal:
        return self.unit_material_cost + self.unit_production_cost + self.unit_shipping_cost

    @property
    def value(self) -> Decimal:
        return to_money(self.quantity * self.unit_cost_basis)

    def take(self, units: int) -> "FinishedGoodsLot":
        if units < 0 or units > self.quantity:
            raise ValueError(f"Cannot take {units} units from lot of {self.quantity}")
        return self.model_copy(update={"quantity": self.quantity - units})
