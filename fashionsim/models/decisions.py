"""
Decision models for FASHIONSIM.

Represents the player-entered fields merged into a draft week before
it is validated and committed. Decisions arrive from decision files
(YAML/JSON) or from the web API; every field is optional so a player
can submit only what changed.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fashionsim.models.contracts import ContractType
from fashionsim.models.production import ProductionMethod, ShippingMethod


class ProductInput(BaseModel):
    """Pricing and design choices for one product.

    Unset fields leave the current value untouched.
    """

    rrp: Optional[Decimal] = Field(default=None, gt=0, description="Recommended retail price")
    fabric: Optional[str] = Field(default=None, description="Material key")
    has_print: Optional[bool] = Field(default=None, description="Add a print/pattern")


class PurchaseOrder(BaseModel):
    """A material purchase.

    SPT and FVC create a new contract. GMC places an order line against
    an existing commitment for the same supplier and material.
    """

    contract_type: ContractType = Field(description="SPT, GMC or FVC")
    supplier: str
    material: str
    units: int = Field(gt=0, description="Units to order")
    has_print: bool = Field(default=False, description="Printed fabric (surcharge applies)")


class GMCCommitment(BaseModel):
    """Signing a guaranteed minimum commitment with a supplier."""

    supplier: str
    material: str
    units: int = Field(gt=0, description="Units committed for the season")
    has_print: bool = False


class BatchRequest(BaseModel):
    """A production batch to add to the schedule."""

    product: str
    method: ProductionMethod = ProductionMethod.INHOUSE
    start_week: int = Field(ge=1)
    quantity: int = Field(gt=0)
    shipping: ShippingMethod = ShippingMethod.STANDARD


class MarketingPlan(BaseModel):
    """Weekly marketing spend with an optional channel breakdown."""

    total_spend: Decimal = Field(default=Decimal("0"), ge=0)
    channels: dict[str, Decimal] = Field(default_factory=dict)

    @field_validator("channels")
    @classmethod
    def validate_channels(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        for channel, amount in v.items():
            if amount < 0:
                raise ValueError(f"Channel spend cannot be negative: {channel}")
        return v

    @classmethod
    def from_channels(cls, channels: dict[str, Decimal]) -> "MarketingPlan":
        """Build a plan whose total is the sum of its channels."""
        return cls(total_spend=sum(channels.values(), Decimal("0")), channels=channels)


class Decisions(BaseModel):
    """One batch of player decisions for the current draft week."""

    products: dict[str, ProductInput] = Field(default_factory=dict)
    gmc_commitments: list[GMCCommitment] = Field(default_factory=list)
    single_supplier_deal: Optional[str] = Field(
        default=None, description="Sign an exclusivity deal with this supplier"
    )
    purchases: list[PurchaseOrder] = Field(default_factory=list)
    cancel_orders: list[str] = Field(
        default_factory=list, description="Contract or GMC order line ids to cancel"
    )
    production_batches: list[BatchRequest] = Field(default_factory=list)
    remove_batches: list[str] = Field(default_factory=list)
    marketing: Optional[MarketingPlan] = None
    discounts: dict[str, Decimal] = Field(default_factory=dict)

    @field_validator("discounts")
    @classmethod
    def validate_discounts(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Discounts are fractions of the retail price."""
        for product, discount in v.items():
            if discount < 0 or discount > 1:
                raise ValueError(
                    f"Discount for {product} must be between 0 and 1, got {discount}"
                )
        return v

    @property
    def is_empty(self) -> bool:
        return self == Decisions()
