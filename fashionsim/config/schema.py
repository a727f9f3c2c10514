"""
Configuration schema for the FASHIONSIM constants catalog.

Provides Pydantic models for configuration validation and type safety.
A FashionSimConfig is treated as an immutable value for the life of a
game session: every engine component receives it at construction.
"""

import copy
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fashionsim.config import defaults


class SeasonConfig(BaseModel):
    """Season calendar configuration."""

    total_weeks: int = Field(default=defaults.TOTAL_WEEKS, ge=1, description="Weeks in a season")
    phase_boundaries: dict[str, int] = Field(
        default_factory=lambda: dict(defaults.PHASE_BOUNDARIES),
        description="Last week (inclusive) of each phase",
    )
    sales_weeks: tuple[int, int] = Field(
        default=defaults.SALES_WEEKS,
        description="First and last week counted for the season service level",
    )
    runout_markdowns: dict[int, Decimal] = Field(
        default_factory=lambda: dict(defaults.RUNOUT_MARKDOWNS),
        validate_default=True,
        description="Forced markdown by week, overriding player discounts",
    )

    @field_validator("phase_boundaries")
    @classmethod
    def validate_phases(cls, v: dict[str, int]) -> dict[str, int]:
        """Phases must be listed in calendar order."""
        expected = ["strategy", "development", "sales", "runout"]
        if list(v) != expected:
            raise ValueError(f"Phases must be {expected}, got {list(v)}")
        weeks = list(v.values())
        if weeks != sorted(weeks):
            raise ValueError("Phase boundaries must be increasing")
        return v


class ProductConfig(BaseModel):
    """Economics for a single product."""

    name: str = Field(description="Display name")
    forecast: int = Field(ge=0, description="Full-price season forecast (units)")
    hm_price: Decimal = Field(gt=0, description="Mass-market reference price")
    high_end_range: list[Decimal] = Field(
        default_factory=list, description="Premium-brand price band (display only)"
    )
    elasticity: float = Field(le=0, description="Price elasticity of demand")


class DemandConfig(BaseModel):
    """Shape parameters of the demand model."""

    seasonality: list[float] = Field(
        default_factory=lambda: list(defaults.SEASONALITY),
        description="Seasonality factor per week (index 0 = week 1)",
    )
    baseline_marketing_spend: Decimal = Field(
        default=Decimal(defaults.BASELINE_MARKETING_SPEND),
        gt=0,
        description="Weekly spend giving a promo lift of 1.0",
    )
    promo_lift_floor: float = Field(default=defaults.PROMO_LIFT_FLOOR, ge=0)
    positioning: dict[str, float] = Field(
        default_factory=lambda: dict(defaults.POSITIONING),
        description="Sigmoid parameters (steepness, center, amplitude, offset)",
    )
    print_design_effect: float = Field(default=defaults.PRINT_DESIGN_EFFECT, gt=0)
    plain_design_effect: float = Field(default=defaults.PLAIN_DESIGN_EFFECT, gt=0)


class MaterialPriceConfig(BaseModel):
    """Catalog price of one material at one supplier."""

    price: Decimal = Field(ge=0, description="Base price per unit")
    print_surcharge: Decimal = Field(default=Decimal("0"), ge=0, description="Per-unit print surcharge")


class SupplierConfig(BaseModel):
    """A fabric supplier's catalog and terms."""

    name: str
    defect_rate: float = Field(ge=0.0, le=1.0, description="Fraction of delivered units rejected")
    lead_time: int = Field(ge=0, description="Weeks from order to delivery")
    max_discount: Decimal = Field(default=Decimal("0"), ge=0, le=1)
    materials: dict[str, MaterialPriceConfig] = Field(default_factory=dict)


class DiscountTierConfig(BaseModel):
    """A volume tier: units in [min_units, max_units] earn the discount."""

    min_units: int = Field(ge=0)
    max_units: Optional[int] = Field(default=None, description="None means unbounded")
    discount: Decimal = Field(ge=0, le=1)

    def contains(self, units: int) -> bool:
        """Check whether a unit volume falls inside this tier."""
        if units < self.min_units:
            return False
        return self.max_units is None or units <= self.max_units


class ProcurementConfig(BaseModel):
    """Contract terms shared by all suppliers."""

    volume_discounts: dict[str, list[DiscountTierConfig]] = Field(
        default_factory=lambda: copy.deepcopy(defaults.VOLUME_DISCOUNTS), validate_default=True
    )
    single_supplier_bonus: Decimal = Field(default=Decimal(str(defaults.SINGLE_SUPPLIER_BONUS)), ge=0)
    gmc_settlement_lag_weeks: int = Field(default=defaults.GMC_SETTLEMENT_LAG_WEEKS, ge=0)
    gmc_shortfall_penalty_rate: Decimal = Field(
        default=Decimal(str(defaults.GMC_SHORTFALL_PENALTY_RATE)), ge=0
    )
    gmc_min_commitment_fraction: float = Field(default=defaults.GMC_MIN_COMMITMENT_FRACTION, ge=0, le=1)
    fvc_signing_week: int = Field(default=defaults.FVC_SIGNING_WEEK, ge=1)
    fvc_deposit_fraction: Decimal = Field(default=Decimal(str(defaults.FVC_DEPOSIT_FRACTION)), ge=0, le=1)
    fvc_balance_lag_weeks: int = Field(default=defaults.FVC_BALANCE_LAG_WEEKS, ge=0)


class ManufacturingConfig(BaseModel):
    """Cost and lead time of each manufacturing method for one product."""

    in_house_cost: Decimal = Field(ge=0)
    outsource_cost: Decimal = Field(ge=0)
    in_house_weeks: int = Field(ge=1)
    outsource_weeks: int = Field(ge=1)


class ShippingRateConfig(BaseModel):
    """Per-unit shipping cost for one product."""

    standard: Decimal = Field(ge=0)
    expedited: Decimal = Field(ge=0)


class ProductionConfig(BaseModel):
    """Manufacturing, capacity and logistics configuration."""

    batch_size: int = Field(default=defaults.BATCH_SIZE, ge=1)
    manufacturing: dict[str, ManufacturingConfig] = Field(
        default_factory=lambda: copy.deepcopy(defaults.MANUFACTURING), validate_default=True
    )
    capacity_schedule: list[int] = Field(
        default_factory=lambda: list(defaults.CAPACITY_SCHEDULE),
        description="In-house unit ceiling per week (index 0 = week 1)",
    )
    shipping_costs: dict[str, ShippingRateConfig] = Field(
        default_factory=lambda: copy.deepcopy(defaults.SHIPPING_COSTS), validate_default=True
    )
    shipping_weeks: dict[str, int] = Field(default_factory=lambda: dict(defaults.SHIPPING_WEEKS))
    launch_deadline_week: int = Field(default=defaults.LAUNCH_DEADLINE_WEEK, ge=1)


class FinanceConfig(BaseModel):
    """Capital, credit and carrying-cost rates."""

    starting_capital: Decimal = Field(default=Decimal(defaults.STARTING_CAPITAL), ge=0)
    credit_limit: Decimal = Field(default=Decimal(defaults.CREDIT_LIMIT), ge=0)
    weekly_interest_rate: Decimal = Field(default=Decimal(str(defaults.WEEKLY_INTEREST_RATE)), ge=0)
    holding_cost_rate: Decimal = Field(default=Decimal(str(defaults.HOLDING_COST_RATE)), ge=0)
    capital_charge_rate: Decimal = Field(default=Decimal(str(defaults.CAPITAL_CHARGE_RATE)), ge=0)


class ValidationConfig(BaseModel):
    """Thresholds used by pre-commit validation."""

    price_floor_margin: Decimal = Field(default=Decimal(str(defaults.PRICE_FLOOR_MARGIN)), ge=0)
    aggressive_positioning_threshold: float = Field(default=defaults.AGGRESSIVE_POSITIONING_THRESHOLD)
    low_cash_threshold: Decimal = Field(default=Decimal(defaults.LOW_CASH_THRESHOLD), ge=0)
    overstock_ratio: float = Field(default=defaults.OVERSTOCK_RATIO, gt=0)
    understock_ratio: float = Field(default=defaults.UNDERSTOCK_RATIO, gt=0)


class FashionSimConfig(BaseModel):
    """Complete constants catalog.

    This is the top-level configuration object that contains all
    game parameters. It is frozen: build a new one with merge().
    """

    model_config = ConfigDict(frozen=True)

    season: SeasonConfig = Field(default_factory=SeasonConfig)
    products: dict[str, ProductConfig] = Field(
        default_factory=lambda: copy.deepcopy(defaults.PRODUCTS), validate_default=True
    )
    demand: DemandConfig = Field(default_factory=DemandConfig)
    suppliers: dict[str, SupplierConfig] = Field(
        default_factory=lambda: copy.deepcopy(defaults.SUPPLIERS), validate_default=True
    )
    procurement: ProcurementConfig = Field(default_factory=ProcurementConfig)
    production: ProductionConfig = Field(default_factory=ProductionConfig)
    finance: FinanceConfig = Field(default_factory=FinanceConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)

    @model_validator(mode="after")
    def check_tables_cover_products(self) -> "FashionSimConfig":
        """Every product needs manufacturing and shipping rates."""
        for product in self.products:
            if product not in self.production.manufacturing:
                raise ValueError(f"No manufacturing rates for product: {product}")
            if product not in self.production.shipping_costs:
                raise ValueError(f"No shipping rates for product: {product}")
        for supplier in self.suppliers:
            if supplier not in self.procurement.volume_discounts:
                raise ValueError(f"No volume discount tiers for supplier: {supplier}")
        return self

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def product_keys(self) -> list[str]:
        return list(self.products)

    @property
    def season_need(self) -> int:
        """Total units forecast across all products."""
        return sum(p.forecast for p in self.products.values())

    def phase_for_week(self, week: int) -> str:
        """Get the phase name a week belongs to."""
        for phase, last_week in self.season.phase_boundaries.items():
            if week <= last_week:
                return phase
        return "runout"

    def seasonality_for_week(self, week: int) -> float:
        curve = self.demand.seasonality
        if 1 <= week <= len(curve):
            return curve[week - 1]
        return 0.0

    def capacity_for_week(self, week: int) -> int:
        schedule = self.production.capacity_schedule
        if 1 <= week <= len(schedule):
            return schedule[week - 1]
        return 0

    def runout_markdown(self, week: int) -> Optional[Decimal]:
        return self.season.runout_markdowns.get(week)

    def material_price(self, supplier: str, material: str) -> Optional[MaterialPriceConfig]:
        """Catalog entry for a material at a supplier, or None if not stocked."""
        supplier_config = self.suppliers.get(supplier)
        if supplier_config is None:
            return None
        return supplier_config.materials.get(material)

    def production_weeks(self, product: str, method: str) -> int:
        rates = self.production.manufacturing[product]
        return rates.in_house_weeks if method == "inhouse" else rates.outsource_weeks

    def production_unit_cost(self, product: str, method: str) -> Decimal:
        rates = self.production.manufacturing[product]
        return rates.in_house_cost if method == "inhouse" else rates.outsource_cost

    def shipping_unit_cost(self, product: str, method: str) -> Decimal:
        rates = self.production.shipping_costs[product]
        return rates.standard if method == "standard" else rates.expedited

    def shipping_weeks(self, method: str) -> int:
        return self.production.shipping_weeks[str(getattr(method, "value", method))]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FashionSimConfig":
        """Create configuration from a dictionary.

        Args:
            data: Configuration dictionary (can be partial)

        Returns:
            FashionSimConfig with defaults for any missing values
        """
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "FashionSimConfig":
        """Load configuration from a JSON or YAML file.

        Args:
            path: Path to configuration file (.json or .yaml/.yml)

        Returns:
            Parsed configuration

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is not supported
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()

        if suffix == ".json":
            import json

            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        elif suffix in (".yaml", ".yml"):
            import yaml

            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        else:
            raise ValueError(
                f"Unsupported config file format: {suffix}. "
                "Use .json or .yaml/.yml"
            )

        return cls.from_dict(data or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")

    def to_file(self, path: str | Path) -> None:
        """Save configuration to a JSON or YAML file.

        Args:
            path: Path to save configuration to

        Raises:
            ValueError: If file format is not supported
        """
        path = Path(path)
        suffix = path.suffix.lower()
        data = self.to_dict()

        if suffix == ".json":
            import json

            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        elif suffix in (".yaml", ".yml"):
            import yaml

            with open(path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            raise ValueError(
                f"Unsupported config file format: {suffix}. "
                "Use .json or .yaml/.yml"
            )

    def merge(self, overrides: dict[str, Any]) -> "FashionSimConfig":
        """Create a new config with overrides applied.

        Args:
            overrides: Dictionary of values to override

        Returns:
            New FashionSimConfig with overrides merged in
        """
        base = self.to_dict()
        _deep_merge(base, overrides)
        return FashionSimConfig.from_dict(base)


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Deep merge overrides into base dict (in place)."""
    for key, value in overrides.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def get_default_config() -> FashionSimConfig:
    """Get the default FASHIONSIM configuration.

    Returns:
        FashionSimConfig with all default values
    """
    return FashionSimConfig()
