"""
Pre-commit validation for FASHIONSIM.

Validates a draft week before it is committed. Errors block the commit;
warnings are stored with the state for display but never block.

Errors:
- Strategy phase: missing price or fabric, price below cost floor
- Production: batch size, launch deadline, in-house capacity, missing
  fabric, no raw material for a batch starting this week
- Procurement: FVC outside week 1, GMC commitment below the minimum
  share of season need, ordering outside a single-supplier deal
- Sales phase: discounted price below cost floor
- Funds: this week's known payments above cash + unused credit

Warnings:
- Zero marketing or aggressive positioning in the sales phase
- Low cash
- Finished goods out of line with next week's demand
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.engine.demand import DemandModel
from fashionsim.engine.procurement import ProcurementLedger
from fashionsim.engine.production import ProductionPipeline
from fashionsim.models.contracts import ContractType
from fashionsim.models.money import format_money, to_money
from fashionsim.models.state import Phase, WeeklyState


@dataclass
class ValidationError:
    """A single validation error."""

    field: str
    message: str
    value: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        msg = f"{self.field}: {self.message}"
        if self.value:
            msg += f" (got: {self.value})"
        if self.suggestion:
            msg += f" - {self.suggestion}"
        return msg


@dataclass
class ValidationResult:
    """Result of validating a draft week."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    @classmethod
    def success(cls) -> "ValidationResult":
        """Create a successful validation result."""
        return cls(valid=True)

    @classmethod
    def failure(cls, errors: list[ValidationError]) -> "ValidationResult":
        """Create a failed validation result."""
        return cls(valid=False, errors=errors)

    @property
    def can_commit(self) -> bool:
        return self.valid

    @property
    def error_messages(self) -> list[str]:
        return [str(e) for e in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        return [str(w) for w in self.warnings]

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.valid = False

    def add_warning(self, warning: ValidationError) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def merge(self, other: "ValidationResult") -> None:
        """Merge another result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.valid:
            self.valid = False


def validate_week(
    state: WeeklyState,
    config: Optional[FashionSimConfig] = None,
) -> ValidationResult:
    """Validate a draft week against the rules of its phase.

    Args:
        state: Draft state with the player's decisions merged in
        config: Constants catalog (uses defaults if None)

    Returns:
        ValidationResult with any errors/warnings
    """
    config = config or get_default_config()
    result = ValidationResult(valid=True)

    if state.phase == Phase.STRATEGY:
        result.merge(_validate_strategy(state, config))
    result.merge(_validate_production(state, config))
    result.merge(_validate_procurement(state, config))
    if state.phase == Phase.SALES:
        result.merge(_validate_sales(state, config))
    result.merge(_validate_funds(state, config))
    result.merge(_validate_outlook(state, config))

    return result


def price_floor(state: WeeklyState, product: str, config: FashionSimConfig) -> Decimal:
    """Lowest allowed selling price: margin x (confirmed material + in-house cost)."""
    decision = state.product_data.get(product)
    confirmed = decision.confirmed_material_cost if decision else Decimal("0")
    in_house = config.production.manufacturing[product].in_house_cost
    return config.validation.price_floor_margin * (confirmed + in_house)


def _validate_strategy(state: WeeklyState, config: FashionSimConfig) -> ValidationResult:
    """Every product needs a price above the floor and a fabric."""
    result = ValidationResult(valid=True)

    for product in config.product_keys:
        decision = state.product_data.get(product)
        if decision is None or decision.rrp is None:
            result.add_error(ValidationError(
                field=f"products.{product}.rrp",
                message="Retail price not set",
                suggestion="Set a retail price before the end of the strategy phase",
            ))
        else:
            floor = price_floor(state, product, config)
            if decision.rrp < floor:
                result.add_error(ValidationError(
                    field=f"products.{product}.rrp",
                    message="Retail price below cost floor",
                    value=format_money(decision.rrp),
                    suggestion=f"Price at least {format_money(floor)}",
                ))
        if decision is None or decision.fabric is None:
            result.add_error(ValidationError(
                field=f"products.{product}.fabric",
                message="Fabric not selected",
            ))

    return result


def _validate_production(state: WeeklyState, config: FashionSimConfig) -> ValidationResult:
    """Validate batches that have not started yet."""
    result = ValidationResult(valid=True)
    pipeline = ProductionPipeline(config)
    ledger = ProcurementLedger(config)
    week = state.week_number
    batch_size = config.production.batch_size
    deadline = config.production.launch_deadline_week

    for batch in state.production_schedule.pending(week):
        if batch.quantity % batch_size != 0:
            result.add_error(ValidationError(
                field=f"production.{batch.batch_id}.quantity",
                message=f"Batch quantity must be a multiple of {batch_size:,}",
                value=f"{batch.quantity:,}",
            ))
        if config.phase_for_week(batch.created_week) == Phase.DEVELOPMENT.value:
            launch = pipeline.launch_week(batch)
            if launch > deadline:
                result.add_error(ValidationError(
                    field=f"production.{batch.batch_id}.start_week",
                    message=f"Batch for {batch.product} arrives after the launch deadline",
                    value=f"lands end of week {launch}",
                    suggestion=f"Start earlier, outsource, or expedite to land by week {deadline}",
                ))

    for violation in pipeline.capacity_violations(state.production_schedule, from_week=week):
        result.add_error(ValidationError(
            field="production.capacity",
            message=str(violation),
        ))

    # Material for batches starting now: on hand plus this week's deliveries
    remaining: dict[str, int] = {}
    for batch in state.production_schedule.starting_in(week):
        decision = state.product_data.get(batch.product)
        fabric = decision.fabric if decision else None
        if fabric is None:
            result.add_error(ValidationError(
                field=f"production.{batch.batch_id}",
                message=f"No fabric selected for {batch.product}",
            ))
            continue
        if fabric not in remaining:
            remaining[fabric] = state.raw_material(fabric).net_available + ledger.deliveries_due(
                state.procurement, fabric, week
            )
        available = remaining[fabric]
        if available <= 0:
            result.add_error(ValidationError(
                field=f"production.{batch.batch_id}",
                message=f"Insufficient raw material ({fabric}) for {batch.product} batch",
                value="0 available",
            ))
            continue
        if available < batch.quantity:
            result.add_warning(ValidationError(
                field=f"production.{batch.batch_id}",
                message=f"Only {available:,} {fabric} available; batch starts partial at full cost",
            ))
        remaining[fabric] = max(0, available - batch.quantity)

    return result


def _validate_procurement(state: WeeklyState, config: FashionSimConfig) -> ValidationResult:
    """Validate contract terms."""
    result = ValidationResult(valid=True)
    book = state.procurement
    terms = config.procurement

    for contract in book.by_type(ContractType.FORWARD):
        if contract.week_signed != terms.fvc_signing_week:
            result.add_error(ValidationError(
                field=f"procurement.{contract.contract_id}",
                message=f"Forward contracts can only be signed in week {terms.fvc_signing_week}",
                value=f"week {contract.week_signed}",
            ))

    gmc_units = book.total_gmc_units
    minimum = round(config.season_need * terms.gmc_min_commitment_fraction)
    if 0 < gmc_units < minimum:
        result.add_error(ValidationError(
            field="procurement.gmc",
            message=f"GMC commitment must be at least {terms.gmc_min_commitment_fraction:.0%} of season need",
            value=f"{gmc_units:,} units",
            suggestion=f"Commit at least {minimum:,} units",
        ))

    deal = book.single_supplier_deal
    if deal is not None:
        for contract in book.contracts:
            if contract.supplier == deal:
                continue
            new_lines = [line for line in contract.gmc_orders if not line.scheduled]
            if not contract.is_priced or new_lines:
                result.add_error(ValidationError(
                    field=f"procurement.{contract.contract_id}",
                    message=f"Single-supplier deal with {deal} excludes orders from {contract.supplier}",
                ))

    last_week = config.season.total_weeks
    for contract in book.contracts:
        supplier = config.suppliers.get(contract.supplier)
        if supplier is None:
            continue
        if contract.contract_type == ContractType.GMC:
            orders = [(line.line_id, line.week_ordered) for line in contract.gmc_orders if not line.scheduled]
        elif not contract.deliveries:
            orders = [(contract.contract_id, contract.week_signed)]
        else:
            orders = []
        for order_id, week_placed in orders:
            arrival = week_placed + supplier.lead_time
            if arrival > last_week:
                result.add_warning(ValidationError(
                    field=f"procurement.{order_id}",
                    message=f"Order arrives in week {arrival}, after the season ends",
                    value=f"week {week_placed}",
                    suggestion="It will never be received or settled",
                ))

    return result


def _validate_sales(state: WeeklyState, config: FashionSimConfig) -> ValidationResult:
    """Marketing, positioning and discounted price floor."""
    result = ValidationResult(valid=True)
    demand_model = DemandModel(config)

    if state.marketing_spend == 0:
        result.add_warning(ValidationError(
            field="marketing.total_spend",
            message="Zero marketing spend may negatively impact sales",
        ))

    for product in config.product_keys:
        decision = state.product_data.get(product)
        if decision is None or decision.rrp is None:
            continue
        positioning = demand_model.positioning_effect(product, float(decision.rrp))
        if positioning < config.validation.aggressive_positioning_threshold:
            result.add_warning(ValidationError(
                field=f"products.{product}.rrp",
                message=f"Aggressive pricing for {product} may hurt demand",
                value=f"positioning effect {positioning:.2f}",
            ))
        discounted = decision.discounted_price(state.discount_for(product))
        floor = price_floor(state, product, config)
        if discounted < floor:
            result.add_error(ValidationError(
                field=f"discounts.{product}",
                message="Discounted price below cost floor",
                value=format_money(discounted),
                suggestion=f"Keep the selling price at or above {format_money(floor)}",
            ))

    return result


def immediate_obligations(state: WeeklyState, config: FashionSimConfig) -> Decimal:
    """Payments known to fall due this week.

    Procurement settlements, production starting now, and marketing.
    Shipping and holding are not known until the batches complete.
    """
    ledger = ProcurementLedger(config)
    pipeline = ProductionPipeline(config)
    week = state.week_number

    total = ledger.payments_due(state.procurement, week)
    for batch in state.production_schedule.starting_in(week):
        billed = max(batch.quantity, pipeline.capacity_units(batch))
        total += config.production_unit_cost(batch.product, batch.method) * billed
    total += state.marketing_spend
    return to_money(total)


def _validate_funds(state: WeeklyState, config: FashionSimConfig) -> ValidationResult:
    result = ValidationResult(valid=True)
    required = immediate_obligations(state, config)
    available = state.cash_on_hand + (config.finance.credit_limit - state.credit_used)
    if required > available:
        result.add_error(ValidationError(
            field="cash",
            message="Inadequate cash and credit for this week's plan",
            value=f"{format_money(required)} due, {format_money(available)} available",
        ))
    return result


def _validate_outlook(state: WeeklyState, config: FashionSimConfig) -> ValidationResult:
    """Liquidity and inventory-vs-demand warnings."""
    result = ValidationResult(valid=True)
    thresholds = config.validation

    if state.cash_on_hand < thresholds.low_cash_threshold:
        result.add_warning(ValidationError(
            field="cash",
            message="Low cash balance may lead to future liquidity issues",
            value=format_money(state.cash_on_hand),
        ))

    next_week = state.week_number + 1
    first_sales, last_sales = config.season.sales_weeks
    if first_sales <= next_week <= last_sales:
        demand_model = DemandModel(config)
        next_demand = 0
        for product in config.product_keys:
            decision = state.product_data.get(product)
            if decision is None or decision.rrp is None:
                continue
            next_demand += demand_model.demand(
                product, next_week, decision.rrp, 0, state.marketing_spend, decision.has_print
            )
        finished = state.finished_units()
        if finished > thresholds.overstock_ratio * next_demand:
            result.add_warning(ValidationError(
                field="inventory",
                message="High inventory levels relative to demand",
                value=f"{finished:,} units vs {next_demand:,} demanded next week",
            ))
        if next_demand > finished * thresholds.understock_ratio:
            result.add_warning(ValidationError(
                field="inventory",
                message="Low service level risk: demand may exceed available inventory",
                value=f"{next_demand:,} demanded vs {finished:,} units",
            ))

    return result
