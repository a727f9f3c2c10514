"""
Production and inventory pipeline for FASHIONSIM.

Batches move through these states on week boundaries:
    planned -> work in process -> shipment in transit -> finished goods

Each commit runs three steps in order:
1. Start batches whose start week is now: allocate and consume raw
   material, pay the full production cost, create WIP ending at
   start_week + method lead time.
2. Complete WIP ending now: ship with the planned method, pay shipping,
   arrival_week = week + shipping weeks + 1.
3. Shipments arriving now become finished-goods lots.

In-house capacity is a shared weekly pool. Every in-house batch charges
its size rounded up to whole standard batches against the ceiling of
each week it occupies, so a partial batch still uses a full batch of
capacity. Outsourced production is uncapped.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.models.decisions import BatchRequest
from fashionsim.models.inventory import (
    FinishedGoodsLot,
    RawMaterialStock,
    Shipment,
    WorkInProcessBatch,
)
from fashionsim.models.money import ZERO, to_money
from fashionsim.models.production import PlannedBatch, ProductionSchedule
from fashionsim.models.products import ProductDecision
from fashionsim.models.report import ProductionEvent

logger = logging.getLogger(__name__)

UNIT_COST_PLACES = Decimal("0.0001")


class ScheduleError(ValueError):
    """Raised when a batch request cannot be added to or removed from the schedule."""

    pass


@dataclass
class CapacityViolation:
    """A week whose in-house usage exceeds its ceiling."""

    week: int
    used: int
    ceiling: int

    def __str__(self) -> str:
        return f"Production capacity exceeded in week {self.week} ({self.used:,} > {self.ceiling:,})"


@dataclass
class ProductionWeekResult:
    """Result of running the pipeline for one week."""

    raw_materials: dict[str, RawMaterialStock]
    work_in_process: list[WorkInProcessBatch]
    shipments_in_transit: list[Shipment]
    finished_goods: list[FinishedGoodsLot]
    events: list[ProductionEvent] = field(default_factory=list)
    production_charges: list[tuple[str, Decimal]] = field(default_factory=list)
    shipping_charges: list[tuple[str, Decimal]] = field(default_factory=list)
    materials_consumed: dict[str, int] = field(default_factory=dict)

    @property
    def production_cost(self) -> Decimal:
        return to_money(sum((amount for _, amount in self.production_charges), ZERO))

    @property
    def shipping_cost(self) -> Decimal:
        return to_money(sum((amount for _, amount in self.shipping_charges), ZERO))


class ProductionPipeline:
    """Schedules batches and moves them through the inventory pipeline."""

    def __init__(self, config: Optional[FashionSimConfig] = None):
        """Initialize production pipeline.

        Args:
            config: Constants catalog (uses defaults if None)
        """
        self.config = config or get_default_config()

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    def capacity_units(self, batch: PlannedBatch) -> int:
        """Capacity a batch charges per occupied week."""
        if not batch.is_inhouse:
            return 0
        size = self.config.production.batch_size
        return math.ceil(batch.quantity / size) * size

    def lead_time(self, batch: PlannedBatch) -> int:
        return self.config.production_weeks(batch.product, batch.method)

    def occupied_weeks(self, batch: PlannedBatch) -> range:
        """Weeks the batch is on the production line."""
        return range(batch.start_week, batch.start_week + self.lead_time(batch))

    def completion_week(self, batch: PlannedBatch) -> int:
        return batch.start_week + self.lead_time(batch)

    def launch_week(self, batch: PlannedBatch) -> int:
        """Week by whose end the shipment has landed."""
        return self.completion_week(batch) + self.config.shipping_weeks(batch.shipping)

    def arrival_week(self, batch: PlannedBatch) -> int:
        """First week the batch's units can be sold."""
        return self.launch_week(batch) + 1

    def capacity_usage(self, batches: list[PlannedBatch]) -> dict[int, int]:
        """In-house units charged against each week's ceiling."""
        usage: dict[int, int] = {}
        for batch in batches:
            units = self.capacity_units(batch)
            if units == 0:
                continue
            for week in self.occupied_weeks(batch):
                usage[week] = usage.get(week, 0) + units
        return usage

    def capacity_violations(
        self, schedule: ProductionSchedule, from_week: int = 1
    ) -> list[CapacityViolation]:
        """Weeks (from_week onward) whose ceiling the schedule exceeds."""
        violations = []
        for week, used in sorted(self.capacity_usage(schedule.batches).items()):
            if week < from_week:
                continue
            ceiling = self.config.capacity_for_week(week)
            if used > ceiling:
                violations.append(CapacityViolation(week=week, used=used, ceiling=ceiling))
        return violations

    # ------------------------------------------------------------------
    # Schedule edits
    # ------------------------------------------------------------------

    def schedule_batch(
        self, schedule: ProductionSchedule, request: BatchRequest, week: int
    ) -> tuple[ProductionSchedule, PlannedBatch]:
        """Add a batch request to the schedule.

        Capacity and batch-size rules are checked by validation so that
        the player sees every problem at once.

        Raises:
            ScheduleError: If the product is unknown or the start week has passed
        """
        if request.product not in self.config.products:
            raise ScheduleError(f"Unknown product: {request.product}")
        if request.start_week < week:
            raise ScheduleError(
                f"Cannot schedule a batch to start in week {request.start_week}, "
                f"current week is {week}"
            )
        if request.start_week > self.config.season.total_weeks:
            raise ScheduleError(f"Start week {request.start_week} is past the season end")
        batch = PlannedBatch(
            batch_id=f"B-W{week}-{request.product}-{uuid4().hex[:6]}",
            product=request.product,
            method=request.method,
            start_week=request.start_week,
            quantity=request.quantity,
            shipping=request.shipping,
            created_week=week,
        )
        return schedule.add_batch(batch), batch

    def remove_batch(self, schedule: ProductionSchedule, batch_id: str, week: int) -> ProductionSchedule:
        """Remove a batch that has not started yet.

        Raises:
            ScheduleError: If the batch is unknown or already started
        """
        batch = schedule.get(batch_id)
        if batch is None:
            raise ScheduleError(f"Unknown batch: {batch_id}")
        if batch.start_week < week:
            raise ScheduleError(f"Batch {batch_id} has already started")
        return schedule.remove_batch(batch_id)

    # ------------------------------------------------------------------
    # Weekly transitions
    # ------------------------------------------------------------------

    def start_batches(
        self,
        schedule: ProductionSchedule,
        product_data: dict[str, ProductDecision],
        raw_materials: dict[str, RawMaterialStock],
        week: int,
    ) -> tuple[dict[str, RawMaterialStock], list[WorkInProcessBatch], ProductionWeekResult]:
        """Step 1: start batches planned for this week.

        A batch short of material starts at the available quantity but
        is billed as a full batch. A batch with no material is skipped.
        """
        stock = dict(raw_materials)
        started: list[WorkInProcessBatch] = []
        result = ProductionWeekResult(
            raw_materials=stock, work_in_process=[], shipments_in_transit=[], finished_goods=[]
        )

        for batch in schedule.starting_in(week):
            decision = product_data.get(batch.product)
            fabric = decision.fabric if decision else None
            material = stock.get(fabric, RawMaterialStock()) if fabric else RawMaterialStock()
            available = material.net_available
            if fabric is None or available <= 0:
                logger.warning("Batch %s skipped: no %s available", batch.batch_id, fabric or "fabric")
                result.events.append(
                    ProductionEvent(
                        batch_id=batch.batch_id,
                        product=batch.product,
                        event="skipped",
                        quantity=0,
                        week=week,
                        detail="no raw material available",
                    )
                )
                continue

            quantity = min(batch.quantity, available)
            material = material.allocate(quantity)
            material, material_unit_cost = material.consume_allocated(quantity)
            stock[fabric] = material
            result.materials_consumed[fabric] = result.materials_consumed.get(fabric, 0) + quantity
            if material_unit_cost == 0 and decision is not None:
                material_unit_cost = decision.confirmed_material_cost

            billed_units = quantity
            if quantity < batch.quantity and batch.is_inhouse:
                billed_units = self.capacity_units(batch)
            unit_rate = self.config.production_unit_cost(batch.product, batch.method)
            cost = to_money(unit_rate * billed_units)
            result.production_charges.append((batch.batch_id, cost))

            started.append(
                WorkInProcessBatch(
                    batch_id=batch.batch_id,
                    product=batch.product,
                    method=batch.method,
                    start_week=week,
                    end_week=self.completion_week(batch),
                    quantity=quantity,
                    planned_quantity=batch.quantity,
                    material_unit_cost=material_unit_cost.quantize(UNIT_COST_PLACES),
                    production_unit_cost=(cost / quantity).quantize(UNIT_COST_PLACES),
                    shipping=batch.shipping,
                )
            )
            result.events.append(
                ProductionEvent(
                    batch_id=batch.batch_id,
                    product=batch.product,
                    event="started",
                    quantity=quantity,
                    week=week,
                    detail=None if quantity == batch.quantity else f"partial batch of {batch.quantity:,}",
                )
            )
            logger.debug("Started batch %s: %d units, cost %s", batch.batch_id, quantity, cost)

        result.raw_materials = stock
        return stock, started, result

    def complete_batches(
        self, work_in_process: list[WorkInProcessBatch], week: int
    ) -> tuple[list[WorkInProcessBatch], list[Shipment], list[ProductionEvent], list[tuple[str, Decimal]]]:
        """Step 2: ship WIP finishing this week.

        Returns:
            Tuple of (remaining WIP, new shipments, events, shipping charges)
        """
        remaining: list[WorkInProcessBatch] = []
        shipments: list[Shipment] = []
        events: list[ProductionEvent] = []
        charges: list[tuple[str, Decimal]] = []
        for wip in work_in_process:
            if wip.end_week != week:
                remaining.append(wip)
                continue
            unit_shipping = self.config.shipping_unit_cost(wip.product, wip.shipping)
            shipment = Shipment(
                shipment_id=f"{wip.batch_id}-ship-{week}",
                batch_id=wip.batch_id,
                product=wip.product,
                quantity=wip.quantity,
                unit_material_cost=wip.material_unit_cost,
                unit_production_cost=wip.production_unit_cost,
                unit_shipping_cost=unit_shipping,
                arrival_week=week + self.config.shipping_weeks(wip.shipping) + 1,
            )
            shipments.append(shipment)
            charges.append((shipment.shipment_id, to_money(unit_shipping * wip.quantity)))
            events.append(
                ProductionEvent(
                    batch_id=wip.batch_id,
                    product=wip.product,
                    event="shipped",
                    quantity=wip.quantity,
                    week=week,
                    detail=f"arrives week {shipment.arrival_week}",
                )
            )
        return remaining, shipments, events, charges

    def receive_shipments(
        self, shipments: list[Shipment], week: int
    ) -> tuple[list[Shipment], list[FinishedGoodsLot], list[ProductionEvent]]:
        """Step 3: convert shipments arriving this week into lots."""
        remaining: list[Shipment] = []
        lots: list[FinishedGoodsLot] = []
        events: list[ProductionEvent] = []
        for shipment in shipments:
            if shipment.arrival_week != week:
                remaining.append(shipment)
                continue
            lots.append(
                FinishedGoodsLot(
                    lot_id=f"lot-{shipment.shipment_id}",
                    product=shipment.product,
                    quantity=shipment.quantity,
                    created_week=week,
                    unit_material_cost=shipment.unit_material_cost,
                    unit_production_cost=shipment.unit_production_cost,
                    unit_shipping_cost=shipment.unit_shipping_cost,
                )
            )
            events.append(
                ProductionEvent(
                    batch_id=shipment.batch_id,
                    product=shipment.product,
                    event="arrived",
                    quantity=shipment.quantity,
                    week=week,
                )
            )
        return remaining, lots, events

    def process_week(
        self,
        schedule: ProductionSchedule,
        product_data: dict[str, ProductDecision],
        raw_materials: dict[str, RawMaterialStock],
        work_in_process: list[WorkInProcessBatch],
        shipments_in_transit: list[Shipment],
        finished_goods: list[FinishedGoodsLot],
        week: int,
    ) -> ProductionWeekResult:
        """Run steps 1-3 for one week."""
        stock, started, result = self.start_batches(schedule, product_data, raw_materials, week)
        wip, shipped, ship_events, ship_charges = self.complete_batches(
            list(work_in_process) + started, week
        )
        in_transit, new_lots, arrival_events = self.receive_shipments(
            list(shipments_in_transit) + shipped, week
        )

        result.raw_materials = stock
        result.work_in_process = wip
        result.shipments_in_transit = in_transit
        result.finished_goods = list(finished_goods) + new_lots
        result.events.extend(ship_events)
        result.events.extend(arrival_events)
        result.shipping_charges = ship_charges
        return result
