"""
Pytest configuration and fixtures for FASHIONSIM tests.
"""

from decimal import Decimal

import pytest

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.engine.simulation import Simulation, WeekCommitOrchestrator
from fashionsim.io.store import InMemoryStateStore
from fashionsim.models.contracts import (
    ContractType,
    GMCOrderLine,
    ProcurementBook,
    ProcurementContract,
)
from fashionsim.models.decisions import (
    BatchRequest,
    Decisions,
    ProductInput,
    PurchaseOrder,
)
from fashionsim.models.inventory import FinishedGoodsLot
from fashionsim.models.production import ProductionMethod
from fashionsim.models.products import ProductDecision
from fashionsim.models.state import Phase, WeeklyState

# Fabrics each product is made from in the standard plan
FABRICS = {
    "jacket": "standardDenim",
    "dress": "egyptianCotton",
    "pants": "wideWaleCorduroy",
}

PRICES = {
    "jacket": Decimal("100"),
    "dress": Decimal("60"),
    "pants": Decimal("70"),
}


def make_state(week: int = 1, config: FashionSimConfig | None = None, **fields) -> WeeklyState:
    """A draft state for a week with every product priced and designed."""
    config = config or get_default_config()
    data = {
        "session_id": "test-session",
        "week_number": week,
        "phase": Phase(config.phase_for_week(week)),
        "cash_on_hand": Decimal("1000000.00"),
        "product_data": {
            product: ProductDecision(rrp=PRICES[product], fabric=FABRICS[product])
            for product in config.product_keys
        },
    }
    data.update(fields)
    return WeeklyState(**data)


def make_lot(product: str, quantity: int, lot_id: str = "lot-1", week: int = 7) -> FinishedGoodsLot:
    return FinishedGoodsLot(
        lot_id=lot_id,
        product=product,
        quantity=quantity,
        created_week=week,
        unit_material_cost=Decimal("10"),
        unit_production_cost=Decimal("25"),
        unit_shipping_cost=Decimal("4"),
    )


def make_gmc_book(committed: int, delivered: int, price: Decimal = Decimal("10")) -> ProcurementBook:
    """A priced supplier1 GMC on standardDenim with some units delivered."""
    lines = []
    if delivered:
        lines.append(
            GMCOrderLine(line_id="GMCL-1", week_ordered=3, units=delivered, unit_price=price, scheduled=True)
        )
    contract = ProcurementContract(
        contract_id="GMC-1",
        contract_type=ContractType.GMC,
        supplier="supplier1",
        material="standardDenim",
        units=committed,
        week_signed=1,
        unit_base_price=price,
        print_surcharge=Decimal("0"),
        discount=Decimal("0"),
        gmc_orders=lines,
        delivered_units=delivered,
    )
    return ProcurementBook(contracts=[contract])


@pytest.fixture
def config() -> FashionSimConfig:
    """Return the default constants catalog."""
    return get_default_config()


@pytest.fixture
def simulation(config: FashionSimConfig) -> Simulation:
    return Simulation(config)


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def orchestrator(store: InMemoryStateStore, config: FashionSimConfig) -> WeekCommitOrchestrator:
    return WeekCommitOrchestrator(store, config)


@pytest.fixture
def strategy_decisions() -> Decisions:
    """Week 1 plan: price and design every product, buy denim, outsource one jacket batch."""
    return Decisions(
        products={
            product: ProductInput(rrp=PRICES[product], fabric=FABRICS[product])
            for product in FABRICS
        },
        purchases=[
            PurchaseOrder(
                contract_type=ContractType.SPOT,
                supplier="supplier1",
                material="standardDenim",
                units=50_000,
            )
        ],
        production_batches=[
            BatchRequest(
                product="jacket",
                method=ProductionMethod.OUTSOURCE,
                start_week=3,
                quantity=50_000,
            )
        ],
    )
