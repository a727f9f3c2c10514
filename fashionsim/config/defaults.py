"""
Default constants catalog for the FASHIONSIM season.

These values are the game-balance tables for the standard 15-week season:
three products, two fabric suppliers, in-house vs outsourced manufacturing,
two shipping speeds and the capacity ramp of the in-house plant.

Week-indexed lists are 0-based in storage (index 0 = week 1).
"""

from typing import Any

# =============================================================================
# SEASON
# =============================================================================

TOTAL_WEEKS: int = 15

# Last week of each phase (inclusive)
PHASE_BOUNDARIES: dict[str, int] = {
    "strategy": 2,
    "development": 6,
    "sales": 12,
    "runout": 15,
}

# Weeks counted for the season service level
SALES_WEEKS: tuple[int, int] = (7, 12)

# Fixed run-out markdowns, applied regardless of the player's discounts
RUNOUT_MARKDOWNS: dict[int, float] = {
    13: 0.20,
    14: 0.35,
    15: 0.50,
}

# =============================================================================
# PRODUCTS
# =============================================================================

PRODUCTS: dict[str, dict[str, Any]] = {
    "jacket": {
        "name": "Vintage Denim Jacket",
        "forecast": 100_000,
        "hm_price": 80,  # mass-market reference price
        "high_end_range": [300, 550],
        "elasticity": -1.40,
    },
    "dress": {
        "name": "Floral Print Dress",
        "forecast": 150_000,
        "hm_price": 50,
        "high_end_range": [180, 210],
        "elasticity": -1.20,
    },
    "pants": {
        "name": "Corduroy Pants",
        "forecast": 120_000,
        "hm_price": 60,
        "high_end_range": [190, 220],
        "elasticity": -1.55,
    },
}

# Seasonality curve, weeks 1..15
SEASONALITY: list[float] = [
    0.0, 0.20, 0.40, 0.60, 0.80, 1.00, 1.10, 1.20,
    1.20, 1.10, 0.80, 0.50, 0.30, 0.10, 0.00,
]

BASELINE_MARKETING_SPEND: int = 216_667

# =============================================================================
# SUPPLIERS
# =============================================================================

SUPPLIERS: dict[str, dict[str, Any]] = {
    "supplier1": {
        "name": "Supplier-1 (Premium)",
        "defect_rate": 0.0,
        "lead_time": 2,
        "max_discount": 0.15,
        "materials": {
            "selvedgeDenim": {"price": 16, "print_surcharge": 3},
            "standardDenim": {"price": 10, "print_surcharge": 3},
            "egyptianCotton": {"price": 12, "print_surcharge": 2},
            "polyesterBlend": {"price": 7, "print_surcharge": 2},
            "fineWaleCorduroy": {"price": 14, "print_surcharge": 3},
            "wideWaleCorduroy": {"price": 9, "print_surcharge": 3},
        },
    },
    "supplier2": {
        "name": "Supplier-2 (Standard)",
        "defect_rate": 0.05,
        "lead_time": 2,
        "max_discount": 0.10,
        "materials": {
            "selvedgeDenim": {"price": 13, "print_surcharge": 2},
            "egyptianCotton": {"price": 10, "print_surcharge": 1},
            "polyesterBlend": {"price": 6, "print_surcharge": 1},
            "fineWaleCorduroy": {"price": 11, "print_surcharge": 2},
            "wideWaleCorduroy": {"price": 7, "print_surcharge": 2},
        },
    },
}

# Supplier-specific volume tiers (max_units None = unbounded)
VOLUME_DISCOUNTS: dict[str, list[dict[str, Any]]] = {
    "supplier1": [
        {"min_units": 130_000, "max_units": 169_999, "discount": 0.03},
        {"min_units": 170_000, "max_units": 219_999, "discount": 0.05},
        {"min_units": 220_000, "max_units": 289_999, "discount": 0.07},
        {"min_units": 290_000, "max_units": 349_999, "discount": 0.09},
        {"min_units": 350_000, "max_units": 499_999, "discount": 0.12},
        {"min_units": 500_000, "max_units": None, "discount": 0.15},
    ],
    "supplier2": [
        {"min_units": 100_000, "max_units": 149_999, "discount": 0.02},
        {"min_units": 150_000, "max_units": 199_999, "discount": 0.03},
        {"min_units": 200_000, "max_units": 249_999, "discount": 0.04},
        {"min_units": 250_000, "max_units": 299_999, "discount": 0.05},
        {"min_units": 300_000, "max_units": 399_999, "discount": 0.07},
        {"min_units": 400_000, "max_units": None, "discount": 0.09},
    ],
}

SINGLE_SUPPLIER_BONUS: float = 0.02

GMC_SETTLEMENT_LAG_WEEKS: int = 2
GMC_SHORTFALL_PENALTY_RATE: float = 0.20
GMC_MIN_COMMITMENT_FRACTION: float = 0.70

FVC_SIGNING_WEEK: int = 1
FVC_DEPOSIT_FRACTION: float = 0.30
FVC_BALANCE_LAG_WEEKS: int = 8

# =============================================================================
# MANUFACTURING & LOGISTICS
# =============================================================================

BATCH_SIZE: int = 25_000

MANUFACTURING: dict[str, dict[str, Any]] = {
    "jacket": {"in_house_cost": 15, "outsource_cost": 25, "in_house_weeks": 3, "outsource_weeks": 1},
    "dress": {"in_house_cost": 8, "outsource_cost": 14, "in_house_weeks": 2, "outsource_weeks": 1},
    "pants": {"in_house_cost": 12, "outsource_cost": 18, "in_house_weeks": 2, "outsource_weeks": 1},
}

# In-house plant ceiling in units per week, weeks 1..15
CAPACITY_SCHEDULE: list[int] = [
    0, 0, 25_000, 50_000, 100_000, 100_000, 150_000, 150_000,
    200_000, 200_000, 100_000, 50_000, 0, 0, 0,
]

# Per-unit shipping cost by product and method
SHIPPING_COSTS: dict[str, dict[str, float]] = {
    "jacket": {"standard": 4, "expedited": 7},
    "dress": {"standard": 2.5, "expedited": 4},
    "pants": {"standard": 3, "expedited": 6},
}

SHIPPING_WEEKS: dict[str, int] = {
    "standard": 2,
    "expedited": 1,
}

# Finished goods must be in transit so they land before launch
LAUNCH_DEADLINE_WEEK: int = 6

# =============================================================================
# FINANCE
# =============================================================================

STARTING_CAPITAL: int = 1_000_000
CREDIT_LIMIT: int = 10_000_000
WEEKLY_INTEREST_RATE: float = 0.002
HOLDING_COST_RATE: float = 0.003
CAPITAL_CHARGE_RATE: float = 0.10  # annual charge on starting capital

# =============================================================================
# DEMAND MODEL SHAPE
# =============================================================================

PROMO_LIFT_FLOOR: float = 0.2

# Positioning sigmoid: 1 + amplitude / (1 + exp(steepness * (ratio - center))) + offset
POSITIONING: dict[str, float] = {
    "steepness": 50.0,
    "center": 0.20,
    "amplitude": 0.8,
    "offset": -0.4,
}

PRINT_DESIGN_EFFECT: float = 1.05
PLAIN_DESIGN_EFFECT: float = 0.95

# =============================================================================
# VALIDATION THRESHOLDS
# =============================================================================

PRICE_FLOOR_MARGIN: float = 1.05
AGGRESSIVE_POSITIONING_THRESHOLD: float = 0.85
LOW_CASH_THRESHOLD: int = 100_000
OVERSTOCK_RATIO: float = 3.0
UNDERSTOCK_RATIO: float = 1.2


# =============================================================================
# Combined default configuration (legacy dict form)
# =============================================================================

DEFAULT_CONFIG: dict[str, Any] = {
    "season": {
        "total_weeks": TOTAL_WEEKS,
        "phase_boundaries": PHASE_BOUNDARIES,
        "sales_weeks": list(SALES_WEEKS),
        "runout_markdowns": RUNOUT_MARKDOWNS,
    },
    "products": PRODUCTS,
    "demand": {
        "seasonality": SEASONALITY,
        "baseline_marketing_spend": BASELINE_MARKETING_SPEND,
        "promo_lift_floor": PROMO_LIFT_FLOOR,
        "positioning": POSITIONING,
        "print_design_effect": PRINT_DESIGN_EFFECT,
        "plain_design_effect": PLAIN_DESIGN_EFFECT,
    },
    "suppliers": SUPPLIERS,
    "procurement": {
        "volume_discounts": VOLUME_DISCOUNTS,
        "single_supplier_bonus": SINGLE_SUPPLIER_BONUS,
        "gmc_settlement_lag_weeks": GMC_SETTLEMENT_LAG_WEEKS,
        "gmc_shortfall_penalty_rate": GMC_SHORTFALL_PENALTY_RATE,
        "gmc_min_commitment_fraction": GMC_MIN_COMMITMENT_FRACTION,
        "fvc_signing_week": FVC_SIGNING_WEEK,
        "fvc_deposit_fraction": FVC_DEPOSIT_FRACTION,
        "fvc_balance_lag_weeks": FVC_BALANCE_LAG_WEEKS,
    },
    "production": {
        "batch_size": BATCH_SIZE,
        "manufacturing": MANUFACTURING,
        "capacity_schedule": CAPACITY_SCHEDULE,
        "shipping_costs": SHIPPING_COSTS,
        "shipping_weeks": SHIPPING_WEEKS,
        "launch_deadline_week": LAUNCH_DEADLINE_WEEK,
    },
    "finance": {
        "starting_capital": STARTING_CAPITAL,
        "credit_limit": CREDIT_LIMIT,
        "weekly_interest_rate": WEEKLY_INTEREST_RATE,
        "holding_cost_rate": HOLDING_COST_RATE,
        "capital_charge_rate": CAPITAL_CHARGE_RATE,
    },
    "validation": {
        "price_floor_margin": PRICE_FLOOR_MARGIN,
        "aggressive_positioning_threshold": AGGRESSIVE_POSITIONING_THRESHOLD,
        "low_cash_threshold": LOW_CASH_THRESHOLD,
        "overstock_ratio": OVERSTOCK_RATIO,
        "understock_ratio": UNDERSTOCK_RATIO,
    },
}
