"""
Configuration management for FASHIONSIM.

This module provides:
- Default constants catalog
- Configuration schema and validation
- Support for custom configuration files (JSON/YAML)
"""

from fashionsim.config.defaults import DEFAULT_CONFIG
from fashionsim.config.schema import (
    DemandConfig,
    DiscountTierConfig,
    FashionSimConfig,
    FinanceConfig,
    ManufacturingConfig,
    MaterialPriceConfig,
    ProcurementConfig,
    ProductConfig,
    ProductionConfig,
    SeasonConfig,
    ShippingRateConfig,
    SupplierConfig,
    ValidationConfig,
    get_default_config,
)

__all__ = [
    # Legacy dict-based config
    "DEFAULT_CONFIG",
    # Pydantic config classes
    "DemandConfig",
    "DiscountTierConfig",
    "FashionSimConfig",
    "FinanceConfig",
    "ManufacturingConfig",
    "MaterialPriceConfig",
    "ProcurementConfig",
    "ProductConfig",
    "ProductionConfig",
    "SeasonConfig",
    "ShippingRateConfig",
    "SupplierConfig",
    "ValidationConfig",
    # Functions
    "get_default_config",
]
