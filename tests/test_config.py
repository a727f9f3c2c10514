"""Tests for configuration system."""

import json
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from fashionsim.config import (
    DEFAULT_CONFIG,
    DiscountTierConfig,
    FashionSimConfig,
    ManufacturingConfig,
    MaterialPriceConfig,
    ProductConfig,
    ShippingRateConfig,
    SupplierConfig,
    get_default_config,
)
from fashionsim.engine.demand import DemandModel
from fashionsim.engine.intake import DecisionIntake


class TestFashionSimConfig:
    """Tests for FashionSimConfig class."""

    def test_default_config_creation(self) -> None:
        """Create a default configuration."""
        config = FashionSimConfig()

        # Season calendar
        assert config.season.total_weeks == 15
        assert config.season.sales_weeks == (7, 12)

        # Products and suppliers
        assert config.product_keys == ["jacket", "dress", "pants"]
        assert config.products["jacket"].forecast == 100_000
        assert config.suppliers["supplier1"].lead_time == 2
        assert config.suppliers["supplier1"].defect_rate == 0

        # Finance
        assert config.finance.starting_capital == Decimal("1000000")
        assert config.finance.credit_limit == Decimal("10000000")

    def test_get_default_config(self) -> None:
        """Get default configuration via function."""
        config = get_default_config()

        assert isinstance(config, FashionSimConfig)
        assert config.production.batch_size == 25_000

    def test_config_is_frozen(self) -> None:
        """Configuration cannot be mutated in place."""
        config = get_default_config()

        with pytest.raises(ValidationError):
            config.season = config.season

    def test_from_dict_partial(self) -> None:
        """Create config from partial dictionary."""
        config = FashionSimConfig.from_dict({"finance": {"credit_limit": 500_000}})

        # Override applied
        assert config.finance.credit_limit == Decimal("500000")
        # Defaults preserved
        assert config.finance.starting_capital == Decimal("1000000")
        assert config.products["dress"].hm_price == 50

    def test_merge_nested(self) -> None:
        """Merge deep-merges dictionaries and replaces lists."""
        config = get_default_config()
        schedule = [0] * 15

        merged = config.merge(
            {
                "products": {"jacket": {"forecast": 80_000}},
                "production": {"capacity_schedule": schedule},
            }
        )

        assert merged.products["jacket"].forecast == 80_000
        assert merged.products["jacket"].hm_price == 80
        assert merged.production.capacity_schedule == schedule
        # Base config untouched
        assert config.products["jacket"].forecast == 100_000

    def test_phases_must_be_ordered(self) -> None:
        """Phase boundaries must list every phase in calendar order."""
        with pytest.raises(ValidationError):
            FashionSimConfig.from_dict(
                {"season": {"phase_boundaries": {"strategy": 6, "development": 2, "sales": 12, "runout": 15}}}
            )

    def test_products_need_manufacturing_rates(self) -> None:
        """A product without manufacturing rates is rejected."""
        data = DEFAULT_CONFIG.copy()
        products = dict(data["products"])
        products["scarf"] = {"name": "Scarf", "forecast": 1000, "hm_price": 20, "elasticity": -1.0}

        with pytest.raises(ValidationError, match="scarf"):
            FashionSimConfig.from_dict({"products": products})

    def test_default_tables_are_typed(self) -> None:
        """Catalog tables built from the defaults module are validated models."""
        config = get_default_config()

        assert isinstance(config.products["jacket"], ProductConfig)
        assert isinstance(config.suppliers["supplier1"], SupplierConfig)
        assert isinstance(config.suppliers["supplier1"].materials["standardDenim"], MaterialPriceConfig)
        assert isinstance(config.procurement.volume_discounts["supplier1"][0], DiscountTierConfig)
        assert isinstance(config.production.manufacturing["jacket"], ManufacturingConfig)
        assert isinstance(config.production.shipping_costs["jacket"], ShippingRateConfig)
        assert config.runout_markdown(14) == Decimal("0.35")

    def test_default_matches_catalog_dict(self) -> None:
        assert get_default_config() == FashionSimConfig.from_dict(DEFAULT_CONFIG)

    def test_engine_runs_on_default_config(self) -> None:
        """Components built without an explicit config use the typed catalog."""
        units = DemandModel().demand(
            "jacket", 6, Decimal("100"), Decimal("0"), Decimal("216667"), False
        )

        assert units == 62_765
        assert DecisionIntake().known_materials


class TestLookups:
    """Tests for week and catalog lookups."""

    @pytest.mark.parametrize(
        "week,phase",
        [(1, "strategy"), (2, "strategy"), (3, "development"), (6, "development"),
         (7, "sales"), (12, "sales"), (13, "runout"), (15, "runout")],
    )
    def test_phase_for_week(self, week: int, phase: str) -> None:
        """Weeks map to their season phase."""
        assert get_default_config().phase_for_week(week) == phase

    def test_seasonality_out_of_range(self) -> None:
        """Weeks outside the season have no demand."""
        config = get_default_config()

        assert config.seasonality_for_week(6) == 1.0
        assert config.seasonality_for_week(0) == 0.0
        assert config.seasonality_for_week(16) == 0.0

    def test_capacity_for_week(self) -> None:
        config = get_default_config()

        assert config.capacity_for_week(1) == 0
        assert config.capacity_for_week(4) == 50_000
        assert config.capacity_for_week(9) == 200_000
        assert config.capacity_for_week(20) == 0

    def test_runout_markdown(self) -> None:
        """Only the run-out weeks carry a forced markdown."""
        config = get_default_config()

        assert config.runout_markdown(12) is None
        assert config.runout_markdown(13) == Decimal("0.20")
        assert config.runout_markdown(15) == Decimal("0.50")

    def test_material_price(self) -> None:
        """Catalog entries exist only for materials a supplier stocks."""
        config = get_default_config()

        assert config.material_price("supplier1", "standardDenim").price == Decimal("10")
        assert config.material_price("supplier2", "standardDenim") is None
        assert config.material_price("nobody", "standardDenim") is None

    def test_production_lookups(self) -> None:
        config = get_default_config()

        assert config.production_weeks("jacket", "inhouse") == 3
        assert config.production_weeks("jacket", "outsource") == 1
        assert config.production_unit_cost("jacket", "outsource") == Decimal("25")
        assert config.shipping_unit_cost("jacket", "standard") == Decimal("4")
        assert config.shipping_weeks("expedited") == 1

    def test_season_need(self) -> None:
        """Season need is the sum of product forecasts."""
        assert get_default_config().season_need == 370_000


class TestConfigFiles:
    """Tests for loading and saving config files."""

    def test_to_dict_is_json_compatible(self) -> None:
        data = get_default_config().to_dict()

        # Must survive a JSON round trip
        json.dumps(data)
        assert data["production"]["batch_size"] == 25_000

    def test_save_and_load_json(self, tmp_path: Path) -> None:
        """Save config to JSON and load it back."""
        path = tmp_path / "constants.json"
        config = get_default_config().merge({"finance": {"holding_cost_rate": "0.005"}})

        config.to_file(path)
        loaded = FashionSimConfig.from_file(path)

        assert loaded.finance.holding_cost_rate == Decimal("0.005")
        assert loaded.season.runout_markdowns[14] == Decimal("0.35")

    def test_load_yaml_partial(self, tmp_path: Path) -> None:
        """A partial YAML file overrides only what it names."""
        path = tmp_path / "constants.yaml"
        path.write_text("demand:\n  baseline_marketing_spend: 100000\n")

        config = FashionSimConfig.from_file(path)

        assert config.demand.baseline_marketing_spend == Decimal("100000")
        assert config.demand.print_design_effect == 1.05

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yml"
        path.write_text("")

        assert FashionSimConfig.from_file(path) == get_default_config()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            FashionSimConfig.from_file(tmp_path / "missing.json")

    def test_unsupported_format(self, tmp_path: Path) -> None:
        path = tmp_path / "constants.toml"
        path.write_text("")

        with pytest.raises(ValueError, match="Unsupported"):
            FashionSimConfig.from_file(path)
