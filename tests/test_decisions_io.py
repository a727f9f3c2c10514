"""Tests for decision file parsing and writing."""

import io
import json
from decimal import Decimal
from pathlib import Path

import pytest

from fashionsim.io.decisions_io import (
    DecisionsParseError,
    decisions_from_dict,
    parse_decisions,
    write_decisions,
)
from fashionsim.models.contracts import ContractType
from fashionsim.models.decisions import Decisions, MarketingPlan, ProductInput
from fashionsim.models.production import ProductionMethod

SAMPLE_YAML = """\
products:
  jacket: {rrp: 120, fabric: standardDenim}
  dress: {has_print: true}
purchases:
  - {contract_type: SPT, supplier: supplier1, material: standardDenim, units: 50000}
production_batches:
  - {product: jacket, method: outsource, start_week: 3, quantity: 50000}
marketing: {total_spend: 25000}
discounts: {pants: 0.15}
"""


class TestParseDecisions:
    """Tests for reading decision documents."""

    def test_parse_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "week1.yaml"
        path.write_text(SAMPLE_YAML)

        decisions = parse_decisions(path)

        assert decisions.products["jacket"].rrp == Decimal("120")
        assert decisions.products["dress"].has_print is True
        assert decisions.products["dress"].rrp is None
        assert decisions.purchases[0].contract_type == ContractType.SPOT
        assert decisions.production_batches[0].method == ProductionMethod.OUTSOURCE
        assert decisions.marketing.total_spend == Decimal("25000")
        assert decisions.discounts["pants"] == Decimal("0.15")

    def test_parse_json_stream(self) -> None:
        stream = io.StringIO(json.dumps({"discounts": {"jacket": 0.2}, "cancel_orders": ["SPT-1"]}))

        decisions = parse_decisions(stream)

        assert decisions.discounts == {"jacket": Decimal("0.2")}
        assert decisions.cancel_orders == ["SPT-1"]

    def test_empty_document(self) -> None:
        assert parse_decisions(io.StringIO("   \n")).is_empty

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("products: [unclosed\n")

        with pytest.raises(DecisionsParseError, match="Invalid YAML/JSON") as exc_info:
            parse_decisions(path)

        assert exc_info.value.source == str(path)

    def test_not_a_mapping(self) -> None:
        with pytest.raises(DecisionsParseError, match="must be a mapping"):
            parse_decisions(io.StringIO("- just\n- a list\n"))

    def test_invalid_values(self) -> None:
        with pytest.raises(DecisionsParseError, match="Invalid decisions"):
            decisions_from_dict({"discounts": {"jacket": 1.5}})

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            parse_decisions(tmp_path / "missing.yaml")


class TestWriteDecisions:
    """Tests for writing decision documents."""

    def test_write_yaml_omits_unset_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "out.yaml"
        decisions = Decisions(marketing=MarketingPlan(total_spend=Decimal("1000")))

        write_decisions(decisions, path)
        content = path.read_text()

        assert "marketing" in content
        assert "purchases" not in content
        assert parse_decisions(path) == decisions

    def test_write_json(self, tmp_path: Path) -> None:
        path = tmp_path / "out.json"
        decisions = Decisions(products={"pants": ProductInput(rrp=Decimal("70"), fabric="wideWaleCorduroy")})

        write_decisions(decisions, path)

        data = json.loads(path.read_text())
        assert data == {"products": {"pants": {"rrp": "70", "fabric": "wideWaleCorduroy"}}}

    def test_write_stream(self) -> None:
        stream = io.StringIO()

        write_decisions(Decisions(single_supplier_deal="supplier1"), stream)

        assert stream.getvalue() == "single_supplier_deal: supplier1\n"
