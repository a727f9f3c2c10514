"""
Decision file reader/writer for FASHIONSIM.

Players submit decisions as YAML or JSON documents whose keys mirror
the Decisions model, for example:

    products:
      jacket: {rrp: 120, fabric: standardDenim, has_print: false}
    purchases:
      - {contract_type: SPT, supplier: supplier1, material: standardDenim, units: 50000}
    production_batches:
      - {product: jacket, start_week: 4, quantity: 50000}
    marketing: {total_spend: 25000}

Every section is optional.
"""

import json
from pathlib import Path
from typing import Any, TextIO

import yaml
from pydantic import ValidationError

from fashionsim.models.decisions import Decisions


class DecisionsParseError(Exception):
    """Error parsing a decisions file."""

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        if source is not None:
            message = f"{source}: {message}"
        super().__init__(message)


def _is_json(source: str | Path | TextIO) -> bool:
    name = str(source) if isinstance(source, (str, Path)) else getattr(source, "name", "")
    return str(name).lower().endswith(".json")


def parse_decisions(source: str | Path | TextIO) -> Decisions:
    """Parse a YAML or JSON decisions file.

    Args:
        source: File path, path object, or file-like object

    Returns:
        Parsed Decisions object

    Raises:
        DecisionsParseError: If the document is malformed or fails validation
        FileNotFoundError: If source is a path and the file doesn't exist
    """
    label = str(source) if isinstance(source, (str, Path)) else None
    if isinstance(source, (str, Path)):
        with open(source, encoding="utf-8") as f:
            text = f.read()
    else:
        text = source.read()

    try:
        # YAML is a superset of JSON, so one loader covers both
        data = yaml.safe_load(text) if text.strip() else {}
    except yaml.YAMLError as e:
        raise DecisionsParseError(f"Invalid YAML/JSON: {e}", label) from e

    return decisions_from_dict(data or {}, label)


def decisions_from_dict(data: Any, source: str | None = None) -> Decisions:
    """Validate a plain mapping into Decisions."""
    if not isinstance(data, dict):
        raise DecisionsParseError("Decisions document must be a mapping", source)
    try:
        return Decisions.model_validate(data)
    except ValidationError as e:
        raise DecisionsParseError(f"Invalid decisions: {e}", source) from e


def write_decisions(decisions: Decisions, destination: str | Path | TextIO) -> None:
    """Write decisions as YAML, or JSON when the destination ends in .json.

    Unset sections are omitted so the file reads like a hand-written one.
    """
    data = decisions.model_dump(mode="json", exclude_defaults=True)
    if _is_json(destination):
        content = json.dumps(data, indent=2) + "\n"
    else:
        content = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    if isinstance(destination, (str, Path)):
        with open(destination, "w", encoding="utf-8") as f:
            f.write(content)
    else:
        destination.write(content)
