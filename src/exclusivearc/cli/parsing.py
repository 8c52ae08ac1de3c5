"""Input parsing utilities for CLI commands."""

import json
from pathlib import Path
from typing import Any

from exclusivearc.core.types import PolymorphicMapping
from exclusivearc.exceptions import InvalidMappingError


def read_json_file(path: str) -> Any:
    """Read a JSON document from file.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file contains invalid JSON
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with file_path.open("r") as f:
        return json.load(f)


def read_mapping_file(path: str) -> PolymorphicMapping:
    """Load a PolymorphicMapping from a JSON file.

    Example file:
        {
          "owner_table": "assignments",
          "role": "assignee",
          "relations": [
            {"column": "employee_id", "referenced_table": "employees"},
            {"column": "product_id", "referenced_table": "products"}
          ]
        }

    Raises:
        FileNotFoundError: If file doesn't exist
        InvalidMappingError: If the document is not valid JSON or not a valid mapping
    """
    try:
        data = read_json_file(path)
    except json.JSONDecodeError as e:
        raise InvalidMappingError(None, [f"{path} is not valid JSON: {e.msg}"]) from e
    return PolymorphicMapping.from_dict(data)


def parse_values(raw: str | None) -> dict[str, Any]:
    """Parse a JSON object of column values, e.g. '{"employee_id": 1}'.

    Raises:
        ValueError: If the string is not a JSON object
    """
    if not raw:
        return {}
    try:
        values = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid --values JSON: {e.msg}") from e
    if not isinstance(values, dict):
        raise ValueError("--values must be a JSON object mapping column names to values")
    return values
