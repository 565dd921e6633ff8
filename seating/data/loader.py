"""Load and validate seating input from JSON files."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from .models import SeatingInput


class DataValidationError(Exception):
    """Raised when seating input fails validation."""
    pass


# Top-level keys that belong in the config object
CONFIG_FIELDS = ["strategy", "time_limit_seconds", "require_students", "weights"]


def load_seating_data(path: Union[str, Path]) -> SeatingInput:
    """
    Load seating input from a JSON file.

    Accepts the application's camelCase payloads as well as snake_case.

    Args:
        path: Path to the JSON file

    Returns:
        Validated SeatingInput

    Raises:
        FileNotFoundError: If the file doesn't exist
        DataValidationError: If the file isn't valid JSON or fails validation
    """
    path = Path(path)

    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DataValidationError(f"Invalid JSON in {path}: {e}") from e

    return parse_seating_data(data)


def parse_seating_data(data: Any) -> SeatingInput:
    """
    Validate a decoded JSON payload into a SeatingInput.

    Raises:
        DataValidationError: If the payload fails validation
    """
    if not isinstance(data, dict):
        raise DataValidationError("Seating input must be a JSON object")

    converted = _convert_keys_to_snake_case(data)

    # Move top-level config fields into config object
    config_data = dict(converted.pop("config", None) or {})
    for field in CONFIG_FIELDS:
        if field in converted:
            config_data[field] = converted.pop(field)
    if config_data:
        converted["config"] = config_data

    try:
        return SeatingInput.model_validate(converted)
    except ValidationError as e:
        raise DataValidationError(_format_validation_error(e)) from e


def _format_validation_error(error: ValidationError) -> str:
    lines = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"]) or "input"
        lines.append(f"  - {location}: {err['msg']}")
    return "Seating input validation failed:\n" + "\n".join(lines)


def _to_snake_case(name: str) -> str:
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)
    return name.lower()


def _convert_keys_to_snake_case(obj: Any) -> Any:
    """Recursively convert dictionary keys from camelCase to snake_case."""
    if isinstance(obj, dict):
        return {_to_snake_case(k): _convert_keys_to_snake_case(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_convert_keys_to_snake_case(item) for item in obj]
    else:
        return obj
