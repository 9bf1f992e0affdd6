"""Conversion of domain values into JSON-compatible structures."""

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def to_jsonable(value: Any) -> Any:
    """Recursively convert entities, enums, decimals and dates to plain JSON types.

    Decimals become floats, dates and datetimes ISO strings, enums their
    values and dataclasses dicts of their fields.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


def pick(entity: Any, *names: str) -> dict[str, Any]:
    """JSON-compatible dict of selected entity attributes."""
    return {name: to_jsonable(getattr(entity, name)) for name in names}
