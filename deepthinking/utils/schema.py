"""Field access, coercion and serialization helpers.

Raw tool input arrives as loosely typed JSON. Callers may use camelCase
(``thoughtNumber``) or snake_case (``thought_number``) keys, and any field may
be missing or of the wrong shape. Normalizers read through these helpers so a
malformed sub-record degrades to a default instead of raising.
"""

from __future__ import annotations

import dataclasses
import math
import re
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def camel_to_snake(name: str) -> str:
    """Convert ``thoughtNumber`` to ``thought_number``."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def snake_to_camel(name: str) -> str:
    """Convert ``thought_number`` to ``thoughtNumber``."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def pick(record: Mapping[str, Any] | None, name: str, default: Any = None) -> Any:
    """Read a field under any of its snake_case or camelCase spellings.

    Args:
        record: Mapping to read from (None is treated as empty).
        name: Field name in either case style.
        default: Value returned when neither spelling is present or the value is None.

    Returns:
        The field value or ``default``.

    """
    if not isinstance(record, Mapping):
        return default
    for key in (name, snake_to_camel(name), camel_to_snake(name)):
        value = record.get(key)
        if value is not None:
            return value
    return default


def is_number(value: Any) -> bool:
    """Return True for finite ints and floats (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)


def as_float(value: Any, default: float | None = None) -> float | None:
    """Coerce a numeric value to float, else return ``default``."""
    return float(value) if is_number(value) else default


def as_int(value: Any, default: int | None = None) -> int | None:
    """Coerce an integral value to int, else return ``default``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


def as_bool(value: Any, default: bool | None = None) -> bool | None:
    """Return ``value`` if it is a bool, else ``default``."""
    return value if isinstance(value, bool) else default


def as_str(value: Any, default: str = "") -> str:
    """Coerce scalars to str; None and containers become ``default``."""
    if value is None or isinstance(value, Mapping | list | tuple | set):
        return default
    return value if isinstance(value, str) else str(value)


def as_list(value: Any) -> list[Any]:
    """Return a shallow list copy of a list/tuple, or an empty list."""
    if isinstance(value, list | tuple):
        return list(value)
    return []


def as_str_list(value: Any) -> list[str]:
    """Return the string-coercible items of a list, skipping containers."""
    return [as_str(item) for item in as_list(value) if item is not None and as_str(item)]


def as_dict(value: Any) -> dict[str, Any]:
    """Return a shallow dict copy of a mapping, or an empty dict."""
    return dict(value) if isinstance(value, Mapping) else {}


def as_records(value: Any) -> list[dict[str, Any]]:
    """Return the mapping items of a list as dicts, dropping anything else."""
    return [dict(item) for item in as_list(value) if isinstance(item, Mapping)]


def clamp_unit(value: float) -> float:
    """Clamp a float into [0, 1]."""
    return max(0.0, min(1.0, value))


def as_unit(value: Any, default: float = 0.5) -> float:
    """Read a number clamped into [0, 1], or ``default`` when absent or non-numeric."""
    number = as_float(value)
    return default if number is None else clamp_unit(number)


def as_signed_unit(value: Any, default: float = 0.0) -> float:
    """Read a number clamped into [-1, 1], or ``default``."""
    number = as_float(value)
    return default if number is None else max(-1.0, min(1.0, number))


def in_unit_interval(value: Any) -> bool:
    """Return True if ``value`` is a number within [0, 1]."""
    return is_number(value) and 0.0 <= value <= 1.0


def to_jsonable(obj: Any) -> Any:
    """Recursively convert dataclasses, enums and datetimes to JSON primitives.

    Args:
        obj: Object to convert.

    Returns:
        Structure made of dict, list, str, int, float, bool and None.

    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, list | tuple | set | frozenset):
        return [to_jsonable(item) for item in obj]
    return obj
