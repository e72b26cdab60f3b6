from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable


def camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_json(value: Any, *, exclude: Iterable[str] = ()) -> Any:
    """Convert dataclasses (and containers of them) into JSON-ready data with camelCase keys.

    Fields listed in ``exclude`` are dropped at the top level only.
    """
    skip = set(exclude)
    if is_dataclass(value) and not isinstance(value, type):
        return {
            camel(f.name): to_json(getattr(value, f.name))
            for f in fields(value)
            if f.name not in skip and not f.name.startswith("_")
        }
    if isinstance(value, dict):
        return {(camel(k) if isinstance(k, str) else k): to_json(v) for k, v in value.items() if k not in skip}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value
