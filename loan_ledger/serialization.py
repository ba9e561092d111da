"""Plain-data conversion of ledger records for rendering and persistence."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from loan_ledger.models import Payment

# Properties exported alongside dataclass fields
_DERIVED_FIELDS: dict[type, tuple[str, ...]] = {
    Payment: ("total_amount",),
}


def to_dict(obj: Any) -> dict:
    """Convert object to dictionary."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return dataclass_to_dict(obj)
    elif isinstance(obj, dict):
        return obj
    else:
        return {"value": str(obj)}


def dataclass_to_dict(obj: Any) -> dict:
    """Convert a record to a dict, including derived totals and nested records.

    Parameters
    ----------
    obj : Any
        A dataclass instance (``Loan``, ``Payment``, ``PaymentResult`` ...).

    Returns
    -------
    dict
        Serialized dictionary.
    """
    result = {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}
    for name in _DERIVED_FIELDS.get(type(obj), ()):
        result[name] = serialize_value(getattr(obj, name))
    return result


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output."""
    if is_dataclass(value) and not isinstance(value, type):
        return dataclass_to_dict(value)
    elif isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, (datetime, date, time)):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value
