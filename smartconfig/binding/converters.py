"""Value converters.

Stored values are strings. Each scalar ``ValueKind`` maps to one converter
in ``CONVERTERS``; a setting's declared kind selects the converter, no
runtime type inspection is involved. ``LIST`` and ``DICT`` settings are
itemized: each item is stored as its own row (``Hosts[0]``, ``Ports[http]``)
and converted with the item kind.
"""

import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Mapping

from ..resolution.exceptions import ConversionError

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")


class ValueKind(str, Enum):
    """Semantic type of a setting value."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    ENUM = "enum"
    JSON = "json"
    LIST = "list"
    DICT = "dict"


# stored one row per item, see itemize/collect
COLLECTION_KINDS = (ValueKind.LIST, ValueKind.DICT)


@dataclass(frozen=True)
class ValueConverter:
    """Pair of functions turning a stored string into a value and back."""

    kind: ValueKind
    deserialize: Callable[[str, type | None], Any]
    serialize: Callable[[Any, type | None], str]


def _parse_bool(value: str, _: type | None) -> bool:
    normalised = value.strip().lower()
    if normalised in TRUE_VALUES:
        return True
    if normalised in FALSE_VALUES:
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def _format_bool(value: Any, _: type | None) -> str:
    if not isinstance(value, bool):
        raise TypeError(f"Expected bool, got {type(value).__name__}")
    return "true" if value else "false"


def _parse_int(value: str, _: type | None) -> int:
    return int(value.strip())


def _format_int(value: Any, _: type | None) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int, got {type(value).__name__}")
    return str(value)


def _format_float(value: Any, _: type | None) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected float, got {type(value).__name__}")
    return repr(float(value))


def _parse_decimal(value: str, _: type | None) -> Decimal:
    return Decimal(value.strip())


def _format_decimal(value: Any, _: type | None) -> str:
    return str(Decimal(value) if not isinstance(value, Decimal) else value)


def _parse_enum(value: str, enum_type: type | None) -> Enum:
    if enum_type is None:
        raise TypeError("Enum settings require an enum_type")
    wanted = value.strip().casefold()
    for member in enum_type:
        if member.name.casefold() == wanted:
            return member
    raise ValueError(f"{value!r} is not a member of {enum_type.__name__}")


def _format_enum(value: Any, enum_type: type | None) -> str:
    if enum_type is not None and not isinstance(value, enum_type):
        value = _parse_enum(str(value), enum_type)
    return value.name


def _format_datetime(value: Any, _: type | None) -> str:
    if not isinstance(value, datetime):
        raise TypeError(f"Expected datetime, got {type(value).__name__}")
    return value.isoformat()


def _format_date(value: Any, _: type | None) -> str:
    if isinstance(value, datetime) or not isinstance(value, date):
        raise TypeError(f"Expected date, got {type(value).__name__}")
    return value.isoformat()


def _format_string(value: Any, _: type | None) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected str, got {type(value).__name__}")
    return value


CONVERTERS: dict[ValueKind, ValueConverter] = {
    ValueKind.STRING: ValueConverter(ValueKind.STRING, lambda v, _: v, _format_string),
    ValueKind.INTEGER: ValueConverter(ValueKind.INTEGER, _parse_int, _format_int),
    ValueKind.FLOAT: ValueConverter(ValueKind.FLOAT, lambda v, _: float(v.strip()), _format_float),
    ValueKind.DECIMAL: ValueConverter(ValueKind.DECIMAL, _parse_decimal, _format_decimal),
    ValueKind.BOOLEAN: ValueConverter(ValueKind.BOOLEAN, _parse_bool, _format_bool),
    ValueKind.DATETIME: ValueConverter(
        ValueKind.DATETIME, lambda v, _: datetime.fromisoformat(v.strip()), _format_datetime
    ),
    ValueKind.DATE: ValueConverter(ValueKind.DATE, lambda v, _: date.fromisoformat(v.strip()), _format_date),
    ValueKind.ENUM: ValueConverter(ValueKind.ENUM, _parse_enum, _format_enum),
    ValueKind.JSON: ValueConverter(ValueKind.JSON, lambda v, _: json.loads(v), lambda v, _: json.dumps(v)),
}

_CONVERSION_ERRORS = (ValueError, TypeError, InvalidOperation, AttributeError)


def _converter(kind: ValueKind) -> ValueConverter:
    kind = ValueKind(kind)
    if kind in COLLECTION_KINDS:
        raise ValueError(f"{kind.value} settings are itemized, use itemize/collect")
    return CONVERTERS[kind]


def deserialize(setting_name: str, kind: ValueKind, value: str, enum_type: type | None = None) -> Any:
    """Convert a stored string into a typed value.

    Raises:
        ConversionError: if the string does not parse as ``kind``
    """
    converter = _converter(kind)
    try:
        return converter.deserialize(value, enum_type)
    except _CONVERSION_ERRORS as e:
        raise ConversionError(setting_name, converter.kind.value, value) from e


def serialize(setting_name: str, kind: ValueKind, value: Any, enum_type: type | None = None) -> str:
    """Convert a typed value into the string that gets stored.

    Raises:
        ConversionError: if the value does not fit ``kind``
    """
    converter = _converter(kind)
    try:
        return converter.serialize(value, enum_type)
    except _CONVERSION_ERRORS as e:
        raise ConversionError(setting_name, converter.kind.value, value) from e


def itemize(
    setting_name: str,
    kind: ValueKind,
    item_kind: ValueKind,
    value: Any,
    enum_type: type | None = None,
) -> dict[str, str | None]:
    """Split a list or dict into serialized items keyed by index or dict key.

    Raises:
        ConversionError: if the value is not a collection of ``kind`` or an item does not fit ``item_kind``
    """
    kind = ValueKind(kind)
    if kind == ValueKind.LIST:
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (list, tuple, set, frozenset)):
            raise ConversionError(setting_name, kind.value, value)
        pairs = enumerate(value)
    elif kind == ValueKind.DICT:
        if not isinstance(value, Mapping):
            raise ConversionError(setting_name, kind.value, value)
        pairs = value.items()
    else:
        raise ValueError(f"{kind.value} is not a collection kind")

    items = {}
    for key, item in pairs:
        key = str(key)
        if not key or "[" in key or "]" in key:
            raise ConversionError(setting_name, kind.value, value)
        items[key] = None if item is None else serialize(setting_name, item_kind, item, enum_type)
    return items


def collect(
    setting_name: str,
    kind: ValueKind,
    item_kind: ValueKind,
    items: Mapping[str, str | None],
    enum_type: type | None = None,
) -> list | dict:
    """Rebuild a list (ordered by index) or dict from stored items.

    Raises:
        ConversionError: if a list index is not an integer or an item does not parse
    """
    kind = ValueKind(kind)

    def convert(value: str | None) -> Any:
        return None if value is None else deserialize(setting_name, item_kind, value, enum_type)

    if kind == ValueKind.LIST:
        try:
            ordered = sorted(items.items(), key=lambda pair: int(pair[0]))
        except ValueError as e:
            raise ConversionError(setting_name, kind.value, dict(items)) from e
        return [convert(value) for _, value in ordered]
    if kind == ValueKind.DICT:
        return {key: convert(value) for key, value in items.items()}
    raise ValueError(f"{kind.value} is not a collection kind")
