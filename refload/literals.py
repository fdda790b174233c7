"""Attribute literals — text to typed Python values.

The value type of an attribute is a name (``EInt``, ``EString``, ``boolean``
...). Known primitive names map to a converter; enumerations accept only
their declared literals; any other type name keeps the raw text.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from .errors import AttributeTypeMismatch
from .types import AttributeDescriptor


def _to_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValueError(text)


def _to_char(text: str) -> str:
    if len(text) != 1:
        raise ValueError(text)
    return text


def _no_separators(text: str) -> str:
    text = text.strip()
    if "_" in text:
        raise ValueError(text)
    return text


_INTEGER = re.compile(r"[+-]?[0-9]+")


def _integer(bits: int | None) -> Callable[[str], int]:
    """Converter for integers of ``bits`` width (None for unbounded)."""
    def convert(text: str) -> int:
        text = text.strip()
        if not _INTEGER.fullmatch(text):
            raise ValueError(text)
        value = int(text)
        if bits is not None and not -(1 << bits - 1) <= value < (1 << bits - 1):
            raise ValueError(text)
        return value
    return convert


def _to_float(text: str) -> float:
    return float(_no_separators(text))


def _to_decimal(text: str) -> Decimal:
    try:
        return Decimal(_no_separators(text))
    except InvalidOperation as exc:
        raise ValueError(text) from exc


def _to_datetime(text: str) -> datetime:
    return datetime.fromisoformat(text.strip())


# ---------------------------------------------------------------------------
# Type name → (converter, human readable type)
# ---------------------------------------------------------------------------

_CONVERTERS: dict[str, tuple[Callable[[str], Any], str]] = {}


def _register(names: tuple[str, ...], converter: Callable[[str], Any], label: str) -> None:
    for name in names:
        _CONVERTERS[name] = (converter, label)


_register(("EString", "string", "str"), str, "string")
_register(("EByte", "EByteObject", "byte"), _integer(8), "8-bit integer")
_register(("EShort", "EShortObject", "short"), _integer(16), "16-bit integer")
_register(("EInt", "EIntegerObject", "int"), _integer(32), "32-bit integer")
_register(("ELong", "ELongObject", "long"), _integer(64), "64-bit integer")
_register(("EBigInteger", "integer"), _integer(None), "integer")
_register(
    ("EFloat", "EFloatObject", "EDouble", "EDoubleObject", "float", "double"),
    _to_float,
    "float",
)
_register(("EBigDecimal", "decimal"), _to_decimal, "decimal")
_register(("EBoolean", "EBooleanObject", "boolean", "bool"), _to_bool, "boolean")
_register(("EChar", "ECharacterObject", "char"), _to_char, "character")
_register(("EDate", "date", "datetime"), _to_datetime, "ISO-8601 date")


def coerce(attribute: AttributeDescriptor, text: str) -> Any:
    """Convert ``text`` to ``attribute``'s declared type.

    Raises AttributeTypeMismatch when the literal does not fit.
    """
    if attribute.is_enum:
        if text not in attribute.literals:
            raise AttributeTypeMismatch(
                attribute.name,
                f"one of {', '.join(attribute.literals)} ({attribute.value_type_name})",
                text,
            )
        return text

    entry = _CONVERTERS.get(attribute.value_type_name)
    if entry is None:
        return text
    converter, label = entry
    try:
        return converter(text)
    except (ValueError, TypeError) as exc:
        raise AttributeTypeMismatch(
            attribute.name, f"{label} ({attribute.value_type_name})", text
        ) from exc


# Intrinsic defaults of the non-nullable primitives
_INTRINSIC_DEFAULTS: dict[str, Any] = {
    "EBoolean": False,
    "EInt": 0,
    "EShort": 0,
    "ELong": 0,
    "EByte": 0,
    "EFloat": 0.0,
    "EDouble": 0.0,
}


def intrinsic_default(type_name: str) -> Any:
    """Value of an unset attribute of a primitive type (None for the rest)."""
    return _INTRINSIC_DEFAULTS.get(type_name)
