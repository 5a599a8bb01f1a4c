"""
Row normalization for reptile imports.

Converts raw cell values into typed values per canonical field. Never
raises: malformed values (e.g. a non-numeric weight) are carried
through as NaN so that validation is where the failure becomes visible.
"""

from typing import Any, Optional
import re

from models.reptile import HetTrait
from models.reptile_import import (
    CanonicalField,
    FieldKind,
    FIELD_KINDS,
    HeaderMapping,
    NormalizedRow,
    RawRow,
)

TRUE_LITERALS = frozenset({"true", "1", "yes"})

# Marker for "no value": blank cells are dropped from the normalized row
_ABSENT = object()


def normalize_row(index: int, raw: RawRow, mapping: HeaderMapping) -> NormalizedRow:
    """
    Normalize one raw row.

    Args:
        index: 0-based position of the row in the sheet
        raw: Original header -> cell value
        mapping: Output of map_headers()

    Returns:
        NormalizedRow holding only mapped, non-blank fields
    """
    values: dict[CanonicalField, Any] = {}

    for header, cell in raw.items():
        canonical = mapping.get(header)
        if canonical is None:
            continue

        converted = convert_value(canonical, cell)
        if converted is _ABSENT:
            continue
        values[canonical] = converted

    return NormalizedRow(index=index, values=values)


def normalize_rows(raw_rows: list[RawRow], mapping: HeaderMapping) -> list[NormalizedRow]:
    """Normalize every row, preserving order and index."""
    return [normalize_row(index, raw, mapping) for index, raw in enumerate(raw_rows)]


def convert_value(canonical: CanonicalField, value: Any) -> Any:
    """Apply the conversion for the field's declared kind."""
    if _is_blank(value):
        return _ABSENT

    kind = FIELD_KINDS[canonical]

    if kind is FieldKind.BOOLEAN:
        return _to_boolean(value)
    if kind is FieldKind.NUMBER:
        return _to_number(value)
    if kind is FieldKind.STRING_LIST:
        items = _to_string_list(value)
        return items if items else _ABSENT
    return _to_text(value)


def parse_boolean(value: Any) -> bool:
    """Truthiness of a boolean cell: native bool, or one of true/1/yes."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_LITERALS
    return bool(value)


# ===================
# HELPER FUNCTIONS
# ===================

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _to_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _to_boolean(value: Any) -> Any:
    # Only strings are converted; native booleans and other values pass through
    if isinstance(value, str):
        return value.strip().lower() in TRUE_LITERALS
    return value


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return float("nan")
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return float("nan")


def _to_string_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        parts: list[Optional[str]] = [None if v is None else str(v) for v in value]
    else:
        parts = _to_text(value).split(",")
    return [part.strip() for part in parts if part and part.strip()]


# ===================
# COMMIT-TIME PARSING
# ===================

_PERCENT_HET = re.compile(r"^(\d+)%\s*(?:het\b)?\s*(.*)$", re.IGNORECASE)
_PLAIN_HET = re.compile(r"^(?:het\b)?\s*(.*)$", re.IGNORECASE)


def parse_het_traits(value: Any) -> Optional[list[HetTrait]]:
    """
    Parse het items such as "66% het albino" or "het stripe".

    Items without a percentage are 100%. Returns None when nothing
    usable is found.
    """
    if _is_blank(value):
        return None

    traits: list[HetTrait] = []
    for item in _to_string_list(value):
        match = _PERCENT_HET.match(item)
        if match:
            percentage, trait = min(int(match.group(1)), 100), match.group(2).strip()
        else:
            percentage, trait = 100, _PLAIN_HET.match(item).group(1).strip()

        if trait:
            traits.append(HetTrait(trait=trait, percentage=percentage))

    return traits or None
