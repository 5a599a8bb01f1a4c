"""
Per-row validation for reptile imports.

Rules are checked in a fixed order; the first failing rule supplies
the user-facing reason.
"""

from typing import Any, Callable, Optional
import math

from models.reptile_import import (
    CanonicalField,
    NormalizedRow,
    Sex,
    Status,
    ValidationOutcome,
)
from utils.date_utils import parse_date

F = CanonicalField

VALID_SEXES = frozenset(s.value for s in Sex)
VALID_STATUSES = frozenset(s.value for s in Status)
BOOLEAN_LITERALS = frozenset({"true", "false", "1", "0", "yes", "no"})


def validate_row(row: NormalizedRow) -> ValidationOutcome:
    """
    Check one normalized row.

    Returns:
        ValidationOutcome with valid=False and the first failing reason,
        or valid=True
    """
    for rule in _RULES:
        reason = rule(row)
        if reason:
            return ValidationOutcome(row_index=row.index, valid=False, reason=reason)
    return ValidationOutcome(row_index=row.index, valid=True)


def validate_rows(rows: list[NormalizedRow]) -> list[ValidationOutcome]:
    """Exactly one outcome per row, in row order."""
    return [validate_row(row) for row in rows]


# ===================
# RULES
# ===================

def _check_name(row: NormalizedRow) -> Optional[str]:
    if not row.has(F.NAME):
        return "Name is required"
    return None


def _check_sex(row: NormalizedRow) -> Optional[str]:
    if row.text(F.SEX).lower() not in VALID_SEXES:
        return "Sex must be male, female, or unknown"
    return None


def _check_species(row: NormalizedRow) -> Optional[str]:
    if not row.has(F.SPECIES):
        return "Species is required"
    return None


def _check_acquisition_date(row: NormalizedRow) -> Optional[str]:
    if not row.has(F.ACQUISITION_DATE) or parse_date(row.get(F.ACQUISITION_DATE)) is None:
        return "Acquisition date is required and must be a valid date"
    return None


def _check_status(row: NormalizedRow) -> Optional[str]:
    if row.has(F.STATUS) and row.text(F.STATUS).lower() not in VALID_STATUSES:
        return "Status must be active, sold, or deceased"
    return None


def _check_hatch_date(row: NormalizedRow) -> Optional[str]:
    if row.has(F.HATCH_DATE) and parse_date(row.get(F.HATCH_DATE)) is None:
        return "Hatch date must be a valid date"
    return None


def _check_measurements(row: NormalizedRow) -> Optional[str]:
    for name, label in ((F.WEIGHT, "Weight"), (F.LENGTH, "Length")):
        if row.has(name) and not _is_number(row.get(name), lambda n: n > 0):
            return f"{label} must be a positive number"
    return None


def _check_generation(row: NormalizedRow) -> Optional[str]:
    if row.has(F.GENERATION) and not _is_number(
        row.get(F.GENERATION), lambda n: n >= 0 and n.is_integer()
    ):
        return "Generation must be a non-negative integer"
    return None


def _check_booleans(row: NormalizedRow) -> Optional[str]:
    for name in (F.IS_BREEDER, F.RETIRED_BREEDER):
        if not row.has(name):
            continue
        value = row.get(name)
        if isinstance(value, bool):
            continue
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if str(value).strip().lower() not in BOOLEAN_LITERALS:
            return f"{name.value} must be a boolean value (true/false, 1/0, yes/no)"
    return None


_RULES: list[Callable[[NormalizedRow], Optional[str]]] = [
    _check_name,
    _check_sex,
    _check_species,
    _check_acquisition_date,
    _check_status,
    _check_hatch_date,
    _check_measurements,
    _check_generation,
    _check_booleans,
]


def _is_number(value: Any, predicate: Callable[[float], bool]) -> bool:
    if isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and predicate(number)
