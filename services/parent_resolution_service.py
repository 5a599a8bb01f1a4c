"""
Same-batch parent reference resolution.

A row may name a dam and/or sire. If that name belongs to another row
in the same import, the parent row must come first (commit creates rows
in sheet order) and must have the matching sex. Names not found in the
batch are external references and are accepted as-is.

Duplicate names inside one batch: the LAST row carrying a name is the
one a reference resolves to.
"""

from typing import Optional
import structlog

from models.reptile_import import (
    CanonicalField,
    NormalizedRow,
    ParentReference,
    ParentResolution,
    ParentRole,
)
from utils.text_utils import NameKey

logger = structlog.get_logger(__name__)


def build_name_index(rows: list[NormalizedRow]) -> dict[NameKey, int]:
    """Case-insensitive name -> row index (last occurrence wins)."""
    index: dict[NameKey, int] = {}
    for row in rows:
        key = NameKey.of(row.get(CanonicalField.NAME))
        if key is not None:
            index[key] = row.index
    return index


def extract_parent_reference(row: NormalizedRow) -> Optional[ParentReference]:
    """ParentReference for a row that names a parent, else None."""
    dam = row.text(CanonicalField.DAM_NAME) or None
    sire = row.text(CanonicalField.SIRE_NAME) or None
    if not dam and not sire:
        return None
    return ParentReference(row_index=row.index, dam_name=dam, sire_name=sire)


def resolve_parent_references(rows: list[NormalizedRow]) -> list[ParentResolution]:
    """
    Resolve every parent reference in the batch.

    Row validity is irrelevant here; every row naming a parent gets
    exactly one ParentResolution, in row order.
    """
    name_index = build_name_index(rows)
    rows_by_index = {row.index: row for row in rows}

    resolutions: list[ParentResolution] = []
    for row in rows:
        reference = extract_parent_reference(row)
        if reference is None:
            continue

        error = None
        for role, parent_name in reference.named():
            error = _check_reference(role, parent_name, row.index, name_index, rows_by_index)
            if error:
                break

        resolutions.append(ParentResolution(
            row_index=row.index,
            valid=error is None,
            dam=reference.dam_name,
            sire=reference.sire_name,
            error=error,
        ))

    invalid = sum(1 for r in resolutions if not r.valid)
    logger.debug("parent_references_resolved", total=len(resolutions), invalid=invalid)
    return resolutions


def _check_reference(
    role: ParentRole,
    parent_name: str,
    row_index: int,
    name_index: dict[NameKey, int],
    rows_by_index: dict[int, NormalizedRow],
) -> Optional[str]:
    """Error text for one dam/sire reference, or None when acceptable."""
    parent_index = name_index.get(NameKey(parent_name))

    # Not in this batch: assumed to exist already
    if parent_index is None:
        return None

    if parent_index > row_index:
        return (
            f"{role.label} '{parent_name}' appears later in import "
            f"(row {parent_index + 1}). Please reorder rows."
        )

    parent_sex = rows_by_index[parent_index].text(CanonicalField.SEX)
    if parent_sex and parent_sex.lower() != role.required_sex.value:
        return f"{role.label} '{parent_name}' is not {role.required_sex.value} (sex: {parent_sex})"

    return None
