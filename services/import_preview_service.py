"""
Import preview assembly.

Dry run over a parsed spreadsheet: maps headers, normalizes and
validates every row, resolves same-batch parent references and counts
distinct species/morphs. Nothing is written to the store.
"""

from typing import Optional
import structlog

from config import settings
from exceptions import EmptyImportError, TooManyRowsError
from models.reptile_import import (
    CanonicalField,
    NormalizedRow,
    PreviewReport,
    RawRow,
)
from parsers.header_mapper import map_headers
from parsers.row_normalizer import normalize_rows
from services.parent_resolution_service import resolve_parent_references
from services.row_validation_service import validate_rows
from utils.text_utils import NameKey

logger = structlog.get_logger(__name__)


def check_batch_size(row_count: int, max_rows: Optional[int] = None) -> None:
    """
    Enforce the batch-level row boundaries.

    Raises:
        EmptyImportError: If there are no rows
        TooManyRowsError: If there are more than max_rows rows
    """
    limit = max_rows if max_rows is not None else settings.import_max_rows
    if row_count == 0:
        raise EmptyImportError()
    if row_count > limit:
        raise TooManyRowsError(row_count, limit)


def count_distinct(rows: list[NormalizedRow], name: CanonicalField) -> int:
    """Distinct case-insensitive non-blank values of a field across all rows."""
    keys = {NameKey.of(row.get(name)) for row in rows}
    keys.discard(None)
    return len(keys)


def build_preview(
    raw_rows: list[RawRow],
    headers: Optional[list[str]] = None,
    max_rows: Optional[int] = None,
) -> PreviewReport:
    """
    Build the preview report for a batch.

    Args:
        raw_rows: Parsed spreadsheet rows
        headers: Original headers in sheet order (defaults to the first row's keys)
        max_rows: Override for the batch row ceiling

    Returns:
        PreviewReport

    Raises:
        EmptyImportError, TooManyRowsError: Batch-level fatal conditions
    """
    check_batch_size(len(raw_rows), max_rows)

    if headers is None:
        headers = list(raw_rows[0].keys())

    logger.info("import_preview_started", rows=len(raw_rows), headers=len(headers))

    mapping = map_headers(headers)
    rows = normalize_rows(raw_rows, mapping)

    report = PreviewReport(headers=list(headers), mapping=mapping, rows=rows)

    for outcome in validate_rows(rows):
        if outcome.valid:
            report.valid_rows.append(outcome.row_index)
        else:
            report.invalid_rows[outcome.row_index] = outcome.reason or "Unknown error"

    report.parent_resolutions = resolve_parent_references(rows)
    report.species_count = count_distinct(rows, CanonicalField.SPECIES)
    report.morph_count = count_distinct(rows, CanonicalField.MORPH)

    logger.info(
        "import_preview_complete",
        total=report.total_rows,
        valid=len(report.valid_rows),
        invalid=len(report.invalid_rows),
        species=report.species_count,
        morphs=report.morph_count,
        invalid_parents=sum(1 for r in report.parent_resolutions if not r.valid)
    )
    return report
