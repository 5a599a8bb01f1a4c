"""
Spreadsheet parser for reptile imports.

Turns uploaded CSV / XLSX bytes into raw rows (original header -> cell
value). Only the first sheet of a workbook is read; blank cells become
None and fully blank lines are dropped.
"""

from datetime import date, datetime
from io import BytesIO
from typing import Any, Optional
import structlog

import pandas as pd

from exceptions import SpreadsheetParseError, UnsupportedFileTypeError
from models.reptile_import import RawRow

logger = structlog.get_logger(__name__)

CSV_CONTENT_TYPE = "text/csv"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_EXTENSION_TYPES = {
    ".csv": CSV_CONTENT_TYPE,
    ".xlsx": XLSX_CONTENT_TYPE,
}


def resolve_content_type(content_type: Optional[str], filename: Optional[str]) -> str:
    """
    Decide whether an upload is CSV or XLSX.

    The declared content type wins; generic types (octet-stream, empty)
    fall back to the filename extension.

    Raises:
        UnsupportedFileTypeError: If neither identifies CSV or XLSX
    """
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared in (CSV_CONTENT_TYPE, XLSX_CONTENT_TYPE):
        return declared

    if declared in ("", "application/octet-stream") and filename:
        lower = filename.lower()
        for extension, resolved in _EXTENSION_TYPES.items():
            if lower.endswith(extension):
                return resolved

    raise UnsupportedFileTypeError(content_type)


def parse_spreadsheet(content: bytes, content_type: str) -> tuple[list[str], list[RawRow]]:
    """
    Parse an uploaded spreadsheet.

    Args:
        content: Raw file bytes
        content_type: CSV_CONTENT_TYPE or XLSX_CONTENT_TYPE

    Returns:
        (headers in sheet order, raw rows)

    Raises:
        SpreadsheetParseError: If the bytes cannot be read
        UnsupportedFileTypeError: If content_type is not supported
    """
    logger.info("parsing_spreadsheet", content_type=content_type, size=len(content))

    try:
        if content_type == CSV_CONTENT_TYPE:
            df = pd.read_csv(
                BytesIO(content),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
        elif content_type == XLSX_CONTENT_TYPE:
            df = pd.read_excel(BytesIO(content), sheet_name=0, engine="openpyxl")
        else:
            raise UnsupportedFileTypeError(content_type)
    except UnsupportedFileTypeError:
        raise
    except pd.errors.EmptyDataError:
        logger.info("spreadsheet_empty")
        return [], []
    except Exception as e:
        logger.error("spreadsheet_read_failed", error=str(e))
        raise SpreadsheetParseError(
            message="Failed to read file",
            details={"original_error": str(e)}
        )

    headers = [str(col).strip() for col in df.columns]
    df.columns = headers

    rows: list[RawRow] = []
    for _, record in df.iterrows():
        row = {header: _clean_cell(record[header]) for header in headers}
        if all(value is None for value in row.values()):
            continue
        rows.append(row)

    logger.info("spreadsheet_parsed", headers=len(headers), rows=len(rows))
    return headers, rows


def _clean_cell(value: Any) -> Any:
    """Blank -> None, pandas scalars -> plain Python values, dates -> ISO strings."""
    if value is None:
        return None
    if isinstance(value, (pd.Timestamp, datetime)):
        if pd.isna(value):
            return None
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value if value.strip() else None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if hasattr(value, "item"):
        # numpy scalar
        value = value.item()
    # Integer columns with blanks come back from pandas as floats
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
