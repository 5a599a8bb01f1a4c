"""
Date parsing for spreadsheet cells.
"""

from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

DATE_FORMATS = ["%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y", "%Y/%m/%d"]


def parse_date(value: Any) -> Optional[date]:
    """Parse various date formats to a date object, or None."""
    if value is None or isinstance(value, bool):
        return None

    # Already a date/datetime
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    value_str = str(value).strip()
    if not value_str:
        return None

    # Try common formats
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value_str, fmt).date()
        except ValueError:
            continue

    # Try pandas parsing as fallback
    try:
        parsed = pd.to_datetime(value_str)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()
