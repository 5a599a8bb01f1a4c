"""
Spreadsheet parsing and row normalization for reptile imports.
"""

from parsers.spreadsheet_parser import parse_spreadsheet, resolve_content_type
from parsers.header_mapper import map_headers, canonical_mapping
from parsers.row_normalizer import normalize_rows, parse_boolean, parse_het_traits

__all__ = [
    "parse_spreadsheet",
    "resolve_content_type",
    "map_headers",
    "canonical_mapping",
    "normalize_rows",
    "parse_boolean",
    "parse_het_traits",
]
