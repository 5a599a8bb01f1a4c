"""
Header mapping for reptile imports.

Maps arbitrary spreadsheet column headers to canonical field names via
a static synonym table. Unrecognised headers map to None; they are kept
in the preview for transparency but their values are dropped.
"""

from typing import Iterable, Optional
import structlog

from models.reptile_import import CanonicalField, HeaderMapping

logger = structlog.get_logger(__name__)

F = CanonicalField

# Lower-cased header text -> canonical field
HEADER_SYNONYMS: dict[str, CanonicalField] = {
    "name": F.NAME,
    "reptile_code": F.REPTILE_CODE,
    "reptile code": F.REPTILE_CODE,
    "sex": F.SEX,
    "species": F.SPECIES,
    "morph": F.MORPH,
    "hatch date": F.HATCH_DATE,
    "hatch_date": F.HATCH_DATE,
    "acquisition date": F.ACQUISITION_DATE,
    "acquisition_date": F.ACQUISITION_DATE,
    "weight": F.WEIGHT,
    "length": F.LENGTH,
    "visual traits": F.VISUAL_TRAITS,
    "visual_traits": F.VISUAL_TRAITS,
    "het traits": F.HET_TRAITS,
    "hets": F.HET_TRAITS,
    "het_traits": F.HET_TRAITS,
    "produced by": F.ORIGINAL_BREEDER,
    "produced_by": F.ORIGINAL_BREEDER,
    "original_breeder": F.ORIGINAL_BREEDER,
    "status": F.STATUS,
    "breeding line": F.BREEDING_LINE,
    "breeding_line": F.BREEDING_LINE,
    "lineage path": F.LINEAGE_PATH,
    "lineage_path": F.LINEAGE_PATH,
    "generation": F.GENERATION,
    "is breeder": F.IS_BREEDER,
    "is_breeder": F.IS_BREEDER,
    "retired breeder": F.RETIRED_BREEDER,
    "retired_breeder": F.RETIRED_BREEDER,
    "notes": F.NOTES,
    "dam": F.DAM_NAME,
    "dam_name": F.DAM_NAME,
    "mother": F.DAM_NAME,
    "sire": F.SIRE_NAME,
    "sire_name": F.SIRE_NAME,
    "father": F.SIRE_NAME,
}


def map_header(header: str) -> Optional[CanonicalField]:
    """Canonical field for one header, or None."""
    return HEADER_SYNONYMS.get(str(header).strip().lower())


def map_headers(headers: Iterable[str]) -> HeaderMapping:
    """
    Build the header mapping for an import.

    Args:
        headers: Original headers in sheet order

    Returns:
        Ordered dict of original header -> canonical field (or None)
    """
    mapping: HeaderMapping = {header: map_header(header) for header in headers}

    unmapped = [header for header, mapped in mapping.items() if mapped is None]
    logger.debug(
        "headers_mapped",
        mapped=len(mapping) - len(unmapped),
        unmapped=unmapped
    )
    return mapping


def canonical_mapping() -> HeaderMapping:
    """Identity mapping, used when rows already carry canonical keys."""
    return {field.value: field for field in CanonicalField}
