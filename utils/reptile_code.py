"""
Reptile code generation.

Format:  SEQ-SPECIESCODE-MORPH5-YY-SEX
         e.g. 00001-BP-ALBIN-24-M

Pure functions; the caller threads the growing list of existing
records through successive calls so sequence numbers never repeat
within one commit run.
"""

from datetime import date, datetime
from typing import Optional, Sequence
import structlog

from utils.date_utils import parse_date

logger = structlog.get_logger(__name__)

DEFAULT_SEQUENCE_WIDTH = 5
MORPH_CODE_LENGTH = 5
DEFAULT_MORPH_NAME = "Normal"

SEX_CODES = {
    "male": "M",
    "female": "F",
}


def get_species_code(species_name: str) -> str:
    """
    Initials of each space-separated word, upper-cased.

    "Ball Python" -> "BP", "Crested gecko" -> "CG"
    """
    return "".join(word[0] for word in species_name.split() if word).upper()


def get_morph_code(morph_name: Optional[str]) -> str:
    """First word of the morph name, upper-cased, truncated to 5 characters."""
    words = (morph_name or "").split()
    first = words[0] if words else DEFAULT_MORPH_NAME
    return first.upper()[:MORPH_CODE_LENGTH]


def get_sex_code(sex: Optional[str]) -> str:
    """M / F, anything else U."""
    return SEX_CODES.get(str(sex or "").strip().lower(), "U")


def get_year_code(hatch_date: Optional[str], today: Optional[date] = None) -> str:
    """Two-digit hatch year, or the current year when absent/unparseable."""
    parsed = parse_date(hatch_date)
    year = parsed.year if parsed else (today or datetime.now().date()).year

    return f"{year % 100:02d}"


def generate_reptile_code(
    existing_reptiles: Sequence,
    species_code: str,
    morph_name: Optional[str],
    hatch_date: Optional[str],
    sex: Optional[str],
    sequence_width: int = DEFAULT_SEQUENCE_WIDTH,
    today: Optional[date] = None,
) -> str:
    """
    Build the canonical code for a new reptile.

    Args:
        existing_reptiles: Records that already hold a sequence number
                           (store records plus those created earlier in this run)
        species_code: Output of get_species_code()
        morph_name: Morph display name (None falls back to "Normal")
        hatch_date: Hatch date string, may be None
        sex: male / female / unknown
        sequence_width: Zero-pad width of the sequence segment
        today: Override for the current date (year fallback)

    Returns:
        Code such as "00001-BP-ALBIN-24-M"
    """
    sequence = str(len(existing_reptiles) + 1).zfill(sequence_width)

    code = "-".join([
        sequence,
        species_code,
        get_morph_code(morph_name),
        get_year_code(hatch_date, today=today),
        get_sex_code(sex),
    ])

    logger.debug("reptile_code_generated", code=code)
    return code
