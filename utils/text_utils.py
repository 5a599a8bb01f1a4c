"""
Text utilities for name matching.

All name-keyed lookups in the import pipeline (species, morphs, the
parent name index, existing reptiles) go through NameKey so that
case-folding happens in exactly one place.
"""

from typing import Any, Optional


class NameKey(str):
    """
    Case-insensitive lookup key for a display name.

    - "Ball Python" -> "ball python"
    - "  REX " -> "rex"
    """

    __slots__ = ()

    def __new__(cls, name: str):
        return super().__new__(cls, str(name).strip().casefold())

    @classmethod
    def of(cls, value: Any) -> Optional["NameKey"]:
        """
        Build a key from a cell value.

        Returns:
            NameKey, or None if the value is missing or blank
        """
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        return cls(text)
