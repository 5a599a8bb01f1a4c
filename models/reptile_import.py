"""
Reptile import models.

Data structures passed between the stages of the bulk import pipeline:
raw spreadsheet rows -> normalized rows -> validation / parent resolution
-> preview report, and normalized rows + selection -> commit result.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional
import math

from pydantic import Field

from models.base import BaseSchema


# One spreadsheet line: original header -> untyped cell value (None when blank)
RawRow = dict[str, Any]


class CanonicalField(str, Enum):
    """Attribute names the import pipeline understands."""
    NAME = "name"
    REPTILE_CODE = "reptile_code"
    SEX = "sex"
    SPECIES = "species"
    MORPH = "morph"
    HATCH_DATE = "hatch_date"
    ACQUISITION_DATE = "acquisition_date"
    WEIGHT = "weight"
    LENGTH = "length"
    VISUAL_TRAITS = "visual_traits"
    HET_TRAITS = "het_traits"
    ORIGINAL_BREEDER = "original_breeder"
    STATUS = "status"
    BREEDING_LINE = "breeding_line"
    LINEAGE_PATH = "lineage_path"
    GENERATION = "generation"
    IS_BREEDER = "is_breeder"
    RETIRED_BREEDER = "retired_breeder"
    NOTES = "notes"
    DAM_NAME = "dam_name"
    SIRE_NAME = "sire_name"


class FieldKind(str, Enum):
    """Declared value kind of a canonical field."""
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING_LIST = "string_list"
    DATE_STRING = "date_string"


FIELD_KINDS: dict[CanonicalField, FieldKind] = {
    CanonicalField.NAME: FieldKind.STRING,
    CanonicalField.REPTILE_CODE: FieldKind.STRING,
    CanonicalField.SEX: FieldKind.STRING,
    CanonicalField.SPECIES: FieldKind.STRING,
    CanonicalField.MORPH: FieldKind.STRING,
    CanonicalField.HATCH_DATE: FieldKind.DATE_STRING,
    CanonicalField.ACQUISITION_DATE: FieldKind.DATE_STRING,
    CanonicalField.WEIGHT: FieldKind.NUMBER,
    CanonicalField.LENGTH: FieldKind.NUMBER,
    CanonicalField.VISUAL_TRAITS: FieldKind.STRING_LIST,
    CanonicalField.HET_TRAITS: FieldKind.STRING_LIST,
    CanonicalField.ORIGINAL_BREEDER: FieldKind.STRING,
    CanonicalField.STATUS: FieldKind.STRING,
    CanonicalField.BREEDING_LINE: FieldKind.STRING,
    CanonicalField.LINEAGE_PATH: FieldKind.STRING,
    CanonicalField.GENERATION: FieldKind.NUMBER,
    CanonicalField.IS_BREEDER: FieldKind.BOOLEAN,
    CanonicalField.RETIRED_BREEDER: FieldKind.BOOLEAN,
    CanonicalField.NOTES: FieldKind.STRING,
    CanonicalField.DAM_NAME: FieldKind.STRING,
    CanonicalField.SIRE_NAME: FieldKind.STRING,
}


class Sex(str, Enum):
    """Reptile sex."""
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class Status(str, Enum):
    """Reptile lifecycle status."""
    ACTIVE = "active"
    SOLD = "sold"
    DECEASED = "deceased"


class ParentRole(str, Enum):
    """Which parent a reference names."""
    DAM = "dam"
    SIRE = "sire"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def required_sex(self) -> Sex:
        return Sex.FEMALE if self is ParentRole.DAM else Sex.MALE


# Original header -> canonical field, or None when the header is not recognised
HeaderMapping = dict[str, Optional[CanonicalField]]


# ===================
# PIPELINE RECORDS
# ===================

@dataclass(frozen=True)
class NormalizedRow:
    """
    One spreadsheet line after type conversion.

    `index` is the 0-based position in the original sheet and defines
    the ordering used by parent resolution and commit.
    """
    index: int
    values: Mapping[CanonicalField, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, name: CanonicalField, default: Any = None) -> Any:
        return self.values.get(name, default)

    def text(self, name: CanonicalField) -> str:
        """Field value as a stripped string ('' when absent)."""
        value = self.values.get(name)
        if value is None:
            return ""
        return str(value).strip()

    def has(self, name: CanonicalField) -> bool:
        """True when the field is present and not blank."""
        value = self.values.get(name)
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip() != ""
        if isinstance(value, list):
            return len(value) > 0
        return True

    def to_dict(self) -> dict:
        """Serialize for the preview payload (non-finite numbers become null)."""
        out: dict[str, Any] = {}
        for key, value in self.values.items():
            if isinstance(value, float) and not math.isfinite(value):
                value = None
            out[key.value] = value
        return out


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of checking one row against the field rules."""
    row_index: int
    valid: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class ParentReference:
    """Dam/sire names carried by a row."""
    row_index: int
    dam_name: Optional[str] = None
    sire_name: Optional[str] = None

    def named(self) -> list[tuple[ParentRole, str]]:
        refs = []
        if self.dam_name:
            refs.append((ParentRole.DAM, self.dam_name))
        if self.sire_name:
            refs.append((ParentRole.SIRE, self.sire_name))
        return refs


@dataclass(frozen=True)
class ParentResolution:
    """Outcome of checking a row's parent references against the batch."""
    row_index: int
    valid: bool
    dam: Optional[str] = None
    sire: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {}
        if self.dam:
            out["dam"] = self.dam
        if self.sire:
            out["sire"] = self.sire
        if not self.valid:
            out["error"] = self.error
        return out


@dataclass
class PreviewReport:
    """Dry-run description of an import batch."""
    headers: list[str]
    mapping: HeaderMapping
    rows: list[NormalizedRow]
    valid_rows: list[int] = field(default_factory=list)
    invalid_rows: dict[int, str] = field(default_factory=dict)
    species_count: int = 0
    morph_count: int = 0
    parent_resolutions: list[ParentResolution] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict:
        """Convert to the preview API response format."""
        return {
            "headers": self.headers,
            "mappedHeaders": {
                header: (mapped.value if mapped else "")
                for header, mapped in self.mapping.items()
            },
            "rows": [row.to_dict() for row in self.rows],
            "validRows": self.valid_rows,
            "invalidRows": {str(k): v for k, v in self.invalid_rows.items()},
            "speciesCount": self.species_count,
            "morphCount": self.morph_count,
            "totalRows": self.total_rows,
            "parentRelationships": {
                "validParents": {
                    str(r.row_index): r.to_dict()
                    for r in self.parent_resolutions if r.valid
                },
                "invalidParents": {
                    str(r.row_index): r.to_dict()
                    for r in self.parent_resolutions if not r.valid
                },
            },
        }


@dataclass
class CommitResult:
    """
    Outcome of committing a selection of rows.

    `success` means every selected row was attempted; check `errors`
    for the rows that failed.
    """
    success: bool = False
    reptiles: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    species_added: list[dict] = field(default_factory=list)
    morphs_added: list[dict] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "reptiles": self.reptiles,
            "errors": self.errors,
            "speciesAdded": self.species_added,
            "morphsAdded": self.morphs_added,
        }


# ===================
# API SCHEMAS
# ===================

class ImportCommitRequest(BaseSchema):
    """Body of the commit call: the previewed rows plus the chosen indices."""

    rows: list[dict[str, Any]] = Field(
        ...,
        description="Normalized rows as echoed by the preview"
    )
    selected_rows: list[int] = Field(
        ...,
        alias="selectedRows",
        description="Indices into rows to import"
    )
    file_name: Optional[str] = Field(
        None,
        alias="fileName",
        max_length=255,
        description="Original file name, recorded in the import log"
    )
