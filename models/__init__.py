"""
Pydantic models and pipeline records for validation and serialization.
"""

from models.base import BaseSchema
from models.reptile_import import (
    RawRow,
    CanonicalField,
    FieldKind,
    FIELD_KINDS,
    Sex,
    Status,
    ParentRole,
    HeaderMapping,
    NormalizedRow,
    ValidationOutcome,
    ParentReference,
    ParentResolution,
    PreviewReport,
    CommitResult,
    ImportCommitRequest,
)
from models.reptile import (
    SpeciesCreate,
    MorphCreate,
    HetTrait,
    ReptileCreate,
    GrowthEntryCreate,
)

__all__ = [
    # Base
    "BaseSchema",

    # Import pipeline
    "RawRow",
    "CanonicalField",
    "FieldKind",
    "FIELD_KINDS",
    "Sex",
    "Status",
    "ParentRole",
    "HeaderMapping",
    "NormalizedRow",
    "ValidationOutcome",
    "ParentReference",
    "ParentResolution",
    "PreviewReport",
    "CommitResult",
    "ImportCommitRequest",

    # Catalog
    "SpeciesCreate",
    "MorphCreate",
    "HetTrait",
    "ReptileCreate",
    "GrowthEntryCreate",
]
