"""
Reptile catalog schemas.

Insert payloads for the tables an import writes to: species, morphs,
reptiles and growth_entries.
"""

from typing import Literal, Optional
from pydantic import Field

from models.base import BaseSchema
from models.reptile_import import Sex, Status


class SpeciesCreate(BaseSchema):
    """New species created because an import referenced it."""

    name: str = Field(..., min_length=1, max_length=200)
    scientific_name: Optional[str] = None
    care_level: Literal["beginner", "intermediate", "advanced"] = "intermediate"
    is_global: bool = False
    user_id: str


class MorphCreate(BaseSchema):
    """New morph tied to a resolved species."""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    species_id: str
    is_global: bool = False
    user_id: str


class HetTrait(BaseSchema):
    """Heterozygous trait carried by an animal."""

    trait: str = Field(..., min_length=1)
    percentage: int = Field(..., ge=0, le=100)
    source: Literal["visual_parent", "genetic_test", "breeding_odds"] = "breeding_odds"
    verified: bool = False


class ReptileCreate(BaseSchema):
    """
    Reptile insert payload.

    Parent links and location are never set on insert; same-batch
    parents are linked in a second pass.
    """

    user_id: str
    name: str = Field(..., min_length=1)
    reptile_code: Optional[str] = None
    sex: Sex
    species_id: str
    morph_id: Optional[str] = None
    visual_traits: Optional[list[str]] = None
    het_traits: Optional[list[HetTrait]] = None
    weight: float = Field(default=0, ge=0)
    length: float = Field(default=0, ge=0)
    hatch_date: Optional[str] = None
    acquisition_date: str
    status: Status = Status.ACTIVE
    notes: Optional[str] = None
    is_breeder: bool = False
    retired_breeder: bool = False
    breeding_line: Optional[str] = None
    lineage_path: Optional[str] = None
    generation: Optional[int] = Field(None, ge=0)
    original_breeder: str = ""
    location_id: Optional[str] = None
    parent_clutch_id: Optional[str] = None
    dam_id: Optional[str] = None
    sire_id: Optional[str] = None


class GrowthEntryCreate(BaseSchema):
    """Measurement recorded alongside an imported reptile."""

    reptile_id: str
    user_id: str
    date: str
    weight: float = Field(default=0, ge=0)
    length: float = Field(default=0, ge=0)
    notes: str = "Imported with reptile record."
    attachments: list[str] = Field(default_factory=list)
