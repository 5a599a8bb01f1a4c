"""
Taxonomy reconciliation for reptile imports.

Seeds a case-insensitive species/morph index from the store (the
user's own entries plus global ones), creates whatever the selected
rows reference but the store lacks, and grows the index as it goes.
The index never shrinks during a commit run.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError, TaxonomyReconciliationError
from models.reptile import MorphCreate, SpeciesCreate
from models.reptile_import import CanonicalField, NormalizedRow
from utils.text_utils import NameKey

logger = structlog.get_logger(__name__)


class TaxonomyIndex:
    """
    Name -> id maps for species and morphs.

    Morphs are keyed by (species_id, morph name) since the same morph
    name can exist under several species.
    """

    def __init__(self):
        self._species: dict[NameKey, str] = {}
        self._species_names: dict[str, str] = {}
        self._morphs: dict[tuple[str, NameKey], str] = {}
        self._morph_names: dict[str, str] = {}

    def add_species(self, species_id: str, name: str) -> None:
        self._species[NameKey(name)] = species_id
        self._species_names[species_id] = name

    def add_morph(self, species_id: str, morph_id: str, name: str) -> None:
        self._morphs[(species_id, NameKey(name))] = morph_id
        self._morph_names[morph_id] = name

    def species_id(self, name) -> Optional[str]:
        key = NameKey.of(name)
        return self._species.get(key) if key else None

    def species_name(self, species_id: str) -> Optional[str]:
        return self._species_names.get(species_id)

    def morph_id(self, species_id: Optional[str], name) -> Optional[str]:
        key = NameKey.of(name)
        if not species_id or key is None:
            return None
        return self._morphs.get((species_id, key))

    def morph_name(self, morph_id: str) -> Optional[str]:
        return self._morph_names.get(morph_id)

    @property
    def species_count(self) -> int:
        return len(self._species)

    @property
    def morph_count(self) -> int:
        return len(self._morphs)


@dataclass
class TaxonomyReconciliation:
    """Index after reconciliation plus what had to be created."""
    index: TaxonomyIndex
    species_added: list[dict] = field(default_factory=list)
    morphs_added: list[dict] = field(default_factory=list)


class TaxonomyService:
    """
    Species and morph lookup/creation for imports.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.species_table = "species"
        self.morphs_table = "morphs"

    # ===================
    # READ OPERATIONS
    # ===================

    def load_index(self, user_id: str) -> TaxonomyIndex:
        """
        Seed an index with the user's and global species/morphs.

        Raises:
            DatabaseError: If either listing fails
        """
        visible = f"user_id.eq.{user_id},is_global.eq.true"
        index = TaxonomyIndex()

        try:
            species = (
                self.db.table(self.species_table)
                .select("id, name")
                .or_(visible)
                .execute()
            )
            morphs = (
                self.db.table(self.morphs_table)
                .select("id, name, species_id")
                .or_(visible)
                .execute()
            )
        except Exception as e:
            logger.error("taxonomy_load_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        for row in species.data or []:
            index.add_species(row["id"], row["name"])
        for row in morphs.data or []:
            index.add_morph(row["species_id"], row["id"], row["name"])

        logger.info(
            "taxonomy_loaded",
            user_id=user_id,
            species=index.species_count,
            morphs=index.morph_count
        )
        return index

    # ===================
    # RECONCILIATION
    # ===================

    def reconcile(
        self,
        user_id: str,
        rows: list[NormalizedRow],
        index: Optional[TaxonomyIndex] = None,
    ) -> TaxonomyReconciliation:
        """
        Create the species and morphs the selected rows need.

        Args:
            user_id: Acting user
            rows: Rows selected for commit, in sheet order
            index: Pre-seeded index (loaded from the store when None)

        Returns:
            TaxonomyReconciliation

        Raises:
            TaxonomyReconciliationError: If a species/morph insert fails
        """
        if index is None:
            index = self.load_index(user_id)

        result = TaxonomyReconciliation(index=index)
        self._create_missing_species(user_id, rows, result)
        self._create_missing_morphs(user_id, rows, result)

        logger.info(
            "taxonomy_reconciled",
            user_id=user_id,
            species_added=len(result.species_added),
            morphs_added=len(result.morphs_added)
        )
        return result

    def _create_missing_species(
        self,
        user_id: str,
        rows: list[NormalizedRow],
        result: TaxonomyReconciliation,
    ) -> None:
        """Batch-insert every distinct species name the index lacks."""
        pending: dict[NameKey, str] = {}
        for row in rows:
            name = row.text(CanonicalField.SPECIES)
            key = NameKey.of(name)
            if key is None or key in pending or result.index.species_id(name):
                continue
            pending[key] = name

        if not pending:
            return

        payload = [
            SpeciesCreate(
                name=name,
                care_level=settings.default_species_care_level,
                user_id=user_id,
            ).model_dump(mode="json")
            for name in pending.values()
        ]

        logger.info("creating_species", user_id=user_id, count=len(payload))

        try:
            response = self.db.table(self.species_table).insert(payload).execute()
        except Exception as e:
            logger.error("create_species_failed", user_id=user_id, error=str(e))
            raise TaxonomyReconciliationError("species", str(e))

        for created in response.data or []:
            result.index.add_species(created["id"], created["name"])
            result.species_added.append({
                "id": created["id"],
                "user_id": user_id,
                "name": created["name"],
                "scientific_name": created.get("scientific_name"),
                "care_level": created.get("care_level", settings.default_species_care_level),
            })
            logger.info("species_created", species_id=created["id"], name=created["name"])

    def _create_missing_morphs(
        self,
        user_id: str,
        rows: list[NormalizedRow],
        result: TaxonomyReconciliation,
    ) -> None:
        """Insert each (species, morph) pair the index lacks, one at a time."""
        for row in rows:
            morph_name = row.text(CanonicalField.MORPH)
            if not morph_name:
                continue

            species_id = result.index.species_id(row.get(CanonicalField.SPECIES))
            if not species_id:
                # Surfaced later as a row error by the committer
                logger.debug("morph_species_unresolved", morph=morph_name)
                continue

            if result.index.morph_id(species_id, morph_name):
                continue

            payload = MorphCreate(
                name=morph_name,
                species_id=species_id,
                user_id=user_id,
            ).model_dump(mode="json")

            try:
                response = self.db.table(self.morphs_table).insert(payload).execute()
            except Exception as e:
                logger.error("create_morph_failed", morph=morph_name, error=str(e))
                raise TaxonomyReconciliationError("morph", str(e))

            if not response.data:
                continue

            created = response.data[0]
            result.index.add_morph(species_id, created["id"], created["name"])
            result.morphs_added.append({
                "id": created["id"],
                "user_id": user_id,
                "name": created["name"],
                "species_id": species_id,
                "description": "",
                "species": {"name": result.index.species_name(species_id)},
            })
            logger.info("morph_created", morph_id=created["id"], name=created["name"])


# Singleton instance
_taxonomy_service: Optional[TaxonomyService] = None


def get_taxonomy_service() -> TaxonomyService:
    """Get or create TaxonomyService instance."""
    global _taxonomy_service
    if _taxonomy_service is None:
        _taxonomy_service = TaxonomyService()
    return _taxonomy_service
