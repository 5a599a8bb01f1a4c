"""
Import commit.

Writes the selected rows of a previewed batch: reconciles taxonomy,
then creates reptiles strictly in sheet order, generating codes from
a growing list of existing records, and finally links same-batch
parents. Per-row failures are collected, never raised.
"""

from typing import Any, Optional
import math
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError
from models.reptile import GrowthEntryCreate, ReptileCreate
from models.reptile_import import (
    CanonicalField,
    CommitResult,
    NormalizedRow,
    ParentRole,
    Sex,
    Status,
)
from parsers.header_mapper import canonical_mapping
from parsers.row_normalizer import normalize_rows, parse_boolean, parse_het_traits
from services.parent_resolution_service import extract_parent_reference
from services.taxonomy_service import TaxonomyIndex, get_taxonomy_service
from utils.date_utils import parse_date
from utils.reptile_code import generate_reptile_code, get_species_code
from utils.text_utils import NameKey

logger = structlog.get_logger(__name__)

F = CanonicalField


class ImportCommitService:
    """
    Creates reptiles (and their first growth entry) from import rows.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "reptiles"
        self.growth_table = "growth_entries"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_existing_reptiles(self, user_id: str) -> list[dict]:
        """
        All of the user's reptiles (id, name, code).

        Raises:
            DatabaseError: If the listing fails
        """
        try:
            response = (
                self.db.table(self.table)
                .select("id, name, reptile_code")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("existing_reptiles_fetch_failed", user_id=user_id, error=str(e))
            raise DatabaseError("select", str(e))

        return list(response.data or [])

    def find_reptile_by_name(self, user_id: str, name: str) -> Optional[dict]:
        """
        Reptile with exactly this name for the user.

        Returns:
            Record dict, or None if not found
        """
        try:
            response = (
                self.db.table(self.table)
                .select("id, name")
                .eq("user_id", user_id)
                .eq("name", name)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("reptile_lookup_failed", name=name, error=str(e))
            raise DatabaseError("select", str(e))

        if not response.data:
            return None
        return response.data[0]

    # ===================
    # COMMIT
    # ===================

    def commit(
        self,
        user_id: str,
        rows: list[dict[str, Any]],
        selected_rows: list[int],
    ) -> CommitResult:
        """
        Import the selected rows.

        Args:
            user_id: Acting user
            rows: Normalized rows as echoed by the preview (canonical keys)
            selected_rows: Indices into rows to import

        Returns:
            CommitResult; success is True once every selected row was attempted

        Raises:
            DatabaseError: If the existing records cannot be listed
            TaxonomyReconciliationError: If species/morph creation fails
        """
        result = CommitResult()
        normalized = normalize_rows(rows, canonical_mapping())
        selected = self._select_rows(normalized, selected_rows, result)

        logger.info(
            "import_commit_started",
            user_id=user_id,
            total=len(normalized),
            selected=len(selected)
        )

        existing = self.get_existing_reptiles(user_id)

        taxonomy = get_taxonomy_service().reconcile(user_id, selected)
        result.species_added = taxonomy.species_added
        result.morphs_added = taxonomy.morphs_added

        created: dict[int, dict] = {}
        for row in selected:
            record = self._commit_row(user_id, row, taxonomy.index, existing, result)
            if record is not None:
                created[row.index] = record

        self._link_parents(selected, created, result)

        result.success = True
        logger.info(
            "import_commit_complete",
            user_id=user_id,
            created=len(result.reptiles),
            errors=len(result.errors),
            species_added=len(result.species_added),
            morphs_added=len(result.morphs_added)
        )
        return result

    def _select_rows(
        self,
        rows: list[NormalizedRow],
        selected_rows: list[int],
        result: CommitResult,
    ) -> list[NormalizedRow]:
        """Selected rows in sheet order; unknown indices become row errors."""
        picked = []
        for index in sorted(set(selected_rows)):
            if 0 <= index < len(rows):
                picked.append(rows[index])
            else:
                result.add_error(f"Row {index + 1} does not exist, skipping")
        return picked

    def _commit_row(
        self,
        user_id: str,
        row: NormalizedRow,
        index: TaxonomyIndex,
        existing: list[dict],
        result: CommitResult,
    ) -> Optional[dict]:
        """
        Create one reptile.

        Returns the stored record, or None when the row was skipped or
        the insert failed. A record whose growth entry failed is stored
        but left out of the result. `existing` grows by every stored record.
        """
        name = row.text(F.NAME)

        species_id = index.species_id(row.get(F.SPECIES))
        if not species_id:
            result.add_error(f"Species not found for reptile {name}")
            logger.warning("reptile_row_failed", row=row.index, reason="species_not_found")
            return None

        try:
            if self.find_reptile_by_name(user_id, name):
                result.add_error(f"Reptile with name {name} already exists, skipping")
                logger.warning("reptile_row_failed", row=row.index, reason="duplicate_name")
                return None

            morph_id = index.morph_id(species_id, row.get(F.MORPH))
            reptile_code = row.text(F.REPTILE_CODE) or generate_reptile_code(
                existing,
                get_species_code(index.species_name(species_id) or ""),
                index.morph_name(morph_id) if morph_id else None,
                row.text(F.HATCH_DATE) or None,
                row.text(F.SEX),
                sequence_width=settings.reptile_code_sequence_width,
            )

            payload = self._build_reptile(user_id, row, species_id, morph_id, reptile_code)
            record = self._insert_reptile(payload)
        except (DatabaseError, ValueError) as e:
            result.add_error(f"Error processing {name}: {e}")
            logger.warning("reptile_row_failed", row=row.index, error=str(e))
            return None

        # Stored records keep their sequence number even if a later step fails
        existing.append(record)
        logger.info("reptile_created", reptile_id=record.get("id"), code=record.get("reptile_code"))

        if payload.weight or payload.length:
            try:
                self._insert_growth_entry(user_id, record, payload)
            except (DatabaseError, ValueError) as e:
                result.add_error(f"Error processing {name}: {e}")
                logger.warning("growth_entry_failed", reptile_id=record.get("id"), error=str(e))
                return record

        result.reptiles.append(record)
        return record

    def _link_parents(
        self,
        rows: list[NormalizedRow],
        created: dict[int, dict],
        result: CommitResult,
    ) -> None:
        """Set dam_id/sire_id on created records whose parents were created in this run."""
        by_name: dict[NameKey, str] = {}
        for record in created.values():
            key = NameKey.of(record.get("name"))
            if key is not None:
                by_name.setdefault(key, record["id"])

        for row in rows:
            record = created.get(row.index)
            reference = extract_parent_reference(row)
            if record is None or reference is None:
                continue

            update: dict[str, str] = {}
            for role, parent_name in reference.named():
                parent_id = by_name.get(NameKey(parent_name))
                if parent_id:
                    column = "dam_id" if role is ParentRole.DAM else "sire_id"
                    update[column] = parent_id

            if not update:
                continue

            try:
                self.db.table(self.table).update(update).eq("id", record["id"]).execute()
            except Exception as e:
                result.add_error(f"Error setting parents for {row.text(F.NAME)}: {e}")
                logger.warning("parent_link_failed", reptile_id=record["id"], error=str(e))
                continue

            record.update(update)
            logger.debug("parents_linked", reptile_id=record["id"], **update)

    # ===================
    # WRITE HELPERS
    # ===================

    def _build_reptile(
        self,
        user_id: str,
        row: NormalizedRow,
        species_id: str,
        morph_id: Optional[str],
        reptile_code: str,
    ) -> ReptileCreate:
        return ReptileCreate(
            user_id=user_id,
            name=row.text(F.NAME),
            reptile_code=reptile_code or None,
            sex=Sex(row.text(F.SEX).lower()),
            species_id=species_id,
            morph_id=morph_id,
            visual_traits=row.get(F.VISUAL_TRAITS),
            het_traits=parse_het_traits(row.get(F.HET_TRAITS)),
            weight=row.get(F.WEIGHT) or 0,
            length=row.get(F.LENGTH) or 0,
            hatch_date=_iso_date(row.get(F.HATCH_DATE)),
            acquisition_date=_iso_date(row.get(F.ACQUISITION_DATE)),
            status=Status(row.text(F.STATUS).lower() or Status.ACTIVE.value),
            notes=row.text(F.NOTES) or None,
            is_breeder=parse_boolean(row.get(F.IS_BREEDER, False)),
            retired_breeder=parse_boolean(row.get(F.RETIRED_BREEDER, False)),
            breeding_line=row.text(F.BREEDING_LINE) or None,
            lineage_path=row.text(F.LINEAGE_PATH) or None,
            generation=_generation(row.get(F.GENERATION)),
            original_breeder=row.text(F.ORIGINAL_BREEDER),
        )

    def _insert_reptile(self, payload: ReptileCreate) -> dict:
        try:
            response = (
                self.db.table(self.table)
                .insert(payload.model_dump(mode="json"))
                .execute()
            )
        except Exception as e:
            raise DatabaseError("insert", str(e))

        if not response.data:
            raise DatabaseError("insert", "no record returned")
        return response.data[0]

    def _insert_growth_entry(self, user_id: str, record: dict, payload: ReptileCreate) -> None:
        entry = GrowthEntryCreate(
            reptile_id=record["id"],
            user_id=user_id,
            date=payload.hatch_date or payload.acquisition_date,
            weight=payload.weight,
            length=payload.length,
        )

        try:
            self.db.table(self.growth_table).insert(entry.model_dump(mode="json")).execute()
        except Exception as e:
            raise DatabaseError("insert", str(e))


def _generation(value: Any) -> Optional[int]:
    """
    Generation as a whole number.

    Raises:
        ValueError: If the value is non-finite, fractional or negative
    """
    if value is None:
        return None
    number = float(value)
    if not math.isfinite(number) or not number.is_integer() or number < 0:
        raise ValueError(f"Generation must be a non-negative integer, got {value}")
    return int(number)


def _iso_date(value: Any) -> Optional[str]:
    """ISO form of a date cell; unparseable text is passed through."""
    parsed = parse_date(value)
    if parsed:
        return parsed.isoformat()
    if value is None:
        return None
    return str(value).strip() or None


# Singleton instance
_import_commit_service: Optional[ImportCommitService] = None


def get_import_commit_service() -> ImportCommitService:
    """Get or create ImportCommitService instance."""
    global _import_commit_service
    if _import_commit_service is None:
        _import_commit_service = ImportCommitService()
    return _import_commit_service
