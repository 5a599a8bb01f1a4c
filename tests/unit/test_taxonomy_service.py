"""
Unit tests for TaxonomyService.

Run: pytest tests/unit/test_taxonomy_service.py -v
"""

import pytest

from exceptions import DatabaseError, TaxonomyReconciliationError
from services.taxonomy_service import TaxonomyIndex, get_taxonomy_service
from tests.factories import make_row


class TestTaxonomyIndex:
    """Tests for TaxonomyIndex lookups"""

    def test_species_lookup_is_case_insensitive(self):
        index = TaxonomyIndex()
        index.add_species("sp-1", "Ball Python")

        assert index.species_id(" ball PYTHON ") == "sp-1"
        assert index.species_name("sp-1") == "Ball Python"

    def test_morphs_are_scoped_by_species(self):
        index = TaxonomyIndex()
        index.add_morph("sp-1", "mo-1", "Albino")

        assert index.morph_id("sp-1", "albino") == "mo-1"
        assert index.morph_id("sp-2", "albino") is None
        assert index.morph_id(None, "albino") is None

    def test_blank_names_resolve_to_none(self):
        index = TaxonomyIndex()
        index.add_species("sp-1", "Ball Python")

        assert index.species_id(None) is None
        assert index.species_id("  ") is None


class TestTaxonomyServiceLoadIndex:
    """Tests for TaxonomyService.load_index()"""

    def test_loads_own_and_global_entries_only(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("species", [
            {"id": "sp-1", "name": "Ball Python", "is_global": True, "user_id": None},
            {"id": "sp-2", "name": "Corn Snake", "is_global": False, "user_id": "user-1"},
            {"id": "sp-3", "name": "Boa", "is_global": False, "user_id": "someone-else"},
        ])

        # Act
        index = get_taxonomy_service().load_index("user-1")

        # Assert
        assert index.species_id("ball python") == "sp-1"
        assert index.species_id("corn snake") == "sp-2"
        assert index.species_id("boa") is None

    def test_store_failure_raises_database_error(self, mock_db, mock_supabase):
        mock_supabase.fail_on("species", "select")

        with pytest.raises(DatabaseError):
            get_taxonomy_service().load_index("user-1")


class TestTaxonomyServiceReconcile:
    """Tests for TaxonomyService.reconcile()"""

    def test_creates_missing_species_once(self, mock_db, catalog, user_id):
        # Arrange
        rows = [
            make_row(0, name="A", species="Corn Snake"),
            make_row(1, name="B", species="corn snake"),
            make_row(2, name="C", species="Ball Python"),
        ]

        # Act
        result = get_taxonomy_service().reconcile(user_id, rows)

        # Assert
        assert [s["name"] for s in result.species_added] == ["Corn Snake"]
        created = catalog.rows("species")[-1]
        assert created["name"] == "Corn Snake"
        assert created["care_level"] == "intermediate"
        assert created["is_global"] is False
        assert created["user_id"] == user_id
        assert result.index.species_id("CORN SNAKE") == created["id"]

    def test_creates_missing_morph_under_resolved_species(self, mock_db, catalog, user_id):
        rows = [
            make_row(0, name="A", species="Ball Python", morph="Albino"),
            make_row(1, name="B", species="Ball Python", morph="Pied"),
            make_row(2, name="C", species="Ball Python", morph="pied"),
        ]

        result = get_taxonomy_service().reconcile(user_id, rows)

        assert [m["name"] for m in result.morphs_added] == ["Pied"]
        assert result.morphs_added[0]["species"] == {"name": "Ball Python"}
        assert result.morphs_added[0]["species_id"] == "sp-bp"
        assert result.index.morph_id("sp-bp", "PIED") == result.morphs_added[0]["id"]

    def test_index_only_grows(self, mock_db, catalog, user_id):
        service = get_taxonomy_service()
        index = service.load_index(user_id)
        before = (index.species_count, index.morph_count)

        result = service.reconcile(
            user_id,
            [make_row(0, name="A", species="Leopard Gecko", morph="Tremper")],
            index=index,
        )

        assert result.index is index
        assert index.species_count == before[0] + 1
        assert index.morph_count == before[1] + 1

    def test_species_insert_failure_is_fatal(self, mock_db, catalog, user_id):
        catalog.fail_on("species", "insert")

        with pytest.raises(TaxonomyReconciliationError) as exc_info:
            get_taxonomy_service().reconcile(user_id, [make_row(0, name="A", species="Boa")])

        assert exc_info.value.status_code == 500
        assert exc_info.value.message.startswith("Import failed")

    def test_morph_insert_failure_is_fatal(self, mock_db, catalog, user_id):
        catalog.fail_on("morphs", "insert")

        with pytest.raises(TaxonomyReconciliationError):
            get_taxonomy_service().reconcile(
                user_id,
                [make_row(0, name="A", species="Ball Python", morph="Pied")],
            )
