"""
Unit tests for preview assembly.

Run: pytest tests/unit/test_import_preview_service.py -v
"""

import pytest

from exceptions import EmptyImportError, TooManyRowsError
from services.import_preview_service import build_preview, check_batch_size
from tests.factories import ImportRowFactory


class TestCheckBatchSize:
    """Tests for check_batch_size()"""

    def test_empty_batch_raises(self):
        with pytest.raises(EmptyImportError) as exc_info:
            check_batch_size(0)

        assert exc_info.value.message == "No data found in the imported file"

    def test_at_limit_is_accepted(self):
        check_batch_size(500)

    def test_over_limit_raises(self):
        with pytest.raises(TooManyRowsError) as exc_info:
            check_batch_size(501)

        assert exc_info.value.status_code == 400
        assert "500 rows" in exc_info.value.message


class TestBuildPreview:
    """Tests for build_preview()"""

    def test_partitions_rows_into_valid_and_invalid(self):
        # Arrange
        raw_rows = [
            ImportRowFactory.create(Name="Nova"),
            ImportRowFactory.create(Name="Rex", Sex="male", Weight="lots"),
            ImportRowFactory.create(Name=None),
        ]

        # Act
        report = build_preview(raw_rows)

        # Assert
        assert report.total_rows == 3
        assert report.valid_rows == [0]
        assert report.invalid_rows == {
            1: "Weight must be a positive number",
            2: "Name is required",
        }
        assert set(report.valid_rows) | set(report.invalid_rows) == {0, 1, 2}

    def test_counts_distinct_species_and_morphs_case_insensitively(self):
        raw_rows = [
            ImportRowFactory.create(Species="Ball Python", Morph="Albino"),
            ImportRowFactory.create(Species="ball python", Morph="ALBINO"),
            ImportRowFactory.create(Species="Corn Snake", Morph=None),
        ]

        report = build_preview(raw_rows)

        assert report.species_count == 2
        assert report.morph_count == 1

    def test_max_rows_boundary(self):
        raw_rows = ImportRowFactory.create_batch(500)

        report = build_preview(raw_rows)

        assert report.total_rows == 500

    def test_too_many_rows(self):
        with pytest.raises(TooManyRowsError):
            build_preview(ImportRowFactory.create_batch(501))

    def test_no_rows(self):
        with pytest.raises(EmptyImportError):
            build_preview([])

    def test_to_dict_shape(self):
        # Arrange
        raw_rows = [
            ImportRowFactory.create(Name="Rex", Sex="male"),
            ImportRowFactory.create(Name="Nova", Sex="female"),
            ImportRowFactory.create(Name="Kid", Dam="Rex", Sire="Nova"),
            ImportRowFactory.create(Name="Solo", Sire="Rex", Colour="green"),
        ]

        headers = list(raw_rows[3].keys())

        # Act
        payload = build_preview(raw_rows, headers=headers).to_dict()

        # Assert
        assert payload["headers"][-1] == "Colour"
        assert payload["mappedHeaders"]["Hatch Date"] == "hatch_date"
        assert payload["mappedHeaders"]["Colour"] == ""
        assert payload["rows"][0]["name"] == "Rex"
        assert payload["rows"][0]["weight"] == 350.0
        assert "colour" not in payload["rows"][3]
        assert payload["totalRows"] == 4
        assert payload["speciesCount"] == 1
        assert payload["morphCount"] == 1
        assert payload["parentRelationships"] == {
            "validParents": {"3": {"sire": "Rex"}},
            "invalidParents": {
                "2": {
                    "dam": "Rex",
                    "sire": "Nova",
                    "error": "Dam 'Rex' is not female (sex: male)",
                },
            },
        }

    def test_invalid_rows_keys_are_strings(self):
        payload = build_preview([ImportRowFactory.create(Name=None)]).to_dict()

        assert payload["invalidRows"] == {"0": "Name is required"}
        assert payload["validRows"] == []
