"""Tests for row classification."""

from unittest.mock import Mock

import pytest

from bulkflow.models import FieldMappingConfig, ObjectType, freeze_row
from bulkflow.services import FieldMappingResolver, RowClassifier


def rows(*dicts):
    return [freeze_row(d) for d in dicts]


def classifier_for(data, model_field_mappings=None) -> RowClassifier:
    resolver = FieldMappingResolver(FieldMappingConfig(), model_field_mappings)
    return RowClassifier(data, resolver)


class TestRowClassifier:
    def test_partitions_every_row_once(self):
        data = rows(
            {"model": "Collection", "source_identifier": "c1"},
            {"model": "FileSet", "source_identifier": "fs1"},
            {"model": "GenericWork", "source_identifier": "w1"},
            {"model": "", "source_identifier": "w2"},
            {"model": "collection", "source_identifier": "c2"},
        )
        classifier = classifier_for(data)

        buckets = [classifier.collections, classifier.works, classifier.file_sets]
        all_ids = [r.source_identifier for bucket in buckets for r in bucket]

        assert sorted(all_ids) == ["c1", "c2", "fs1", "w1", "w2"]
        assert [r.source_identifier for r in classifier.collections] == ["c1", "c2"]
        assert [r.source_identifier for r in classifier.works] == ["w1", "w2"]
        assert [r.source_identifier for r in classifier.file_sets] == ["fs1"]

    @pytest.mark.parametrize("value", ["Collection", "COLLECTION", "cOllEcTiOn"])
    def test_matches_collection_case_insensitively(self, value):
        classifier = classifier_for(rows({"model": value}))

        assert len(classifier.collections) == 1
        assert classifier.collections[0].type == ObjectType.COLLECTION

    @pytest.mark.parametrize("value", ["FileSet", "FILESET", "fileset"])
    def test_matches_file_set_case_insensitively(self, value):
        classifier = classifier_for(rows({"model": value}))

        assert len(classifier.file_sets) == 1

    def test_rows_without_a_model_are_works(self):
        data = rows({"title": "No model column"}, {"model": "  ", "title": "Blank model"})
        classifier = classifier_for(data)

        assert len(classifier.works) == 2
        assert classifier.collections == []
        assert classifier.file_sets == []

    def test_uses_model_field_mappings_in_order(self):
        data = rows(
            {"map_1": "Collection", "title": "C1", "map_2": "", "model": ""},
            {"map_2": "Collection", "title": "C2", "map_1": "", "model": ""},
            {"model": "Collection", "title": "C3", "map_1": "", "map_2": ""},
        )
        classifier = classifier_for(data, ["map_1", "map_2"])

        assert [r["title"] for r in classifier.collections] == ["C1", "C2", "C3"]

    def test_ignores_unmapped_model_columns(self):
        data = rows(
            {"map_1": "Collection", "title": "C1", "model": ""},
            {"model": "Collection", "title": "C3", "map_1": ""},
        )
        classifier = classifier_for(data)

        assert [r["title"] for r in classifier.collections] == ["C3"]
        assert [r["title"] for r in classifier.works] == ["C1"]

    def test_first_populated_mapping_wins(self):
        data = rows({"work_type": "FileSet", "model": "Collection"})
        classifier = classifier_for(data, ["work_type"])

        assert len(classifier.file_sets) == 1
        assert classifier.collections == []

    def test_reads_identifier(self):
        classifier = classifier_for(rows({"source_identifier": " abc "}, {"source_identifier": ""}))

        assert [r.source_identifier for r in classifier.works] == ["abc", None]

    def test_keeps_source_positions(self):
        data = rows({"model": "Collection"}, {"model": ""}, {"model": "Collection"})
        classifier = classifier_for(data)

        assert [r.index for r in classifier.collections] == [0, 2]
        assert [r.index for r in classifier.works] == [1]

    def test_classifies_lazily_and_once(self):
        source = Mock(return_value=rows({"model": "Collection"}, {"model": ""}))
        classifier = classifier_for(source)

        assert not classifier.is_built
        source.assert_not_called()

        classifier.collections
        classifier.works
        classifier.build_records()

        assert classifier.is_built
        source.assert_called_once_with()

    def test_rows_are_read_only(self):
        classifier = classifier_for(rows({"model": "Collection"}))

        with pytest.raises(TypeError):
            classifier.collections[0].row["model"] = "Work"
