"""Tests for export header derivation."""

from bulkflow.services import export_headers


def test_id_and_model_come_first():
    headers = export_headers([{"title": "T", "model": "Work", "id": "1"}])

    assert headers == ["id", "model", "title"]


def test_unions_keys_in_first_seen_order():
    sample = [
        {"title": "A", "creator_1": "X"},
        {"title": "B", "creator_1": "Y", "creator_2": "Z"},
        {"date_created": "2020"},
    ]

    assert export_headers(sample) == ["id", "model", "title", "creator_1", "creator_2", "date_created"]


def test_keeps_numbered_object_keys():
    sample = [{"creator_1_name": "A", "creator_1_role_1": "author", "creator_1_role_2": "editor"}]

    assert export_headers(sample)[2:] == ["creator_1_name", "creator_1_role_1", "creator_1_role_2"]


def test_empty_sample():
    assert export_headers([]) == ["id", "model"]
    assert export_headers([None, {}]) == ["id", "model"]
