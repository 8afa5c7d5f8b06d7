"""Tests for correction files and corrected uploads."""

import csv
import os
from types import SimpleNamespace

import pytest

from bulkflow.importer import ImportOrchestrator
from bulkflow.models import Entry, EntryError, EntryStatus, ObjectType, TenantContext
from bulkflow.services import recovery


@pytest.fixture
def failed_importer(make_importer, good_csv):
    return make_importer(good_csv, name="failed.csv")


@pytest.fixture
def orchestrator(failed_importer, entry_store, dispatcher, in_tmp):
    return ImportOrchestrator(failed_importer, entry_store, dispatcher)


@pytest.fixture
def upload(tmp_path, ok_csv):
    path = tmp_path / "uploads" / "ok.csv"
    path.parent.mkdir(parents=True)
    path.write_text(ok_csv)
    return SimpleNamespace(path=str(path), original_filename="ok.csv")


def add_entry(store, title, type=ObjectType.WORK, status=EntryStatus.SUCCEEDED, importer_id=7):
    entry = Entry(
        identifier=title.lower(),
        type=type,
        importerexporter_id=importer_id,
        raw_metadata={"title": title, "source_identifier": title.lower()},
        status=status,
    )
    if status == EntryStatus.FAILED:
        entry.error = EntryError(error_class="RuntimeError", message="boom")
    return store.add(entry)


class TestWriteErroredEntriesFile:
    @pytest.fixture(autouse=True)
    def entries(self, entry_store):
        add_entry(entry_store, "Failed", status=EntryStatus.FAILED)
        add_entry(entry_store, "Succeeded")
        add_entry(entry_store, "Collection", type=ObjectType.COLLECTION, status=EntryStatus.FAILED)
        add_entry(entry_store, "Other importer", status=EntryStatus.FAILED, importer_id=8)

    def test_returns_true(self, orchestrator):
        assert orchestrator.write_errored_entries_file() is True

    def test_writes_to_the_errored_entries_path(self, orchestrator, in_tmp):
        path = orchestrator.errored_entries_csv_path
        assert path == "tmp/imports/import_7_20240102030405_errored_entries.csv"
        assert not os.path.exists(path)

        orchestrator.write_errored_entries_file()

        assert (in_tmp / path).exists()

    def test_contains_only_failed_non_collection_entries(self, orchestrator):
        orchestrator.write_errored_entries_file()

        with open(orchestrator.errored_entries_csv_path, newline="") as f:
            rows = list(csv.DictReader(f))

        assert rows == [{"title": "Failed", "source_identifier": "failed"}]

    def test_file_contents(self, orchestrator):
        orchestrator.write_errored_entries_file()
        contents = open(orchestrator.errored_entries_csv_path).read()

        assert "Failed," in contents
        assert "Succeeded" not in contents
        assert "Collection" not in contents


class TestWritePartialImportFile:
    def test_single_tenant_path(self, orchestrator, upload):
        path = orchestrator.write_partial_import_file(upload)

        assert path == "tmp/imports/7_20240102030405/failed_corrected_entries.csv"

    def test_moves_the_upload(self, orchestrator, upload, in_tmp):
        assert os.path.exists(upload.path)

        new_path = orchestrator.write_partial_import_file(upload)

        assert not os.path.exists(upload.path)
        assert (in_tmp / new_path).exists()

    def test_renames_to_import_file_name(self, orchestrator, upload):
        partial_name = orchestrator.write_partial_import_file(upload).split("/")[-1]

        assert orchestrator.importer.import_file_path.endswith("failed.csv")
        assert partial_name != upload.original_filename
        assert partial_name == "failed_corrected_entries.csv"

    def test_named_after_ok_import(self, make_importer, ok_csv, entry_store, dispatcher, upload, in_tmp):
        importer = make_importer(ok_csv, name="ok.csv")
        orchestrator = ImportOrchestrator(importer, entry_store, dispatcher)

        path = orchestrator.write_partial_import_file(upload.path)

        assert path == "tmp/imports/7_20240102030405/ok_corrected_entries.csv"

    def test_multi_tenant_path(self, failed_importer, entry_store, dispatcher, upload, in_tmp):
        tenant = TenantContext(multi_tenant=True, account_name="bulkrax")
        orchestrator = ImportOrchestrator(failed_importer, entry_store, dispatcher, tenant=tenant)

        path = orchestrator.write_partial_import_file(upload)

        assert path == "tmp/imports/bulkrax/7_20240102030405/failed_corrected_entries.csv"

    def test_rejects_unknown_upload(self, orchestrator):
        with pytest.raises(TypeError):
            orchestrator.write_partial_import_file(object())


class TestPathToFiles:
    def test_with_a_filename(self, orchestrator, tmp_path):
        assert orchestrator.path_to_files(filename="sun.jpg") == str(tmp_path / "files" / "sun.jpg")

    def test_multiple_files(self, orchestrator, tmp_path):
        assert orchestrator.path_to_files(filename="sun.jpg") == str(tmp_path / "files" / "sun.jpg")

        second_path = orchestrator.path_to_files(filename="moon.jpg")

        assert second_path == str(tmp_path / "files" / "moon.jpg")

    def test_without_a_filename(self, orchestrator, tmp_path):
        assert orchestrator.path_to_files() == os.path.join(str(tmp_path / "files"), "")


class TestRecoveryHelpers:
    def test_corrected_file_name(self):
        assert recovery.corrected_file_name("spec/fixtures/csv/failed.csv") == "failed_corrected_entries.csv"

    def test_errored_entries_keeps_order(self, entry_store):
        first = add_entry(entry_store, "A", status=EntryStatus.FAILED)
        add_entry(entry_store, "B")
        third = add_entry(entry_store, "C", type=ObjectType.FILE_SET, status=EntryStatus.FAILED)

        assert recovery.errored_entries(entry_store.entries_for(7)) == [first, third]

    def test_multi_valued_cells_are_joined(self, entry_store, tmp_path):
        entry = add_entry(entry_store, "Multi", status=EntryStatus.FAILED)
        entry.raw_metadata["creator"] = ["One", "Two"]
        path = tmp_path / "out.csv"

        recovery.write_errored_entries_file([entry], path)

        assert "One|Two" in path.read_text()
