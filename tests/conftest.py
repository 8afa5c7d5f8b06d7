"""Pytest configuration and shared fixtures."""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import pytest

from bulkflow.importer import ImportOrchestrator
from bulkflow.loaders import InMemoryEntryStore, RecordingJobDispatcher
from bulkflow.models import FieldMappingConfig, Importer, TenantContext


GOOD_CSV = """model,source_identifier,title,parents
Collection,c_1,Collection 1 Title,
Collection,c_2,Collection 2 Title,
,work_1,Work 1 Title,c_1
,work_2,Work 2 Title,c_2
"""

OK_CSV = """source_identifier,title
2,Work with an identifier
,Work without an identifier
"""

ALL_TYPES_CSV = """model,source_identifier,title,parents_column
Collection,art_c_1,Art Collection 1,
collection,art_c_2,Art Collection 2,
Work,art_w_1,Art Work 1,art_c_1
,art_w_2,Art Work 2,art_c_2
FileSet,art_fs_1,Art File Set 1,art_w_1
fileset,art_fs_2,Art File Set 2,art_w_2
"""


@pytest.fixture
def good_csv() -> str:
    """Two collections and two works without a model."""
    return GOOD_CSV


@pytest.fixture
def ok_csv() -> str:
    """Two works, one with a blank identifier."""
    return OK_CSV


@pytest.fixture
def all_types_csv() -> str:
    """Two rows of each object type with relationship columns."""
    return ALL_TYPES_CSV


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[str, str], str]:
    """Write CSV text to a file under tmp_path and return its path."""

    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def entry_store() -> InMemoryEntryStore:
    return InMemoryEntryStore()


@pytest.fixture
def dispatcher() -> RecordingJobDispatcher:
    return RecordingJobDispatcher()


@pytest.fixture
def in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from tmp_path so relative tmp/ paths land there."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def make_importer(write_csv):
    """Build an importer for CSV content."""

    def _make(
        content: str,
        name: str = "good.csv",
        field_mapping: Optional[dict] = None,
        **kwargs,
    ) -> Importer:
        return Importer(
            id=kwargs.pop("id", 7),
            created_at=kwargs.pop("created_at", datetime(2024, 1, 2, 3, 4, 5)),
            import_file_path=write_csv(name, content),
            field_mapping=FieldMappingConfig.from_dict(field_mapping),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_orchestrator(make_importer, entry_store, dispatcher):
    """Build an import orchestrator for CSV content."""

    def _make(
        content: str,
        tenant: Optional[TenantContext] = None,
        **kwargs,
    ) -> ImportOrchestrator:
        importer = make_importer(content, **kwargs)
        return ImportOrchestrator(importer, entry_store, dispatcher, tenant=tenant)

    return _make
