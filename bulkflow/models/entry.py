"""Entry models tracking one row's or one identifier's lifecycle."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from enum import Enum
from datetime import datetime


Row = Mapping[str, str]


def freeze_row(data: Mapping[str, Any]) -> Row:
    """Return a read-only copy of a parsed row."""
    return MappingProxyType({str(k): ("" if v is None else str(v)) for k, v in data.items()})


class ObjectType(str, Enum):
    """Repository object types a row can be classified as."""
    COLLECTION = "Collection"
    WORK = "Work"
    FILE_SET = "FileSet"

    @classmethod
    def from_model_value(cls, value: Optional[str]) -> "ObjectType":
        """Resolve a model column value; anything unrecognized is a Work."""
        normalized = (value or "").strip().lower()
        if normalized == cls.COLLECTION.value.lower():
            return cls.COLLECTION
        if normalized == cls.FILE_SET.value.lower():
            return cls.FILE_SET
        return cls.WORK


class EntryStatus(str, Enum):
    """Status of an entry."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class EntryError:
    """Captured cause of an entry failure."""
    error_class: str
    message: str
    row_index: Optional[int] = None

    @classmethod
    def from_exception(cls, exc: BaseException, row_index: Optional[int] = None) -> "EntryError":
        return cls(error_class=type(exc).__name__, message=str(exc), row_index=row_index)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "error_class": self.error_class,
            "message": self.message,
            "row_index": self.row_index,
        }


@dataclass
class ClassifiedRecord:
    """A row annotated with its object type and identifier."""
    row: Row
    type: ObjectType
    source_identifier: Optional[str] = None
    index: int = 0  # Position in the source file, 0-based

    def get(self, column: str, default: Optional[str] = None) -> Optional[str]:
        """Get a column value from the underlying row."""
        return self.row.get(column, default)

    def __getitem__(self, column: str) -> str:
        return self.row[column]


@dataclass
class Entry:
    """A persistent record of work for one importer or exporter."""
    identifier: str
    type: ObjectType
    importerexporter_id: Any
    id: Optional[int] = None  # Assigned by the entry store
    raw_metadata: Dict[str, Any] = field(default_factory=dict)
    parsed_metadata: Dict[str, Any] = field(default_factory=dict)
    status: EntryStatus = EntryStatus.PENDING
    error: Optional[EntryError] = None
    parent_identifier: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def failed(self) -> bool:
        return self.status == EntryStatus.FAILED

    @property
    def succeeded(self) -> bool:
        return self.status == EntryStatus.SUCCEEDED

    def mark_succeeded(self) -> None:
        """Record a successful job completion."""
        self.status = EntryStatus.SUCCEEDED
        self.error = None
        self.updated_at = datetime.utcnow()

    def mark_failed(self, error: EntryError) -> None:
        """Record a failure and its cause."""
        self.status = EntryStatus.FAILED
        self.error = error
        self.updated_at = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "identifier": self.identifier,
            "type": self.type.value,
            "importerexporter_id": self.importerexporter_id,
            "raw_metadata": self.raw_metadata,
            "parsed_metadata": self.parsed_metadata,
            "status": self.status.value,
            "error": self.error.to_dict() if self.error else None,
            "parent_identifier": self.parent_identifier,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class EntryResult:
    """Outcome of processing one row or identifier."""
    index: int
    identifier: Optional[str] = None
    entry: Optional[Entry] = None
    skipped: bool = False  # Duplicate or unidentifiable row, not counted
    error: Optional[EntryError] = None

    @property
    def success(self) -> bool:
        return self.entry is not None and self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None
