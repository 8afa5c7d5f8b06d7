"""Importer, exporter and run models."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from enum import Enum
from datetime import datetime
import json
import uuid

from dateutil import parser as date_parser

from .entry import ObjectType
from .mapping import FieldMappingConfig


DEFAULT_RECORDS_SPLIT_COUNT = 1000


class RunStatus(str, Enum):
    """Status of an import or export run."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class ExportTarget(str, Enum):
    """What an exporter selects from the search index."""
    ALL = "all"
    COLLECTION = "collection"
    WORKTYPE = "worktype"


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        return date_parser.parse(str(value))
    return datetime.utcnow()


@dataclass(frozen=True)
class TenantContext:
    """Tenant information reported by the hosting application."""
    multi_tenant: bool = False
    account_name: Optional[str] = None

    def prefix(self, base: str) -> str:
        """Scope a base directory to the current tenant."""
        if self.multi_tenant and self.account_name:
            return f"{base}/{self.account_name}"
        return base


@dataclass
class Run:
    """Counters and timing shared by import and export runs."""
    id: Any = field(default_factory=lambda: str(uuid.uuid4()))
    status: RunStatus = RunStatus.PENDING
    total: int = 0
    succeeded_count: int = 0
    failed_count: int = 0

    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    last_error: Optional[Dict[str, Any]] = None

    @property
    def processed_count(self) -> int:
        return self.succeeded_count + self.failed_count

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def start(self) -> None:
        if self.status == RunStatus.PENDING:
            self.status = RunStatus.RUNNING
            self.started_at = datetime.utcnow()

    def complete(self) -> None:
        if self.status != RunStatus.ABORTED:
            self.status = RunStatus.COMPLETED
        self.completed_at = datetime.utcnow()

    def abort(self, error: Dict[str, Any]) -> None:
        """Record a fatal error; only the first one is kept."""
        if self.status == RunStatus.ABORTED:
            return
        self.status = RunStatus.ABORTED
        self.last_error = error
        self.completed_at = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "status": self.status.value,
            "total": self.total,
            "succeeded_count": self.succeeded_count,
            "failed_count": self.failed_count,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "last_error": self.last_error,
        }


@dataclass
class ImporterRun(Run):
    """A single import invocation."""
    collections_total: int = 0
    works_total: int = 0
    file_sets_total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({
            "collections_total": self.collections_total,
            "works_total": self.works_total,
            "file_sets_total": self.file_sets_total,
        })
        return result


@dataclass
class ExporterRun(Run):
    """A single export invocation."""
    dispatched_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["dispatched_count"] = self.dispatched_count
        return result


@dataclass
class Importer:
    """Configuration and history of an importer."""
    id: Any
    name: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)
    import_file_path: str = ""
    field_mapping: FieldMappingConfig = field(default_factory=FieldMappingConfig)
    model_field_mappings: List[str] = field(default_factory=list)
    total: Optional[int] = None  # Overrides the classified row count
    records_split_count: int = DEFAULT_RECORDS_SPLIT_COUNT

    # Kinds dispatched in-process instead of queued
    immediate_jobs: Dict[ObjectType, bool] = field(default_factory=dict)

    # Called as fn(orchestrator, row_index) for rows with a blank identifier
    fill_in_blank_source_identifiers: Optional[Callable[[Any, int], str]] = None

    runs: List[ImporterRun] = field(default_factory=list)
    last_error: Optional[Dict[str, Any]] = None

    @property
    def path_string(self) -> str:
        """Identity of the importer used in recovery file paths."""
        return f"{self.id}_{self.created_at.strftime('%Y%m%d%H%M%S')}"

    @property
    def last_run(self) -> Optional[ImporterRun]:
        return self.runs[-1] if self.runs else None

    def immediate(self, kind: ObjectType) -> bool:
        return bool(self.immediate_jobs.get(kind, False))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "import_file_path": self.import_file_path,
            "field_mapping": self.field_mapping.to_dict(),
            "model_field_mappings": self.model_field_mappings,
            "total": self.total,
            "records_split_count": self.records_split_count,
            "immediate_jobs": {k.value: v for k, v in self.immediate_jobs.items()},
            "last_error": self.last_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Importer":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            created_at=_parse_datetime(data.get("created_at")),
            import_file_path=data.get("import_file_path", ""),
            field_mapping=FieldMappingConfig.from_dict(data.get("field_mapping")),
            model_field_mappings=data.get("model_field_mappings", []),
            total=data.get("total"),
            records_split_count=data.get("records_split_count", DEFAULT_RECORDS_SPLIT_COUNT),
            immediate_jobs={
                ObjectType(k): bool(v) for k, v in data.get("immediate_jobs", {}).items()
            },
            last_error=data.get("last_error"),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "Importer":
        """Load importer configuration from JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)


@dataclass
class Exporter:
    """Configuration and history of an exporter."""
    id: Any
    name: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)
    export_from: ExportTarget = ExportTarget.ALL
    export_source: Optional[str] = None  # Collection id or work type name
    limit: Optional[int] = None
    field_mapping: FieldMappingConfig = field(default_factory=FieldMappingConfig)
    records_split_count: int = DEFAULT_RECORDS_SPLIT_COUNT
    immediate_jobs: bool = True

    runs: List[ExporterRun] = field(default_factory=list)
    last_error: Optional[Dict[str, Any]] = None

    @property
    def last_run(self) -> Optional[ExporterRun]:
        return self.runs[-1] if self.runs else None

    @property
    def export_label(self) -> str:
        """Label used in export file names, e.g. ``Generic_from_worktype``."""
        return f"{self.export_source or 'all'}_from_{self.export_from.value}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "export_from": self.export_from.value,
            "export_source": self.export_source,
            "limit": self.limit,
            "field_mapping": self.field_mapping.to_dict(),
            "records_split_count": self.records_split_count,
            "immediate_jobs": self.immediate_jobs,
            "last_error": self.last_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Exporter":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            created_at=_parse_datetime(data.get("created_at")),
            export_from=ExportTarget(data.get("export_from", "all")),
            export_source=data.get("export_source"),
            limit=data.get("limit"),
            field_mapping=FieldMappingConfig.from_dict(data.get("field_mapping")),
            records_split_count=data.get("records_split_count", DEFAULT_RECORDS_SPLIT_COUNT),
            immediate_jobs=data.get("immediate_jobs", True),
            last_error=data.get("last_error"),
        )

    @classmethod
    def from_json_file(cls, file_path: str) -> "Exporter":
        """Load exporter configuration from JSON file."""
        with open(file_path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
