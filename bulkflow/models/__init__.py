"""Data models for importers, exporters and their entries."""

from .mapping import (
    FieldMapping,
    FieldMappingConfig,
    RelationshipKind,
)
from .entry import (
    ClassifiedRecord,
    Entry,
    EntryError,
    EntryResult,
    EntryStatus,
    ObjectType,
    Row,
    freeze_row,
)
from .run import (
    Exporter,
    ExporterRun,
    ExportTarget,
    Importer,
    ImporterRun,
    Run,
    RunStatus,
    TenantContext,
)

__all__ = [
    "FieldMapping",
    "FieldMappingConfig",
    "RelationshipKind",
    "ClassifiedRecord",
    "Entry",
    "EntryError",
    "EntryResult",
    "EntryStatus",
    "ObjectType",
    "Row",
    "freeze_row",
    "Exporter",
    "ExporterRun",
    "ExportTarget",
    "Importer",
    "ImporterRun",
    "Run",
    "RunStatus",
    "TenantContext",
]
