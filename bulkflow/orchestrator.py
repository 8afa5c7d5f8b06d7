"""Behavior shared by the import and export orchestrators."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional, Sequence, TypeVar

from .models.entry import EntryResult, ObjectType
from .models.mapping import FieldMappingConfig
from .models.run import Run, TenantContext
from .services.field_mappings import FieldMappingResolver
from .loaders.base import EntryStore, JobDispatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_WORKING_DIR = "tmp"


class BaseOrchestrator(ABC):
    """
    Common state of one import or export invocation.

    Handles:
    - Field mapping resolution for the run
    - Tenant-scoped working paths
    - Run counters
    - Batching by the records split count

    One orchestrator owns exactly one live run. Concurrent runs against the
    same importer or exporter must be serialized by the caller.
    """

    kind = "import"

    def __init__(
        self,
        importerexporter: Any,
        entry_store: EntryStore,
        dispatcher: JobDispatcher,
        tenant: Optional[TenantContext] = None,
        resolver: Optional[FieldMappingResolver] = None,
        working_dir: str = DEFAULT_WORKING_DIR,
    ):
        """
        Initialize the orchestrator.

        Args:
            importerexporter: Importer or Exporter being run
            entry_store: Persistence for entries
            dispatcher: Job facility for creation/export work
            tenant: Tenant context reported by the host application
            resolver: Field mapping resolver; built from the importer or
                exporter's field mapping when omitted
            working_dir: Root of the import/export working directories
        """
        self.importerexporter = importerexporter
        self.entry_store = entry_store
        self.dispatcher = dispatcher
        self.tenant = tenant or TenantContext()
        self.working_dir = working_dir
        self.resolver = resolver or FieldMappingResolver(
            getattr(importerexporter, "field_mapping", None) or FieldMappingConfig(),
            getattr(importerexporter, "model_field_mappings", None),
        )
        self._total: Optional[int] = None

    @property
    @abstractmethod
    def current_run(self) -> Run:
        """The live run of this invocation, created on first access."""
        pass

    def base_path(self, kind: Optional[str] = None) -> str:
        """Working directory for imports or exports, scoped by tenant."""
        kind = kind or self.kind
        return self.tenant.prefix(f"{self.working_dir}/{kind}s")

    def records_split_count(self) -> int:
        """Rows per batch and per export file."""
        return getattr(self.importerexporter, "records_split_count", None) or 1000

    @abstractmethod
    def total(self) -> int:
        """Number of records the run is expected to process."""
        pass

    def increment_counters(self, index: int, kind: ObjectType, result: EntryResult) -> None:
        """Fold one attempted row's outcome into the run counters."""
        run = self.current_run
        if result.success:
            run.succeeded_count += 1
        else:
            run.failed_count += 1
            logger.error(
                f"{kind.value} at index {index} failed: "
                f"{result.error.message if result.error else 'unknown error'}"
            )

        processed = run.processed_count
        if processed % self.records_split_count() == 0:
            logger.info(f"Processed {processed}/{run.total} records")

    def batches(self, items: Sequence[T]) -> Iterator[List[T]]:
        """Iterate over items in batches of the records split count."""
        size = self.records_split_count()
        for i in range(0, len(items), size):
            yield list(items[i:i + size])
