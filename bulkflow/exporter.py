"""Export orchestration: index queries into tracked entries and export jobs."""

import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .loaders.base import (
    EntryStore,
    JobDispatcher,
    JobName,
    ObjectStore,
    SearchCriteria,
    SearchIndex,
)
from .models.entry import Entry, EntryError, EntryResult, EntryStatus, ObjectType
from .models.run import ExportTarget, Exporter, ExporterRun, TenantContext
from .orchestrator import DEFAULT_WORKING_DIR, BaseOrchestrator
from .services.field_mappings import FieldMappingResolver
from .services.headers import export_headers

logger = logging.getLogger(__name__)

NON_WORK_MODELS = (ObjectType.COLLECTION.value, ObjectType.FILE_SET.value)
EXPORT_ORDER = (ObjectType.WORK, ObjectType.COLLECTION, ObjectType.FILE_SET)


class ExportOrchestrator(BaseOrchestrator):
    """
    Runs one export.

    Candidate identifiers come from the search index, scoped by the
    exporter's target. Works are exported first, then collections, then
    file sets. A non-zero limit caps the number of export jobs across all
    three buckets, and file sets are only looked up for works that fit
    under the limit.
    """

    kind = "export"

    def __init__(
        self,
        exporter: Exporter,
        entry_store: EntryStore,
        dispatcher: JobDispatcher,
        object_store: ObjectStore,
        search_index: SearchIndex,
        tenant: Optional[TenantContext] = None,
        resolver: Optional[FieldMappingResolver] = None,
        working_dir: str = DEFAULT_WORKING_DIR,
    ):
        super().__init__(exporter, entry_store, dispatcher, tenant, resolver, working_dir)
        self.exporter = exporter
        self.object_store = object_store
        self.search_index = search_index

        self.work_ids: List[str] = []
        self.collection_ids: List[str] = []
        self.file_set_ids: List[str] = []
        self._file_set_parents: Dict[str, str] = {}
        self._searched_work_ids: set = set()
        self._resolved = False
        self._run: Optional[ExporterRun] = None

    @property
    def limit(self) -> Optional[int]:
        """Export job cap; ``None`` when unbounded."""
        limit = self.exporter.limit
        return int(limit) if limit else None

    @property
    def current_run(self) -> ExporterRun:
        if self._run is None:
            run = ExporterRun()
            self._run = run
            self.exporter.runs.append(run)
            run.total = self.total()
        return self._run

    def total(self) -> int:
        """The export limit if set, else the number of resolved identifiers."""
        if self._total is None:
            if self.limit:
                self._total = self.limit
            else:
                self.current_record_ids()
                self._total = len(self.work_ids) + len(self.collection_ids) + len(self.file_set_ids)
        return self._total

    # Identifier resolution

    def current_record_ids(self) -> Dict[ObjectType, List[str]]:
        """Identifiers to export, per bucket, already trimmed to the limit."""
        if not self._resolved:
            target = self.exporter.export_from
            source = self.exporter.export_source

            if target == ExportTarget.ALL:
                works = self._query(SearchCriteria(exclude_models=NON_WORK_MODELS))
                collections = self._query(SearchCriteria(models=(ObjectType.COLLECTION.value,)))
                file_sets = self._query(SearchCriteria(models=(ObjectType.FILE_SET.value,)))
            elif target == ExportTarget.COLLECTION:
                works = self._query(SearchCriteria(member_of_collection=source, exclude_models=NON_WORK_MODELS))
                collections = self._query(SearchCriteria(ids=(source,)))
                collections += self._query(
                    SearchCriteria(models=(ObjectType.COLLECTION.value,), member_of_collection=source)
                )
                file_sets = []
            elif target == ExportTarget.WORKTYPE:
                works = self._query(SearchCriteria(models=(source,)))
                collections = []
                file_sets = []
            else:
                raise ValueError(f"Unsupported export target: {target}")

            remaining = self.limit
            self.work_ids = self._take(works, remaining)
            remaining = self._left(remaining, self.work_ids)
            self.collection_ids = self._take(collections, remaining)
            remaining = self._left(remaining, self.collection_ids)

            self.file_set_ids = self._take(file_sets, remaining)
            self._searched_work_ids = set()
            self._file_set_parents = {}
            if target != ExportTarget.ALL and remaining != 0:
                self.find_child_file_sets(self.work_ids)
            self.file_set_ids = self._take(self.file_set_ids, remaining)

            logger.info(
                f"Exporter {self.exporter.id} resolved {len(self.work_ids)} works, "
                f"{len(self.collection_ids)} collections, {len(self.file_set_ids)} file sets"
            )
            self._resolved = True

        return {
            ObjectType.WORK: self.work_ids,
            ObjectType.COLLECTION: self.collection_ids,
            ObjectType.FILE_SET: self.file_set_ids,
        }

    def find_child_file_sets(self, work_ids: Iterable[str]) -> List[str]:
        """Add the file sets attached to each work to ``file_set_ids``."""
        for work_id in work_ids:
            if work_id in self._searched_work_ids:
                continue
            self._searched_work_ids.add(work_id)
            work = self.object_store.find(work_id)
            for file_set_id in work.file_set_ids:
                if file_set_id not in self.file_set_ids:
                    self.file_set_ids.append(file_set_id)
                    self._file_set_parents[file_set_id] = work_id
        return self.file_set_ids

    def _query(self, criteria: SearchCriteria) -> List[str]:
        return [str(i) for i in self.search_index.query(criteria)]

    @staticmethod
    def _take(ids: Sequence[str], remaining: Optional[int]) -> List[str]:
        unique = list(dict.fromkeys(ids))
        if remaining is None:
            return unique
        return unique[:max(remaining, 0)]

    @staticmethod
    def _left(remaining: Optional[int], taken: Sequence[str]) -> Optional[int]:
        if remaining is None:
            return None
        return remaining - len(taken)

    # Entry creation

    def create_new_entries(self) -> List[EntryResult]:
        """Create an entry and dispatch an export job for every resolved identifier."""
        ids = self.current_record_ids()
        run = self.current_run
        run.start()

        results: List[EntryResult] = []
        for kind in EXPORT_ORDER:
            for identifier in ids[kind]:
                if self.limit is not None and run.dispatched_count >= self.limit:
                    break
                result = self._export_entry(identifier, kind, len(results))
                results.append(result)
                self.increment_counters(result.index, kind, result)

        run.complete()
        logger.info(f"Dispatched {run.dispatched_count} export jobs for exporter {self.exporter.id}")
        return results

    def _export_entry(self, identifier: str, kind: ObjectType, index: int) -> EntryResult:
        try:
            entry = self.entry_store.find_or_create(
                self.exporter.id,
                identifier,
                kind,
                parent_identifier=self._file_set_parents.get(identifier),
            )
        except Exception as e:
            return EntryResult(
                index=index,
                identifier=identifier,
                error=EntryError.from_exception(e, index),
            )

        run = self.current_run
        self.dispatcher.dispatch(
            JobName.EXPORT_WORK, entry.id, run.id, immediate=self.exporter.immediate_jobs
        )
        run.dispatched_count += 1
        return EntryResult(index=index, identifier=identifier, entry=entry)

    # Export files

    def exported_entries(self) -> List[Entry]:
        return [
            e for e in self.entry_store.entries_for(self.exporter.id)
            if e.status != EntryStatus.FAILED
        ]

    def export_headers(self) -> List[str]:
        """Column headers for the export files."""
        sample = [e.parsed_metadata for e in self.exported_entries()[:self.records_split_count()]]
        return export_headers(sample)

    def export_path(self) -> str:
        run = self.exporter.last_run or self.current_run
        return f"{self.base_path()}/{self.exporter.id}/{run.id}"

    def setup_export_file(self, folder_count: int, headers: Optional[List[str]] = None) -> str:
        """
        Start the n-th export file of the latest run.

        The folder is created and the file truncated to a single header
        row, so rows written after it always line up with the header.

        Args:
            folder_count: 1-based file number
            headers: Column headers; derived from the exported entries when omitted

        Returns:
            Path of the export file
        """
        folder = f"{self.export_path()}/{folder_count}"
        Path(folder).mkdir(parents=True, exist_ok=True)
        file_path = f"{folder}/export_{self.exporter.export_label}_{folder_count}.csv"

        with open(file_path, "w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerow(headers if headers is not None else self.export_headers())
        return file_path

    def write_files(self) -> List[str]:
        """Write exported entries' parsed metadata, records_split_count rows per file."""
        headers = self.export_headers()
        paths = []
        for folder_count, batch in enumerate(self.batches(self.exported_entries()), start=1):
            file_path = self.setup_export_file(folder_count, headers)
            with open(file_path, "a", encoding="utf-8", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=headers, extrasaction="ignore", restval="")
                for entry in batch:
                    row = {"id": entry.identifier, "model": entry.type.value}
                    row.update(entry.parsed_metadata)
                    writer.writerow(row)
            paths.append(file_path)
            logger.info(f"Wrote {len(batch)} records to {file_path}")
        return paths
