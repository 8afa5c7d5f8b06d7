"""Import orchestration: classified rows into tracked entries and creation jobs."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from .errors import BulkflowError, MalformedSourceError, MissingIdentifierError
from .extractors.base import BaseExtractor
from .extractors.csv_extractor import CSVExtractor
from .loaders.base import EntryStore, JobDispatcher, JobName
from .models.entry import ClassifiedRecord, EntryError, EntryResult, ObjectType, Row
from .models.run import Importer, ImporterRun, TenantContext
from .orchestrator import DEFAULT_WORKING_DIR, BaseOrchestrator
from .services.classifier import RowClassifier
from .services.field_mappings import FieldMappingResolver
from .services import recovery

logger = logging.getLogger(__name__)

IMPORT_ORDER = (ObjectType.COLLECTION, ObjectType.WORK, ObjectType.FILE_SET)


class ImportOrchestrator(BaseOrchestrator):
    """
    Runs one import of a source file.

    Rows are classified into collections, works and file sets, then each
    bucket is walked in source order. Every row either becomes an entry
    with a dispatched creation job, fails on its own, or is skipped as a
    duplicate; one row's failure never stops the loop. A source file that
    cannot be parsed aborts the run before any entry is created.
    """

    kind = "import"

    def __init__(
        self,
        importer: Importer,
        entry_store: EntryStore,
        dispatcher: JobDispatcher,
        tenant: Optional[TenantContext] = None,
        extractor: Optional[BaseExtractor] = None,
        resolver: Optional[FieldMappingResolver] = None,
        working_dir: str = DEFAULT_WORKING_DIR,
    ):
        super().__init__(importer, entry_store, dispatcher, tenant, resolver, working_dir)
        self.importer = importer
        self.extractor = extractor or CSVExtractor(importer.import_file_path)
        self.classifier = RowClassifier(self.rows, self.resolver)

        self.seen: Dict[ObjectType, Set[str]] = {t: set() for t in ObjectType}
        self._rows: Optional[List[Row]] = None
        self._run: Optional[ImporterRun] = None
        self._fatal_error: Optional[Dict[str, Any]] = None

    # Source rows and classification

    def rows(self) -> List[Row]:
        """All source rows; a parse failure is recorded and yields no rows."""
        if self._rows is None:
            try:
                self._rows = list(self.extractor.extract().rows)
            except MalformedSourceError as e:
                self._rows = []
                self._record_fatal(e)
        return self._rows

    def build_records(self) -> None:
        self.classifier.build_records()

    @property
    def records(self) -> List[ClassifiedRecord]:
        return self.classifier.records

    @property
    def collections(self) -> List[ClassifiedRecord]:
        return self.classifier.collections

    @property
    def works(self) -> List[ClassifiedRecord]:
        return self.classifier.works

    @property
    def file_sets(self) -> List[ClassifiedRecord]:
        return self.classifier.file_sets

    def total(self) -> int:
        """Configured total if present, else the number of classified rows."""
        if self._total is None:
            if self.importer.total is not None:
                self._total = int(self.importer.total)
            else:
                self._total = len(self.records)
        return self._total

    def collections_total(self) -> int:
        return len(self.collections)

    @property
    def source_identifier(self) -> str:
        return self.resolver.source_identifier

    @property
    def work_identifier(self) -> str:
        return self.resolver.work_identifier

    # Run lifecycle

    @property
    def current_run(self) -> ImporterRun:
        if self._run is None:
            run = ImporterRun()
            self._run = run
            self.importer.runs.append(run)
            run.total = self.total()
            run.collections_total = self.collections_total()
            run.works_total = len(self.works)
            run.file_sets_total = len(self.file_sets)
            if self._fatal_error:
                run.abort(self._fatal_error)
        return self._run

    @property
    def aborted(self) -> bool:
        return self._fatal_error is not None

    def _record_fatal(self, error: BulkflowError) -> None:
        if self._fatal_error is not None:
            return
        self._fatal_error = error.to_dict()
        self.importer.last_error = self._fatal_error
        logger.error(f"Import {self.importer.id} aborted: {error}")
        if self._run is not None:
            self._run.abort(self._fatal_error)

    def create_objects(self, types: Optional[Iterable[ObjectType]] = None) -> ImporterRun:
        """Create entries for the requested buckets in dependency order."""
        wanted = set(types) if types is not None else set(IMPORT_ORDER)
        creators = {
            ObjectType.COLLECTION: self.create_collections,
            ObjectType.WORK: self.create_works,
            ObjectType.FILE_SET: self.create_file_sets,
        }
        for kind in IMPORT_ORDER:
            if kind in wanted and not self.aborted:
                creators[kind]()

        run = self.current_run
        run.complete()
        logger.info(
            f"Import {self.importer.id} {run.status.value}: "
            f"{run.succeeded_count} succeeded, {run.failed_count} failed of {run.total}"
        )
        return run

    # Entry creation

    def create_collections(self) -> List[EntryResult]:
        return self._create_entries(ObjectType.COLLECTION)

    def create_works(self) -> List[EntryResult]:
        return self._create_entries(ObjectType.WORK)

    def create_file_sets(self) -> List[EntryResult]:
        return self._create_entries(ObjectType.FILE_SET)

    def _create_entries(self, kind: ObjectType) -> List[EntryResult]:
        records = self.classifier.bucket(kind)
        run = self.current_run
        if self.aborted:
            return []
        run.start()

        parent_column = self._parent_column() if kind == ObjectType.FILE_SET else None

        results: List[EntryResult] = []
        for batch in self.batches(records):
            for record in batch:
                result = self._create_entry(record, kind, parent_column)
                results.append(result)
                if not result.skipped:
                    self.increment_counters(record.index, kind, result)

        created = sum(1 for r in results if r.success)
        logger.info(f"Created {created} {kind.value} entries from {len(records)} rows")
        return results

    def _create_entry(
        self,
        record: ClassifiedRecord,
        kind: ObjectType,
        parent_column: Optional[str] = None,
    ) -> EntryResult:
        try:
            identifier = self.resolve_identifier(record)
        except Exception as e:
            return EntryResult(index=record.index, error=EntryError.from_exception(e, record.index))

        if identifier is None:
            if kind == ObjectType.WORK:
                logger.warning(f"Skipping row {record.index}: no {self.source_identifier}")
                return EntryResult(index=record.index, skipped=True)
            error = MissingIdentifierError(
                f"{kind.value} row {record.index} has no {self.source_identifier}"
            )
            return EntryResult(index=record.index, error=EntryError.from_exception(error, record.index))

        if identifier in self.seen[kind]:
            logger.warning(f"Skipping duplicate {kind.value} {identifier} at row {record.index}")
            return EntryResult(index=record.index, identifier=identifier, skipped=True)
        self.seen[kind].add(identifier)

        try:
            entry = self.entry_store.find_or_create(
                self.importer.id,
                identifier,
                kind,
                raw_metadata=dict(record.row),
                parent_identifier=self._parent_identifier(record, parent_column),
            )
        except Exception as e:
            return EntryResult(
                index=record.index,
                identifier=identifier,
                error=EntryError.from_exception(e, record.index),
            )

        self.dispatcher.dispatch(
            JobName.import_job_for(kind),
            entry.id,
            self.current_run.id,
            immediate=self.importer.immediate(kind),
        )
        return EntryResult(index=record.index, identifier=identifier, entry=entry)

    def resolve_identifier(self, record: ClassifiedRecord) -> Optional[str]:
        """
        Identifier for a row.

        Mapped or literal identifier columns come first; a blank identifier
        is filled in by the configured generator, called once per row.
        """
        if record.source_identifier:
            return record.source_identifier
        generator = self.importer.fill_in_blank_source_identifiers
        if generator is None:
            return None
        generated = generator(self, record.index)
        return str(generated) if generated else None

    def _parent_column(self) -> str:
        raw, parsed = self.resolver.related_mapping("parent")
        return raw or parsed

    @staticmethod
    def _parent_identifier(record: ClassifiedRecord, column: Optional[str]) -> Optional[str]:
        if not column:
            return None
        value = record.get(column) or ""
        parents = [p.strip() for p in value.split("|") if p.strip()]
        return parents[0] if parents else None

    # Recovery files

    @property
    def errored_entries_csv_path(self) -> str:
        return f"{self.base_path()}/import_{self.importer.path_string}_errored_entries.csv"

    def write_errored_entries_file(self) -> bool:
        """Write failed non-collection entries to the errored entries file."""
        entries = self.entry_store.entries_for(self.importer.id)
        return recovery.write_errored_entries_file(entries, self.errored_entries_csv_path)

    def write_partial_import_file(self, uploaded_file: Any) -> str:
        """
        Move a corrected upload next to this importer's other run files.

        Returns:
            ``<base>/<id>_<created_at>/<import file stem>_corrected_entries.csv``
        """
        file_name = recovery.corrected_file_name(self.importer.import_file_path)
        destination = f"{self.base_path()}/{self.importer.path_string}/{file_name}"
        return recovery.relocate_upload(uploaded_file, destination)

    def path_to_files(self, filename: Optional[str] = None) -> str:
        """Directory of files referenced by the import, or one file within it."""
        files_dir = os.path.join(str(Path(self.importer.import_file_path).parent), "files")
        if filename:
            return os.path.join(files_dir, filename)
        return os.path.join(files_dir, "")
