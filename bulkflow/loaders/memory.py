"""In-process implementations of the entry store, job facility and repository."""

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from .base import (
    EntryStore,
    JobDispatcher,
    JobName,
    ObjectStore,
    RepositoryObject,
    SearchCriteria,
    SearchIndex,
)
from ..errors import EntryCreationError
from ..models.entry import Entry, ObjectType

logger = logging.getLogger(__name__)


class InMemoryEntryStore(EntryStore):
    """Entry store backed by a dictionary."""

    def __init__(self):
        self._entries: Dict[int, Entry] = {}
        self._ids = itertools.count(1)

    def find_or_create(
        self,
        importerexporter_id: Any,
        identifier: str,
        type: ObjectType,
        raw_metadata: Optional[Dict[str, Any]] = None,
        parent_identifier: Optional[str] = None,
    ) -> Entry:
        if not identifier:
            raise EntryCreationError(f"cannot create a {type.value} entry without an identifier")
        for entry in self._entries.values():
            if (
                entry.importerexporter_id == importerexporter_id
                and entry.identifier == identifier
                and entry.type == type
            ):
                if raw_metadata is not None:
                    entry.raw_metadata = dict(raw_metadata)
                if parent_identifier is not None:
                    entry.parent_identifier = parent_identifier
                return entry

        entry = Entry(
            id=next(self._ids),
            identifier=identifier,
            type=type,
            importerexporter_id=importerexporter_id,
            raw_metadata=dict(raw_metadata or {}),
            parent_identifier=parent_identifier,
        )
        self._entries[entry.id] = entry
        return entry

    def add(self, entry: Entry) -> Entry:
        """Store a prebuilt entry, assigning an id if it has none."""
        if entry.id is None:
            entry.id = next(self._ids)
        self._entries[entry.id] = entry
        return entry

    def entries_for(self, importerexporter_id: Any) -> List[Entry]:
        return [e for e in self._entries.values() if e.importerexporter_id == importerexporter_id]

    def save(self, entry: Entry) -> Entry:
        if entry.id is None:
            return self.add(entry)
        self._entries[entry.id] = entry
        return entry

    def count(self, type: Optional[ObjectType] = None) -> int:
        if type is None:
            return len(self._entries)
        return sum(1 for e in self._entries.values() if e.type == type)


@dataclass(frozen=True)
class DispatchedJob:
    """A job handed to the recording dispatcher."""
    job: JobName
    entry_id: int
    run_id: Any
    immediate: bool


JobHandler = Callable[[int, Any], None]


class RecordingJobDispatcher(JobDispatcher):
    """
    Job facility that records dispatches.

    Handlers registered per job run synchronously for ``enqueue_now``;
    ``enqueue_later`` jobs are held until ``drain`` is called.
    """

    def __init__(self, handlers: Optional[Dict[JobName, JobHandler]] = None):
        self.handlers: Dict[JobName, JobHandler] = dict(handlers or {})
        self.dispatched: List[DispatchedJob] = []
        self._queue: List[DispatchedJob] = []

    def register(self, job: JobName, handler: JobHandler) -> None:
        self.handlers[job] = handler

    def enqueue_now(self, job: JobName, entry_id: int, run_id: Any) -> None:
        dispatched = DispatchedJob(job, entry_id, run_id, immediate=True)
        self.dispatched.append(dispatched)
        self._run(dispatched)

    def enqueue_later(self, job: JobName, entry_id: int, run_id: Any) -> None:
        dispatched = DispatchedJob(job, entry_id, run_id, immediate=False)
        self.dispatched.append(dispatched)
        self._queue.append(dispatched)

    def drain(self) -> int:
        """Run all queued jobs in order; returns how many ran."""
        queued, self._queue = self._queue, []
        for dispatched in queued:
            self._run(dispatched)
        logger.info(f"Ran {len(queued)} queued jobs")
        return len(queued)

    def jobs(self, job: Optional[JobName] = None, immediate: Optional[bool] = None) -> List[DispatchedJob]:
        """Dispatched jobs, optionally filtered."""
        return [
            d for d in self.dispatched
            if (job is None or d.job == job) and (immediate is None or d.immediate == immediate)
        ]

    def _run(self, dispatched: DispatchedJob) -> None:
        handler = self.handlers.get(dispatched.job)
        if handler:
            handler(dispatched.entry_id, dispatched.run_id)


class InMemoryRepository(ObjectStore, SearchIndex):
    """Object store and search index over a fixed set of objects."""

    def __init__(self, objects: Optional[Sequence[RepositoryObject]] = None):
        self._objects: Dict[str, RepositoryObject] = {}
        self.queries: List[SearchCriteria] = []
        self.finds: List[str] = []
        for obj in objects or []:
            self.add(obj)

    def add(self, obj: RepositoryObject) -> RepositoryObject:
        self._objects[obj.id] = obj
        return obj

    def find(self, identifier: str) -> RepositoryObject:
        self.finds.append(identifier)
        try:
            return self._objects[identifier]
        except KeyError:
            raise KeyError(f"object not found: {identifier}") from None

    def query(self, criteria: SearchCriteria) -> Sequence[str]:
        self.queries.append(criteria)
        return [obj.id for obj in self._objects.values() if self._matches(obj, criteria)]

    @staticmethod
    def _matches(obj: RepositoryObject, criteria: SearchCriteria) -> bool:
        if criteria.models is not None and obj.model not in criteria.models:
            return False
        if obj.model in criteria.exclude_models:
            return False
        if criteria.member_of_collection and criteria.member_of_collection not in obj.member_of_collection_ids:
            return False
        if criteria.ids is not None and obj.id not in criteria.ids:
            return False
        return True
