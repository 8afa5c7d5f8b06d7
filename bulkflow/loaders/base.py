"""Interfaces to the systems that persist entries, run jobs and hold objects."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from enum import Enum
import logging

from ..models.entry import Entry, ObjectType

logger = logging.getLogger(__name__)


class JobName(str, Enum):
    """Units of work handed to the job facility."""
    IMPORT_COLLECTION = "import_collection"
    IMPORT_WORK = "import_work"
    IMPORT_FILE_SET = "import_file_set"
    EXPORT_WORK = "export_work"

    @classmethod
    def import_job_for(cls, kind: ObjectType) -> "JobName":
        return {
            ObjectType.COLLECTION: cls.IMPORT_COLLECTION,
            ObjectType.WORK: cls.IMPORT_WORK,
            ObjectType.FILE_SET: cls.IMPORT_FILE_SET,
        }[kind]


@dataclass(frozen=True)
class SearchCriteria:
    """Filter sent to the search index."""
    models: Optional[Tuple[str, ...]] = None  # None matches any model
    exclude_models: Tuple[str, ...] = ()
    member_of_collection: Optional[str] = None
    ids: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "models": list(self.models) if self.models is not None else None,
            "exclude_models": list(self.exclude_models),
            "member_of_collection": self.member_of_collection,
            "ids": list(self.ids) if self.ids is not None else None,
        }


@dataclass
class RepositoryObject:
    """An object as seen through the repository's object store."""
    id: str
    model: str
    file_set_ids: List[str] = field(default_factory=list)
    member_of_collection_ids: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class EntryStore(ABC):
    """Persistence for entries."""

    @abstractmethod
    def find_or_create(
        self,
        importerexporter_id: Any,
        identifier: str,
        type: ObjectType,
        raw_metadata: Optional[Dict[str, Any]] = None,
        parent_identifier: Optional[str] = None,
    ) -> Entry:
        """
        Return the entry for an identifier, creating it if needed.

        An existing entry for the same importer/exporter, identifier and
        type is reused; its raw metadata is refreshed from the new row.
        """
        pass

    @abstractmethod
    def entries_for(self, importerexporter_id: Any) -> List[Entry]:
        """All entries owned by an importer or exporter, in creation order."""
        pass

    def save(self, entry: Entry) -> Entry:
        """Persist changes to an entry."""
        return entry

    def count(self, type: Optional[ObjectType] = None) -> int:
        """Number of entries, optionally of one type."""
        raise NotImplementedError


class JobDispatcher(ABC):
    """Hands units of work to the job facility without waiting for them."""

    @abstractmethod
    def enqueue_now(self, job: JobName, entry_id: int, run_id: Any) -> None:
        """Run a job in-process."""
        pass

    @abstractmethod
    def enqueue_later(self, job: JobName, entry_id: int, run_id: Any) -> None:
        """Queue a job for asynchronous execution."""
        pass

    def dispatch(self, job: JobName, entry_id: int, run_id: Any, immediate: bool) -> None:
        """Run or queue a job according to the configured mode."""
        if immediate:
            self.enqueue_now(job, entry_id, run_id)
        else:
            self.enqueue_later(job, entry_id, run_id)


class ObjectStore(ABC):
    """Read access to repository objects."""

    @abstractmethod
    def find(self, identifier: str) -> RepositoryObject:
        """
        Load an object.

        Raises:
            KeyError: if no object has the identifier
        """
        pass


class SearchIndex(ABC):
    """Enumerates object identifiers matching a query."""

    @abstractmethod
    def query(self, criteria: SearchCriteria) -> Sequence[str]:
        """Identifiers of matching objects, in index order."""
        pass
