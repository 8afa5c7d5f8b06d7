"""Entry store, job facility and repository interfaces."""

from .base import (
    EntryStore,
    JobDispatcher,
    JobName,
    ObjectStore,
    RepositoryObject,
    SearchCriteria,
    SearchIndex,
)
from .memory import (
    DispatchedJob,
    InMemoryEntryStore,
    InMemoryRepository,
    RecordingJobDispatcher,
)

__all__ = [
    "EntryStore",
    "JobDispatcher",
    "JobName",
    "ObjectStore",
    "RepositoryObject",
    "SearchCriteria",
    "SearchIndex",
    "DispatchedJob",
    "InMemoryEntryStore",
    "InMemoryRepository",
    "RecordingJobDispatcher",
]
