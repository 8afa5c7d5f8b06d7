"""Partitioning of source rows into collections, works and file sets."""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from ..models.entry import ClassifiedRecord, ObjectType, Row
from .field_mappings import FieldMappingResolver

logger = logging.getLogger(__name__)

RowSource = Union[Sequence[Row], Callable[[], Sequence[Row]]]


class RowClassifier:
    """
    Classifies every row exactly once as a Collection, Work or FileSet.

    The type comes from the first populated column among the resolver's
    model field mappings, matched case-insensitively. Rows without a
    recognizable type are works. Rows are read and classified on first
    access and the partition is cached afterwards.
    """

    def __init__(self, rows: RowSource, resolver: FieldMappingResolver):
        self._rows_source = rows
        self.resolver = resolver
        self._records: Optional[List[ClassifiedRecord]] = None
        self._buckets: Optional[Dict[ObjectType, List[ClassifiedRecord]]] = None

    def _load_rows(self) -> Sequence[Row]:
        if callable(self._rows_source):
            return self._rows_source()
        return self._rows_source

    def model_value(self, row: Row) -> Optional[str]:
        """Value of the first populated model column, if any."""
        for column in self.resolver.model_field_mappings():
            value = row.get(column)
            if value is not None and str(value).strip():
                return str(value)
        return None

    def identifier_for(self, row: Row) -> Optional[str]:
        """Identifier read from the row's identifier columns, if any."""
        for column in self.resolver.source_identifier_columns:
            value = row.get(column)
            if value is not None and str(value).strip():
                return str(value).strip()
        return None

    def classify(self, row: Row, index: int = 0) -> ClassifiedRecord:
        """Classify a single row."""
        return ClassifiedRecord(
            row=row,
            type=ObjectType.from_model_value(self.model_value(row)),
            source_identifier=self.identifier_for(row),
            index=index,
        )

    def build_records(self) -> Dict[ObjectType, List[ClassifiedRecord]]:
        """Classify all rows, unless already done."""
        if self._buckets is None:
            records = [self.classify(row, idx) for idx, row in enumerate(self._load_rows())]
            buckets: Dict[ObjectType, List[ClassifiedRecord]] = {t: [] for t in ObjectType}
            for record in records:
                buckets[record.type].append(record)
            self._records = records
            self._buckets = buckets
            logger.info(
                f"Classified {len(records)} rows: "
                f"{len(buckets[ObjectType.COLLECTION])} collections, "
                f"{len(buckets[ObjectType.WORK])} works, "
                f"{len(buckets[ObjectType.FILE_SET])} file sets"
            )
        return self._buckets

    @property
    def is_built(self) -> bool:
        return self._buckets is not None

    @property
    def records(self) -> List[ClassifiedRecord]:
        """All classified rows in source order."""
        self.build_records()
        return list(self._records or [])

    @property
    def collections(self) -> List[ClassifiedRecord]:
        return self.build_records()[ObjectType.COLLECTION]

    @property
    def works(self) -> List[ClassifiedRecord]:
        return self.build_records()[ObjectType.WORK]

    @property
    def file_sets(self) -> List[ClassifiedRecord]:
        return self.build_records()[ObjectType.FILE_SET]

    def bucket(self, kind: ObjectType) -> List[ClassifiedRecord]:
        return self.build_records()[kind]
