"""Service layer for classification, mapping resolution and recovery files."""

from .field_mappings import FieldMappingResolver
from .classifier import RowClassifier
from .headers import export_headers

__all__ = [
    "FieldMappingResolver",
    "RowClassifier",
    "export_headers",
]
