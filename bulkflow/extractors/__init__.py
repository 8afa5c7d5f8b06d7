"""Source file readers."""

from .base import BaseExtractor, ExtractionResult
from .csv_extractor import CSVExtractor

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "CSVExtractor",
]
