"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from ..models.entry import Row

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Result of reading a source file."""
    file_path: str
    rows: List[Row] = field(default_factory=list)
    total_extracted: int = 0
    warnings: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "file_path": self.file_path,
            "total_extracted": self.total_extracted,
            "warnings": self.warnings,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "metadata": self.metadata,
        }


class BaseExtractor(ABC):
    """
    Base class for source file readers.

    Extractors turn a source file into an ordered list of immutable rows.
    A file that cannot be parsed at all raises MalformedSourceError; there
    is no partial result for a structurally broken file.
    """

    def __init__(self, file_path: str):
        """
        Initialize the extractor.

        Args:
            file_path: Path of the source file
        """
        self.file_path = file_path
        self._warnings: List[str] = []

    @abstractmethod
    def extract(self) -> ExtractionResult:
        """
        Read every row of the source file.

        Returns:
            ExtractionResult containing all rows in file order
        """
        pass

    def add_warning(self, message: str) -> None:
        """Add a warning to the extraction."""
        self._warnings.append(message)
        logger.warning(f"Extraction warning: {message}")

    def reset(self) -> None:
        """Reset the extractor state."""
        self._warnings = []
