"""Exceptions raised by the import/export core."""

from typing import Any, Dict, Optional


class BulkflowError(Exception):
    """Base class for all bulkflow errors."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the shape stored on runs and importers."""
        return {
            "error_class": type(self).__name__,
            "error_message": str(self),
        }


class ConfigurationError(BulkflowError):
    """Field mapping configuration is invalid for the whole run."""


class MalformedSourceError(BulkflowError):
    """The source file cannot be parsed at all."""

    def __init__(self, message: str, line_num: Optional[int] = None):
        super().__init__(message)
        self.line_num = line_num


class MissingIdentifierError(BulkflowError):
    """A row has no identifier and none could be generated."""


class EntryCreationError(BulkflowError):
    """The entry store refused to create or reuse an entry."""
