"""CSV source file reader."""

import csv
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional
from datetime import datetime

from .base import BaseExtractor, ExtractionResult
from ..errors import MalformedSourceError
from ..models.entry import Row, freeze_row

logger = logging.getLogger(__name__)

# Cells may hold long free text such as descriptions or transcripts
FIELD_SIZE_LIMIT = min(sys.maxsize, 2**31 - 1)


class CSVExtractor(BaseExtractor):
    """
    Reads a CSV source file into rows keyed by header.

    Quoting is parsed strictly, so an unbalanced or stray quote is a
    structural error for the whole file rather than a silently mangled row.
    Rows whose cells are all blank are dropped.
    """

    def __init__(
        self,
        file_path: str,
        encoding: str = "utf-8-sig",
        delimiter: str = ","
    ):
        """
        Initialize the CSV extractor.

        Args:
            file_path: Path of the CSV file
            encoding: File encoding
            delimiter: CSV delimiter character
        """
        super().__init__(file_path)
        self.encoding = encoding
        self.delimiter = delimiter
        self._headers: List[str] = []
        self._result: Optional[ExtractionResult] = None

    def extract(self) -> ExtractionResult:
        """Read all rows; the file is only parsed once per extractor."""
        if self._result is not None:
            return self._result

        self.reset()
        started_at = datetime.utcnow()
        path = Path(self.file_path)
        logger.info(f"Processing file: {path}")

        try:
            rows = self._read(path, self.encoding)
        except UnicodeDecodeError:
            logger.warning(f"{self.encoding} decode failed, trying latin-1 for {path}")
            rows = self._read(path, "latin-1")

        result = ExtractionResult(
            file_path=str(path),
            rows=rows,
            total_extracted=len(rows),
            warnings=self._warnings.copy(),
            started_at=started_at,
            completed_at=datetime.utcnow(),
        )
        result.metadata["headers"] = self._headers
        self._result = result

        logger.info(f"Extracted {len(rows)} rows from {path}")
        return result

    def _read(self, path: Path, encoding: str) -> List[Row]:
        rows: List[Row] = []
        self._headers = []

        csv.field_size_limit(FIELD_SIZE_LIMIT)
        with open(path, "r", encoding=encoding, newline="") as f:
            reader = csv.reader(f, delimiter=self.delimiter, strict=True)
            try:
                header = next(reader, None)
                if header is None:
                    return rows
                self._headers = [h.strip() for h in header]

                for row in reader:
                    if not any(cell.strip() for cell in row):
                        continue
                    if len(row) > len(self._headers):
                        self.add_warning(
                            f"Line {reader.line_num} has {len(row)} cells for "
                            f"{len(self._headers)} headers; extra cells ignored"
                        )
                    rows.append(freeze_row(self._to_mapping(row)))
            except csv.Error as e:
                raise MalformedSourceError(
                    f"Unable to parse {path} at line {reader.line_num}: {e}",
                    line_num=reader.line_num,
                ) from e

        return rows

    def _to_mapping(self, row: List[str]) -> Dict[str, str]:
        data: Dict[str, str] = {}
        for idx, header in enumerate(self._headers):
            if not header or header in data:
                continue
            data[header] = row[idx].strip() if idx < len(row) else ""
        return data
