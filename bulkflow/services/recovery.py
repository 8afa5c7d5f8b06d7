"""Recovery files: failed rows out for correction, corrected uploads back in."""

import csv
import logging
import shutil
from pathlib import Path
from typing import Any, Iterable, List, Union

from ..models.entry import Entry, ObjectType

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def errored_entries(entries: Iterable[Entry]) -> List[Entry]:
    """
    Failed entries that belong in a correction file.

    Collections are left out; they are rebuilt through their own recreation
    path rather than re-imported from a correction file.
    """
    return [e for e in entries if e.failed and e.type != ObjectType.COLLECTION]


def write_errored_entries_file(entries: Iterable[Entry], file_path: PathLike) -> bool:
    """
    Write the raw metadata of failed, non-collection entries as a CSV file.

    Returns:
        True once the file has been written
    """
    failed = errored_entries(entries)
    headers = list(dict.fromkeys(key for e in failed for key in e.raw_metadata))

    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=headers, extrasaction="ignore")
        writer.writeheader()
        for entry in failed:
            writer.writerow({k: _cell(v) for k, v in entry.raw_metadata.items()})

    logger.info(f"Wrote {len(failed)} errored entries to {path}")
    return True


def upload_path(uploaded_file: Any) -> Path:
    """Filesystem path of an uploaded file, a path string, or a Path."""
    if isinstance(uploaded_file, (str, Path)):
        return Path(uploaded_file)
    path = getattr(uploaded_file, "path", None)
    if path is None:
        raise TypeError(f"cannot determine path of uploaded file {uploaded_file!r}")
    return Path(path)


def corrected_file_name(import_file_path: PathLike) -> str:
    """``failed.csv`` becomes ``failed_corrected_entries.csv``."""
    return f"{Path(import_file_path).stem}_corrected_entries.csv"


def relocate_upload(uploaded_file: Any, destination: PathLike) -> str:
    """Move an uploaded file to its destination; the source no longer exists afterwards."""
    source = upload_path(uploaded_file)
    target = Path(destination)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(target))
    logger.info(f"Moved corrected upload {source} to {target}")
    return str(destination)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "|".join(str(v) for v in value)
    return str(value)
