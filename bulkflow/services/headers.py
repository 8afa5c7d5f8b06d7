"""Export column header derivation."""

from typing import Any, Iterable, List, Mapping

LEADING_HEADERS = ("id", "model")


def export_headers(sample: Iterable[Mapping[str, Any]]) -> List[str]:
    """
    Union the parsed-metadata keys of sampled entries into export headers.

    ``id`` and ``model`` always come first; other keys keep the order in
    which they were first seen. Numbered keys such as ``field_1`` and
    ``field_1_2`` are produced upstream and are passed through unchanged.
    """
    headers = dict.fromkeys(LEADING_HEADERS)
    for parsed_metadata in sample:
        for key in parsed_metadata or {}:
            headers.setdefault(str(key))
    return list(headers)
