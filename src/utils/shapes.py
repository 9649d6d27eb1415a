"""Shape normalization helpers for xml2json-derived payloads.

The XML -> JSON conversion emits a bare object for an element that occurs
once and a list when it repeats. Parsers normalize those fields with
``as_list`` before reading them.
"""

from __future__ import annotations

from typing import Any, List


def as_list(value: Any) -> List[Any]:
    """Return ``value`` as a list.

    ``None`` becomes an empty list, lists are returned as-is and anything else
    is wrapped in a single-element list.

    Examples
    --------
    >>> as_list({"@id": "a"})
    [{'@id': 'a'}]
    >>> as_list([1, 2])
    [1, 2]
    >>> as_list(None)
    []
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
