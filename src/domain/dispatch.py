"""Response dispatcher and parser registry.

A Prophet round trip returns one flat list of ``MethodResponse`` mappings of
mixed kinds. The dispatcher groups them by kind (the ``@name`` attribute),
runs each group through the parser registered for that kind and concatenates
the results.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..errors import MissingParserError
from .parsers import BUILTIN_PARSERS, NAME_ATTR, Parser

logger = logging.getLogger(__name__)

_parsers: Dict[str, Parser] = dict(BUILTIN_PARSERS)


def register_parser(kind: str, parser: Parser) -> None:
    """Register ``parser`` for method responses named ``kind``.

    Registering an existing kind replaces its parser.
    """
    _parsers[kind] = parser
    logger.debug("dataeye.dispatch.parser_registered", extra={"kind": kind})


def get_parser(kind: Optional[str]) -> Parser:
    """Return the parser registered for ``kind``.

    Raises
    ------
    MissingParserError
        If no parser is registered under ``kind``.
    """
    if kind is None or kind not in _parsers:
        raise MissingParserError(kind)
    return _parsers[kind]


def registered_kinds() -> List[str]:
    """List the response kinds that currently have a parser."""
    return list(_parsers.keys())


def reset_parsers() -> None:
    """Test-only helper restoring the built-in parsers."""
    _parsers.clear()
    _parsers.update(BUILTIN_PARSERS)


def _kinds_in_order(responses: Sequence[Mapping[str, Any]]) -> List[Optional[str]]:
    seen: Dict[Optional[str], None] = {}
    for resp in responses:
        seen.setdefault(resp.get(NAME_ATTR))
    return list(seen)


def dispatch_method_responses(
    responses: Iterable[Mapping[str, Any]],
) -> List[Any]:
    """Parse a batch of raw method responses.

    Parameters
    ----------
    responses: Iterable[Mapping[str, Any]]
        Every ``MethodResponse`` of one round trip, in server order.

    Returns
    -------
    List[Any]
        Parsed records grouped by kind (kinds in order of first appearance),
        keeping the server order within each group.

    Raises
    ------
    MissingParserError
        If any response kind has no registered parser. Nothing is parsed in
        that case.
    """
    batch = list(responses)
    kinds = _kinds_in_order(batch)
    parsers = {kind: get_parser(kind) for kind in kinds}

    records: List[Any] = []
    for kind in kinds:
        group = [resp for resp in batch if resp.get(NAME_ATTR) == kind]
        records.extend(parsers[kind](group))
        logger.debug(
            "dataeye.dispatch.parsed", extra={"kind": kind, "count": len(group)}
        )
    return records
