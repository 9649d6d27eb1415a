"""Method response parsers.

Each parser takes the raw ``MethodResponse`` mappings of a single kind, as
produced by the XML -> JSON conversion, and returns normalized records. Raw
attributes appear as ``@``-prefixed keys and element text under ``#text``.

Parsers never raise: problems reported by the server are kept in the record's
``error`` field, and payloads that cannot be normalized are turned into error
records.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from ..schemas.prophet_contract import (
    ATTR_PREFIX,
    TEXT_KEY,
    BareExpression,
    DefinitionRecord,
    Expression,
    IdentifiedExpression,
    MethodKind,
    Units,
    ValueObject,
    ValueRecord,
)
from ..utils.shapes import as_list

logger = logging.getLogger(__name__)

UID_ATTR = f"{ATTR_PREFIX}uid"
NAME_ATTR = f"{ATTR_PREFIX}name"
TYPE_ATTR = f"{ATTR_PREFIX}type"
STATUS_ATTR = f"{ATTR_PREFIX}status"
ID_ATTR = f"{ATTR_PREFIX}id"

# Status code embedded in the value text, optionally preceded by the "- "
# placeholder the server emits when there is no number to report
_EMBEDDED_STATUS_RE = re.compile(r"(?:- )?(\{\w+\})")

Parser = Callable[[Iterable[Mapping[str, Any]]], List[Any]]


def _text(node: Any) -> Optional[str]:
    """Return the text content of an xml2json node (mapping or bare string)."""
    if isinstance(node, Mapping):
        return node.get(TEXT_KEY)
    return node


def _attr(node: Any, attr: str) -> Optional[str]:
    if isinstance(node, Mapping):
        return node.get(attr)
    return None


def _is_error(resp: Mapping[str, Any]) -> bool:
    return bool(resp.get("error"))


# getDataDefinition


def _normalize_units(raw: Any) -> Units:
    return Units(text=_text(raw), name=_attr(raw, NAME_ATTR))


def _normalize_actions(raw: Any) -> List[Any]:
    # <actions> is only a container for repeated <action> elements
    if isinstance(raw, Mapping):
        return list(as_list(raw.get("action")))
    return list(as_list(raw))


def _normalize_range(raw: Any) -> List[Any]:
    # <range> lists the legal enum values as <tag> elements
    if isinstance(raw, Mapping):
        return list(as_list(raw.get("tag")))
    return list(as_list(raw))


def parse_data_definitions(
    responses: Iterable[Mapping[str, Any]],
) -> List[DefinitionRecord]:
    """Normalize ``getDataDefinition`` method responses.

    Parameters
    ----------
    responses: Iterable[Mapping[str, Any]]
        Raw method responses of kind ``getDataDefinition``.

    Returns
    -------
    List[DefinitionRecord]
        One record per response, in input order. Error responses only carry
        ``correlation_key``, ``kind`` and ``error``.
    """
    records: List[DefinitionRecord] = []
    for resp in responses:
        key = resp.get(UID_ATTR)
        kind = resp.get(NAME_ATTR) or MethodKind.GET_DATA_DEFINITION.value
        if _is_error(resp):
            records.append(
                DefinitionRecord(correlation_key=key, kind=kind, error=resp["error"])
            )
            continue

        raw_def = resp.get("dataDefinition")
        fields: Dict[str, Any] = dict(raw_def) if isinstance(raw_def, Mapping) else {}
        fields["type"] = fields.pop(TYPE_ATTR, None)
        fields["trended"] = fields.get("trended") == "true"
        if "actions" in fields:
            fields["actions"] = _normalize_actions(fields["actions"])
        if "range" in fields:
            fields["range"] = _normalize_range(fields["range"])

        try:
            if "units" in fields:
                fields["units"] = _normalize_units(fields["units"])
            records.append(DefinitionRecord(correlation_key=key, kind=kind, **fields))
        except (ValidationError, TypeError) as exc:
            logger.warning(
                "dataeye.parse.definition_invalid",
                extra={"correlation_key": key, "error": str(exc)},
            )
            records.append(
                DefinitionRecord(
                    correlation_key=key,
                    kind=kind,
                    error=f"Unreadable data definition: {exc}",
                )
            )
    return records


# getValue


def extract_embedded_status(value_obj: ValueObject) -> ValueObject:
    """Move a ``{status}`` token found in the value text into ``statuses``.

    Some servers deliver the status inside the value (``"72 {alarm}"``)
    instead of the ``status`` attribute, and send ``"- {alarm}"`` when there
    is no number at all. The token and a directly preceding ``"- "`` are
    removed and the remaining text is trimmed.
    """
    raw = value_obj.value
    if not isinstance(raw, str):
        return value_obj
    match = _EMBEDDED_STATUS_RE.search(raw)
    if match is None:
        return value_obj
    value_obj.statuses = [match.group(1)]
    value_obj.value = (raw[: match.start()] + raw[match.end() :]).strip()
    return value_obj


def _build_value_obj(raw: Any) -> ValueObject:
    value_obj = ValueObject(
        type=_attr(raw, TYPE_ATTR),
        value=_text(raw),
        true_text=_attr(raw, f"{ATTR_PREFIX}trueText"),
        false_text=_attr(raw, f"{ATTR_PREFIX}falseText"),
    )
    status = _attr(raw, STATUS_ATTR)
    if status:
        value_obj.statuses = status.split(",")
    return extract_embedded_status(value_obj)


def _normalize_expression(raw: Any) -> Expression:
    # xml2json collapses <exp> to its text when it has no attributes
    if isinstance(raw, Mapping) and ID_ATTR in raw:
        return IdentifiedExpression(id=str(raw[ID_ATTR]), value=raw.get(TEXT_KEY))
    return BareExpression(value=raw)


def _normalize_expressions(raw: Any) -> List[Expression]:
    entries = raw.get("exp") if isinstance(raw, Mapping) else raw
    return [_normalize_expression(entry) for entry in as_list(entries)]


def parse_values(responses: Iterable[Mapping[str, Any]]) -> List[ValueRecord]:
    """Normalize ``getValue`` method responses.

    Parameters
    ----------
    responses: Iterable[Mapping[str, Any]]
        Raw method responses of kind ``getValue``.

    Returns
    -------
    List[ValueRecord]
        One record per response, in input order. ``value_obj`` is
        ``{type: "error", value: ""}`` for error responses and empty when the
        response carried no ``value`` element.
    """
    records: List[ValueRecord] = []
    for resp in responses:
        fields: Dict[str, Any] = {
            k: v
            for k, v in resp.items()
            if k not in (UID_ATTR, NAME_ATTR, "value", "expressions")
        }
        key = resp.get(UID_ATTR)
        kind = resp.get(NAME_ATTR) or MethodKind.GET_VALUE.value

        try:
            if _is_error(resp):
                fields["value_obj"] = ValueObject(type="error", value="")
            elif resp.get("value") is not None:
                fields["value_obj"] = _build_value_obj(resp["value"])
            else:
                fields["value_obj"] = ValueObject()
            if "expressions" in resp:
                fields["expressions"] = _normalize_expressions(resp["expressions"])
            records.append(ValueRecord(correlation_key=key, kind=kind, **fields))
        except (ValidationError, TypeError) as exc:
            logger.warning(
                "dataeye.parse.value_invalid",
                extra={"correlation_key": key, "error": str(exc)},
            )
            records.append(
                ValueRecord(
                    correlation_key=key,
                    kind=kind,
                    error=f"Unreadable value: {exc}",
                    value_obj=ValueObject(type="error", value=""),
                )
            )
    return records


BUILTIN_PARSERS: Dict[str, Parser] = {
    MethodKind.GET_DATA_DEFINITION.value: parse_data_definitions,
    MethodKind.GET_VALUE.value: parse_values,
}
