"""XML codec for the Prophet request/response envelopes.

Requests are serialized from ``MethodDescriptor`` models into a
``<ProphetRequest>`` envelope. Responses are converted into the xml2json
mapping shape the parsers expect:

- attributes become keys prefixed with ``@``;
- element text becomes ``#text``, or the element's whole value when it has
  neither attributes nor children;
- empty elements become ``None``;
- repeated child elements become lists.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence
from xml.etree import ElementTree as ET

from ..schemas.prophet_contract import ATTR_PREFIX, TEXT_KEY, MethodDescriptor
from ..utils.shapes import as_list

logger = logging.getLogger(__name__)

REQUEST_ROOT = "ProphetRequest"
RESPONSE_ROOT = "ProphetResponse"
PROTOCOL_VERSION = "1"


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    return str(value)


def build_request(methods: Sequence[MethodDescriptor]) -> str:
    """Serialize method descriptors into one ``ProphetRequest`` document.

    Parameters
    ----------
    methods: Sequence[MethodDescriptor]
        Methods to invoke, emitted in the given order.

    Returns
    -------
    str
        The XML request body.

    Examples
    --------
    A ``getValue`` method with a ``nodeId`` criterion and a ``timeFilter``
    attribute criterion is rendered as::

        <ProphetRequest version="1">
          <Method name="getValue" uid="a---0">
            <nodeId>slot:/DataTree/Site</nodeId>
            <timeFilter daysOfWeek="1,4,7" />
          </Method>
        </ProphetRequest>
    """
    root = ET.Element(REQUEST_ROOT, version=PROTOCOL_VERSION)
    for method in methods:
        method_el = ET.SubElement(
            root, "Method", name=method.kind.value, uid=method.correlation_key
        )
        for criterion in method.criteria:
            child = ET.SubElement(method_el, criterion.name)
            if criterion.attrs is not None:
                for attr in criterion.attrs:
                    child.set(attr.name, _stringify(attr.value))
            elif criterion.value is not None:
                child.text = _stringify(criterion.value)
    return ET.tostring(root, encoding="unicode")


def _element_to_json(elem: ET.Element) -> Any:
    node: Dict[str, Any] = {f"{ATTR_PREFIX}{k}": v for k, v in elem.attrib.items()}
    for child in elem:
        value = _element_to_json(child)
        if child.tag in node:
            existing = node[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[child.tag] = [existing, value]
        else:
            node[child.tag] = value

    text = "".join(
        [elem.text or ""] + [(child.tail or "") for child in elem]
    ).strip()
    if not node:
        return text or None
    if text:
        node[TEXT_KEY] = text
    return node


def xml_to_json(text: str) -> Dict[str, Any]:
    """Convert an XML document into an xml2json-shaped mapping.

    Raises
    ------
    xml.etree.ElementTree.ParseError
        If ``text`` is not well-formed XML.

    Examples
    --------
    >>> xml_to_json('<a x="1"><b>t</b><b>u</b></a>')
    {'a': {'@x': '1', 'b': ['t', 'u']}}
    """
    root = ET.fromstring(text)
    return {root.tag: _element_to_json(root)}


def extract_method_responses(prophet_response: Any) -> List[Mapping[str, Any]]:
    """Return the ``MethodResponse`` entries of a converted response as a list."""
    if not isinstance(prophet_response, Mapping):
        return []
    responses = []
    for resp in as_list(prophet_response.get("MethodResponse")):
        if isinstance(resp, Mapping):
            responses.append(resp)
        else:
            logger.warning(
                "prophet.response.unreadable_method", extra={"raw": repr(resp)[:200]}
            )
    return responses
