"""Correlation layer: one merged record per requested datum.

Prophet serves a datum's metadata (``getDataDefinition``) and its live value
(``getValue``) through two separate methods. ``DataEyeClient`` issues both for
every requested data path in one batched round trip, tags each pair with a
shared correlation key, and joins the parsed responses back into
``MergedRecord`` objects in request order.

Example
-------
    client = DataEyeClient(ProphetAdapter("http://webeye.example.com"))
    record = await client.get_data_values_for_nodes(
        {
            "nodeId": "slot:/DataTree/WestRegion/Team01/MRTU01",
            "data": "slot:/DataTree/data/Haystack/hvac/temp/air/numeric/zoneTemp",
            "timeRange": "today",
        }
    )
    print(record.value)
"""

from __future__ import annotations

import inspect
import logging
import re
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ..adapters import ProphetTransport
from ..codec.prophet_xml import build_request, extract_method_responses
from ..schemas.prophet_contract import (
    Criterion,
    CriterionAttr,
    DatumRequest,
    DefinitionRecord,
    MergedRecord,
    MethodDescriptor,
    MethodKind,
    Record,
    ValueRecord,
)
from ..utils.correlation import request_scope
from ..utils.identifiers import IdGenerator
from ..utils.partial_results import PartialResult, find_partial_pairs
from .dispatch import dispatch_method_responses

logger = logging.getLogger(__name__)

# (DatumRequest field, Prophet criterion name) accepted by getValue, in the
# order they are emitted
GETVALUE_CRITERIA: Tuple[Tuple[str, str], ...] = (
    ("tags", "tags"),
    ("aggregation", "aggregation"),
    ("time_range", "timeRange"),
    ("time_filter", "timeFilter"),
    ("rollup", "rollup"),
    ("auto_delta", "autoDelta"),
    ("expressions", "expressions"),
)

KEY_SEPARATOR = "---"
_KEY_SUFFIX_RE = re.compile(r"-{3}\d+$")

RequestInput = Union[DatumRequest, Mapping[str, Any]]
MergedResult = Union[MergedRecord, List[MergedRecord]]


def make_correlation_key(uid: str, index: int) -> str:
    """Key shared by the two methods issued for ``data[index]`` of a request."""
    return f"{uid}{KEY_SEPARATOR}{index}"


def restore_identifier(correlation_key: str) -> str:
    """Strip the ``---<index>`` suffix added by ``make_correlation_key``."""
    return _KEY_SUFFIX_RE.sub("", correlation_key)


def _value_criteria(request: DatumRequest) -> List[Criterion]:
    criteria: List[Criterion] = []
    for field_name, criterion_name in GETVALUE_CRITERIA:
        value = getattr(request, field_name)
        if value is None:
            continue
        if isinstance(value, Mapping):
            attrs = tuple(CriterionAttr(name=k, value=v) for k, v in value.items())
            criteria.append(Criterion(name=criterion_name, attrs=attrs))
        elif criterion_name == "tags" and isinstance(value, list):
            criteria.append(Criterion(name=criterion_name, value=",".join(value)))
        else:
            criteria.append(Criterion(name=criterion_name, value=value))
    return criteria


@dataclass
class CorrelationPlan:
    """Methods to send for one call and the keys to join their results on.

    Attributes
    ----------
    methods: List[MethodDescriptor]
        Definition/value method pairs, in request order.
    match_list: List[str]
        One correlation key per requested datum, in request order.
    singular: bool
        True when the caller passed a single request rather than a list.
    """

    methods: List[MethodDescriptor] = field(default_factory=list)
    match_list: List[str] = field(default_factory=list)
    singular: bool = False


def plan_requests(
    requests: Union[RequestInput, Sequence[RequestInput]],
    id_generator: IdGenerator,
) -> CorrelationPlan:
    """Expand datum requests into paired method descriptors.

    Parameters
    ----------
    requests: Union[RequestInput, Sequence[RequestInput]]
        A single request or a list of them; mappings are validated into
        ``DatumRequest``.
    id_generator: IdGenerator
        Source of identifiers for requests that carry no ``uid``.

    Returns
    -------
    CorrelationPlan
        Two descriptors and one match-list entry per data path.

    Raises
    ------
    pydantic.ValidationError
        If a request mapping is missing ``nodeId`` or ``data``.
    """
    singular = not isinstance(requests, (list, tuple))
    batch = [requests] if singular else list(requests)  # type: ignore[list-item]
    plan = CorrelationPlan(singular=singular)

    for raw in batch:
        request = raw if isinstance(raw, DatumRequest) else DatumRequest.model_validate(raw)
        uid = request.uid or id_generator.next_id()
        extra_criteria = _value_criteria(request)
        for index, data_path in enumerate(request.data):
            key = make_correlation_key(uid, index)
            plan.match_list.append(key)
            base = (
                Criterion(name="nodeId", value=request.node_id),
                Criterion(name="data", value=data_path),
            )
            plan.methods.append(
                MethodDescriptor(
                    correlation_key=key,
                    kind=MethodKind.GET_DATA_DEFINITION,
                    criteria=base,
                )
            )
            plan.methods.append(
                MethodDescriptor(
                    correlation_key=key,
                    kind=MethodKind.GET_VALUE,
                    criteria=base + tuple(extra_criteria),
                )
            )
    return plan


def _set_fields(record: Record) -> Dict[str, Any]:
    declared = type(record).model_fields
    data = {
        name: getattr(record, name)
        for name in record.model_fields_set
        if name in declared
    }
    data.update(record.model_extra or {})
    return data


def merge_pair(
    correlation_key: str,
    definition: Optional[DefinitionRecord],
    value: Optional[ValueRecord],
) -> MergedRecord:
    """Shallow-merge a definition and a value record into one MergedRecord.

    Fields explicitly set on ``value`` win over those on ``definition``. Either
    half may be ``None``. The kind tag is dropped and the correlation key is
    restored to the caller's identifier.
    """
    data: Dict[str, Any] = {}
    for record in (definition, value):
        if record is not None:
            data.update(_set_fields(record))
    data.pop("kind", None)
    data["correlation_key"] = restore_identifier(correlation_key)
    return MergedRecord.model_validate(data)


def merge_records(
    match_list: Sequence[str], records: Sequence[Record]
) -> Tuple[List[MergedRecord], PartialResult]:
    """Join parsed records into one MergedRecord per key of ``match_list``.

    Parameters
    ----------
    match_list: Sequence[str]
        Correlation keys in request order.
    records: Sequence[Record]
        Dispatcher output; records are matched on ``correlation_key`` and
        told apart by ``kind``.

    Returns
    -------
    Tuple[List[MergedRecord], PartialResult]
        Merged records in ``match_list`` order and the pairing report.
    """
    pairs: Dict[str, Tuple[Optional[DefinitionRecord], Optional[ValueRecord]]] = {}
    for record in records:
        key = getattr(record, "correlation_key", None)
        if key is None:
            continue
        definition, value = pairs.get(key, (None, None))
        kind = getattr(record, "kind", None)
        if kind == MethodKind.GET_DATA_DEFINITION.value and definition is None:
            definition = record  # type: ignore[assignment]
        elif kind == MethodKind.GET_VALUE.value and value is None:
            value = record  # type: ignore[assignment]
        pairs[key] = (definition, value)

    report = find_partial_pairs(match_list, pairs)
    merged = [merge_pair(key, *pairs.get(key, (None, None))) for key in match_list]
    return merged, report


class DataEyeClient:
    """Client for reading normalized data values from a Prophet server.

    Parameters
    ----------
    transport: ProphetTransport
        Performs the HTTP round trip (usually a ``ProphetAdapter``).
    id_generator: Optional[IdGenerator]
        Generates identifiers for requests without a ``uid``. Each client
        gets its own generator by default.
    """

    def __init__(
        self,
        transport: ProphetTransport,
        id_generator: Optional[IdGenerator] = None,
    ) -> None:
        self._transport = transport
        self._ids = id_generator or IdGenerator()

    async def raw_request(self, methods: Sequence[MethodDescriptor]) -> Dict[str, Any]:
        """Send ``methods`` in one envelope and return the converted response.

        Raises
        ------
        TransportError
            If the round trip fails.
        """
        payload = build_request(methods)
        return await self._transport.send(payload)

    async def call_methods(self, methods: Sequence[MethodDescriptor]) -> List[Record]:
        """Send ``methods`` and return the parsed records of every response.

        Raises
        ------
        TransportError
            If the round trip fails.
        MissingParserError
            If the server answered with a method kind that has no parser.
        """
        prophet_response = await self.raw_request(methods)
        responses = extract_method_responses(prophet_response)
        logger.debug(
            "dataeye.call.responses",
            extra={"sent": len(methods), "received": len(responses)},
        )
        return dispatch_method_responses(responses)

    async def get_data_values_with_report(
        self,
        requests: Union[RequestInput, Sequence[RequestInput]],
    ) -> Tuple[MergedResult, PartialResult]:
        """Like ``get_data_values_for_nodes`` but also return the pairing report.

        The report belongs to this call only; it lists the data paths for
        which the server dropped the definition, the value, or both.

        Returns
        -------
        Tuple[MergedResult, PartialResult]
            The merged result (a single record for singular input) and the
            pairing report of this round trip.
        """
        plan = plan_requests(requests, self._ids)
        with request_scope() as req_id:
            logger.info(
                "dataeye.request.start",
                extra={
                    "req_id": req_id,
                    "data_points": len(plan.match_list),
                    "methods": len(plan.methods),
                },
            )
            records = await self.call_methods(plan.methods)
            merged, report = merge_records(plan.match_list, records)
            logger.info(
                "dataeye.request.complete",
                extra={
                    "req_id": req_id,
                    "data_points": len(merged),
                    "incomplete": len(report.failures),
                },
            )

        result: MergedResult = merged[0] if plan.singular else merged
        return result, report

    async def get_data_values_for_nodes(
        self,
        requests: Union[RequestInput, Sequence[RequestInput]],
        callback: Optional[Callable[[MergedResult], Any]] = None,
    ) -> MergedResult:
        """Read definitions and values for one or more nodes.

        Parameters
        ----------
        requests: Union[RequestInput, Sequence[RequestInput]]
            A single datum request or a list of them. ``data`` may be one
            path or several; criteria such as ``timeRange`` or
            ``aggregation`` are forwarded to ``getValue``.
        callback: Optional[Callable[[MergedResult], Any]]
            Called once with the result; may be a coroutine function.

        Returns
        -------
        MergedResult
            One ``MergedRecord`` per data path in request order, or a single
            record when a single request was passed.

        Raises
        ------
        TransportError
            If the round trip fails.
        MissingParserError
            If the response contains a method kind without a parser.
        """
        result, _ = await self.get_data_values_with_report(requests)
        if callback is not None:
            outcome = callback(result)
            if inspect.isawaitable(outcome):
                await outcome
        return result
