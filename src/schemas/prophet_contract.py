"""
Prophet Data Contract Schemas

Pydantic models describing both sides of a Prophet round trip:
1. Datum requests and the method descriptors they expand into
2. Normalized definition/value records produced by the response parsers
3. The merged per-datum record handed back to application code

Raw method responses are not modelled: they arrive as xml2json-shaped
mappings and are only ever read by the parsers in ``src.domain.parsers``.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# Markers used by the XML -> JSON conversion
ATTR_PREFIX = "@"
TEXT_KEY = "#text"


class MethodKind(str, Enum):
    """Server-side operations issued by the correlation layer"""

    GET_DATA_DEFINITION = "getDataDefinition"
    GET_VALUE = "getValue"


class ErrorCode(str, Enum):
    """Standardized error codes"""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    UNSUPPORTED_METHOD = "UNSUPPORTED_METHOD"
    INVALID_RECORD = "INVALID_RECORD"


class ErrorDetails(BaseModel):
    """Structured error description"""

    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None


# Requests


class DatumRequest(BaseModel):
    """One node and the data paths to read from it.

    ``data`` may be given as a single path or a list of paths; it is always
    stored as a list. The remaining optional fields are the auxiliary
    ``getValue`` criteria understood by Prophet. Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    node_id: str = Field(..., alias="nodeId", description="Slot path of the node")
    data: List[str] = Field(..., min_length=1, description="Data paths to read")
    uid: Optional[str] = Field(
        None, description="Caller identifier; generated when omitted"
    )
    tags: Optional[Union[str, List[str]]] = None
    aggregation: Optional[str] = None
    time_range: Optional[Union[str, Dict[str, Any]]] = Field(None, alias="timeRange")
    time_filter: Optional[Union[str, Dict[str, Any]]] = Field(
        None, alias="timeFilter"
    )
    rollup: Optional[Union[str, Dict[str, Any]]] = None
    auto_delta: Optional[Union[bool, str]] = Field(None, alias="autoDelta")
    expressions: Optional[Union[str, List[Any], Dict[str, Any]]] = None

    @field_validator("data", mode="before")
    @classmethod
    def _data_as_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("uid", mode="before")
    @classmethod
    def _uid_as_str(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class CriterionAttr(BaseModel):
    """Attribute of an object-valued criterion"""

    model_config = ConfigDict(frozen=True)

    name: str
    value: Any = None


class Criterion(BaseModel):
    """Child element of a method: either a text value or a set of attributes"""

    model_config = ConfigDict(frozen=True)

    name: str
    value: Any = None
    attrs: Optional[Tuple[CriterionAttr, ...]] = None


class MethodDescriptor(BaseModel):
    """A single method invocation inside a Prophet request envelope"""

    model_config = ConfigDict(frozen=True)

    correlation_key: str
    kind: MethodKind
    criteria: Tuple[Criterion, ...] = ()


# Normalized records


class Units(BaseModel):
    """Engineering units of a definition (display text and symbolic name)"""

    text: Optional[str] = None
    name: Optional[str] = None


class ValueObject(BaseModel):
    """Typed raw value as reported by ``getValue``.

    An absent value is represented by a ValueObject whose fields are all
    ``None``.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: Optional[str] = None
    value: Optional[str] = None
    statuses: Optional[List[str]] = None
    true_text: Optional[str] = Field(None, alias="trueText")
    false_text: Optional[str] = Field(None, alias="falseText")

    @property
    def is_empty(self) -> bool:
        """True when the server did not deliver a value at all."""
        return self.type is None and self.value is None


class IdentifiedExpression(BaseModel):
    """Expression result that carried an ``id`` attribute"""

    id: str
    value: Optional[Any] = None


class BareExpression(BaseModel):
    """Expression result delivered as plain element content"""

    value: Optional[Any] = None


Expression = Union[IdentifiedExpression, BareExpression]


class _Record(BaseModel):
    """Fields shared by every normalized record.

    Extra fields are allowed: Prophet definitions carry arbitrary properties
    that are copied through untouched.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    correlation_key: Optional[str] = None
    error: Optional[Any] = None


class DefinitionRecord(_Record):
    """Normalized ``getDataDefinition`` response"""

    kind: str = MethodKind.GET_DATA_DEFINITION.value
    type: Optional[str] = None
    trended: Optional[bool] = None
    units: Optional[Units] = None
    actions: Optional[List[Any]] = None
    range: Optional[List[Any]] = None
    precision: Optional[Any] = None


class ValueRecord(_Record):
    """Normalized ``getValue`` response"""

    kind: str = MethodKind.GET_VALUE.value
    value_obj: ValueObject = Field(default_factory=ValueObject)
    expressions: Optional[List[Expression]] = None


class MergedRecord(_Record):
    """Definition and value of one datum joined on their correlation key.

    ``value`` is derived from ``type``, ``value_obj``, ``units`` and
    ``precision`` each time it is read, so mutating those fields is always
    reflected.
    """

    type: Optional[str] = None
    trended: Optional[bool] = None
    units: Optional[Units] = None
    actions: Optional[List[Any]] = None
    range: Optional[List[Any]] = None
    precision: Optional[Any] = None
    value_obj: Optional[ValueObject] = None
    expressions: Optional[List[Expression]] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value(self) -> Any:
        """Display-ready value computed by the value coercion rules."""
        from ..domain.coercion import value_of

        return value_of(self)


Record = Union[DefinitionRecord, ValueRecord]
