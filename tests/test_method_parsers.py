"""
Tests for getDataDefinition and getValue response parsers.
"""

import pytest

from src.domain.parsers import (
    extract_embedded_status,
    parse_data_definitions,
    parse_values,
)
from src.schemas.prophet_contract import (
    BareExpression,
    IdentifiedExpression,
    Units,
    ValueObject,
)


def _definition(uid="n1---0", **definition):
    return {"@name": "getDataDefinition", "@uid": uid, "dataDefinition": definition}


def _value(uid="n1---0", **fields):
    return {"@name": "getValue", "@uid": uid, **fields}


# ============================================================================
# getDataDefinition
# ============================================================================


def test_definition_basic_fields():
    """Test key, kind, type and copied fields of a definition."""
    [record] = parse_data_definitions(
        [
            _definition(
                **{
                    "@type": "numeric",
                    "trended": "true",
                    "precision": "2",
                    "displayName": "Zone Temp",
                }
            )
        ]
    )
    assert record.correlation_key == "n1---0"
    assert record.kind == "getDataDefinition"
    assert record.type == "numeric"
    assert record.trended is True
    assert record.precision == "2"
    assert record.model_extra["displayName"] == "Zone Temp"
    assert "@type" not in record.model_extra


@pytest.mark.parametrize("raw", ["True", "", "false", "1", None])
def test_definition_trended_strict(raw):
    """Test only the literal string 'true' marks a definition as trended."""
    [record] = parse_data_definitions([_definition(**{"@type": "numeric", "trended": raw})])
    assert record.trended is False


def test_definition_missing_trended_is_false():
    """Test an absent trended field becomes False."""
    [record] = parse_data_definitions([_definition(**{"@type": "string"})])
    assert record.trended is False


def test_definition_units():
    """Test units are reshaped into text and name."""
    [record] = parse_data_definitions(
        [_definition(units={"@name": "fahrenheit", "#text": "°F"})]
    )
    assert record.units == Units(text="°F", name="fahrenheit")


def test_definition_units_text_only():
    """Test units delivered as bare text keep the text and no name."""
    [record] = parse_data_definitions([_definition(units="%")])
    assert record.units == Units(text="%", name=None)


def test_definition_single_action_promoted_to_list():
    """Test a single action object becomes a one-element list."""
    action = {"@name": "override", "@type": "numeric"}
    [record] = parse_data_definitions([_definition(actions={"action": action})])
    assert record.actions == [action]


def test_definition_action_list_flattened():
    """Test repeated actions are promoted to a flat list."""
    actions = [{"@name": "override"}, {"@name": "auto"}]
    [record] = parse_data_definitions([_definition(actions={"action": actions})])
    assert record.actions == actions


def test_definition_range_tags_as_list():
    """Test enum range tags are collected into a list."""
    [record] = parse_data_definitions(
        [_definition(**{"@type": "enum", "range": {"tag": "occupied"}})]
    )
    assert record.range == ["occupied"]


def test_definition_error_only_carries_error():
    """Test an error definition keeps only key, kind and error."""
    resp = _definition(**{"@type": "numeric"})
    resp["error"] = "Unknown data path"
    [record] = parse_data_definitions([resp])
    assert record.error == "Unknown data path"
    assert record.type is None
    assert record.trended is None
    assert record.model_fields_set == {"correlation_key", "kind", "error"}


def test_definition_without_payload():
    """Test a response with no dataDefinition element still yields a record."""
    [record] = parse_data_definitions([{"@name": "getDataDefinition", "@uid": "x"}])
    assert record.correlation_key == "x"
    assert record.type is None
    assert record.trended is False


def test_definition_preserves_order():
    """Test records are returned in input order."""
    records = parse_data_definitions(
        [_definition(uid="a---0"), _definition(uid="b---0"), _definition(uid="c---0")]
    )
    assert [r.correlation_key for r in records] == ["a---0", "b---0", "c---0"]


# ============================================================================
# getValue
# ============================================================================


def test_value_basic():
    """Test type and text of the value element become the value object."""
    [record] = parse_values(
        [_value(value={"@type": "numeric", "#text": "72.5"})]
    )
    assert record.correlation_key == "n1---0"
    assert record.kind == "getValue"
    assert record.value_obj.type == "numeric"
    assert record.value_obj.value == "72.5"
    assert record.value_obj.statuses is None


def test_value_status_attribute_split():
    """Test the status attribute is split on commas."""
    [record] = parse_values(
        [_value(value={"@type": "numeric", "#text": "72", "@status": "alarm,stale"})]
    )
    assert record.value_obj.statuses == ["alarm", "stale"]
    assert record.value_obj.value == "72"


def test_value_labels_carried():
    """Test trueText/falseText attributes are kept on the value object."""
    [record] = parse_values(
        [
            _value(
                value={
                    "@type": "boolean",
                    "#text": "true",
                    "@trueText": "On",
                    "@falseText": "Off",
                }
            )
        ]
    )
    assert record.value_obj.true_text == "On"
    assert record.value_obj.false_text == "Off"


def test_value_embedded_status_extracted():
    """Test a status token inside the value text is moved to statuses."""
    [record] = parse_values([_value(value={"@type": "numeric", "#text": "72 {alarm}"})])
    assert record.value_obj.statuses == ["{alarm}"]
    assert record.value_obj.value == "72"


def test_value_embedded_status_with_dash_placeholder():
    """Test the '- ' placeholder before a status token is removed."""
    [record] = parse_values([_value(value={"@type": "numeric", "#text": "- {alarm}"})])
    assert record.value_obj.statuses == ["{alarm}"]
    assert record.value_obj.value == ""


def test_value_embedded_status_overrides_attribute():
    """Test an embedded token replaces statuses from the attribute."""
    [record] = parse_values(
        [_value(value={"@type": "numeric", "#text": "5 {fault}", "@status": "ok"})]
    )
    assert record.value_obj.statuses == ["{fault}"]


def test_extract_embedded_status_keeps_negative_numbers():
    """Test a negative value without a status token is untouched."""
    value_obj = extract_embedded_status(ValueObject(type="numeric", value="-5 "))
    assert value_obj.value == "-5 "
    assert value_obj.statuses is None


def test_value_text_only_element():
    """Test a value element without attributes keeps its text."""
    [record] = parse_values([_value(value="hello")])
    assert record.value_obj.type is None
    assert record.value_obj.value == "hello"


def test_value_missing_gives_empty_value_object():
    """Test a response without a value element yields an empty value object."""
    [record] = parse_values([_value()])
    assert record.value_obj == ValueObject()
    assert record.value_obj.is_empty


def test_value_error_gives_error_value_object():
    """Test error responses carry the error-typed empty value."""
    [record] = parse_values([_value(error="Point is down")])
    assert record.value_obj == ValueObject(type="error", value="")
    assert record.error == "Point is down"


def test_value_expressions_with_ids():
    """Test identified expressions keep id and text."""
    [record] = parse_values(
        [
            _value(
                value={"@type": "numeric", "#text": "1"},
                expressions={
                    "exp": [{"@id": "max", "#text": "80"}, {"@id": "min", "#text": "60"}]
                },
            )
        ]
    )
    assert record.expressions == [
        IdentifiedExpression(id="max", value="80"),
        IdentifiedExpression(id="min", value="60"),
    ]


def test_value_single_bare_expression():
    """Test a single expression without attributes becomes a bare expression."""
    [record] = parse_values([_value(expressions={"exp": "42"})])
    assert record.expressions == [BareExpression(value="42")]


def test_value_extra_fields_copied():
    """Test unrelated response fields are copied through."""
    [record] = parse_values([_value(value="1", timestamp="2013-07-26T10:00:00")])
    assert record.model_extra["timestamp"] == "2013-07-26T10:00:00"
    assert "@uid" not in record.model_extra


def test_value_unreadable_payload_becomes_error_record():
    """Test payloads that cannot be normalized do not raise."""
    [record] = parse_values([_value(value=["1", "2"])])
    assert record.correlation_key == "n1---0"
    assert record.value_obj.type == "error"
    assert "Unreadable value" in record.error
