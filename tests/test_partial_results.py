"""
Tests for partial results handling utilities.
"""

import logging

from src.utils.partial_results import (
    MISSING_BOTH,
    MISSING_DEFINITION,
    MISSING_VALUE,
    FailureInfo,
    PartialResult,
    find_partial_pairs,
    format_failure_summary,
)


def test_find_partial_pairs_all_complete():
    """Test every key with both halves is a success."""
    pairs = {"a---0": ("def", "val"), "a---1": ("def", "val")}
    result = find_partial_pairs(["a---0", "a---1"], pairs)

    assert result.all_succeeded
    assert not result.has_failures
    assert result.successes == ["a---0", "a---1"]
    assert result.success_rate == 1.0


def test_find_partial_pairs_classifies_missing_halves(caplog):
    """Test each kind of missing half is reported in request order."""
    pairs = {
        "a---0": ("def", None),
        "a---1": (None, "val"),
        "a---2": ("def", "val"),
    }

    with caplog.at_level(logging.WARNING):
        result = find_partial_pairs(["a---0", "a---1", "a---2", "a---3"], pairs)

    assert result.successes == ["a---2"]
    assert [(f.identifier, f.error_type) for f in result.failures] == [
        ("a---0", MISSING_VALUE),
        ("a---1", MISSING_DEFINITION),
        ("a---3", MISSING_BOTH),
    ]
    assert result.success_rate == 0.25
    warnings = [r for r in caplog.records if r.message == "dataeye.merge.partial_pair"]
    assert len(warnings) == 3
    assert warnings[0].identifier == "a---0"


def test_find_partial_pairs_empty_match_list():
    """Test an empty batch yields an empty report."""
    result = find_partial_pairs([], {})
    assert result.successes == []
    assert result.failures == []
    assert not result.all_succeeded


def test_format_failure_summary_no_failures():
    """Test formatting summary when no failures."""
    result = PartialResult(successes=["a", "b", "c"], failures=[])
    summary = format_failure_summary(result, "test")
    assert "All 3 test(s) complete" in summary


def test_format_failure_summary_with_failures():
    """Test formatting summary with failures."""
    result = PartialResult(
        successes=["a", "b"],
        failures=[
            FailureInfo("id1", "error1", MISSING_VALUE),
            FailureInfo("id2", "error2", MISSING_VALUE),
            FailureInfo("id3", "error3", MISSING_DEFINITION),
        ],
    )
    summary = format_failure_summary(result)

    assert "2 complete, 3 incomplete" in summary
    assert "40.0% complete" in summary
    assert "2 missing_value" in summary
    assert "1 missing_definition" in summary
    assert "id1" in summary


def test_format_failure_summary_many_failures():
    """Test formatting summary with many failures (truncation)."""
    failures = [FailureInfo(f"id{i}", f"error{i}", MISSING_BOTH) for i in range(10)]
    result = PartialResult(successes=[], failures=failures)
    summary = format_failure_summary(result)

    # Should show first 3 and indicate more
    assert "id0" in summary
    assert "id1" in summary
    assert "id2" in summary
    assert "id3" not in summary
    assert "... and 7 more" in summary


def test_partial_result_properties():
    """Test PartialResult computed properties."""
    # Empty result
    empty = PartialResult()
    assert empty.success_rate == 0.0
    assert not empty.has_failures
    assert not empty.all_succeeded
    assert not empty.all_failed

    # All succeeded
    all_success = PartialResult(successes=["a", "b"])
    assert all_success.success_rate == 1.0
    assert not all_success.has_failures
    assert all_success.all_succeeded
    assert not all_success.all_failed

    # All failed
    all_fail = PartialResult(
        failures=[
            FailureInfo("id1", "e1", MISSING_BOTH),
            FailureInfo("id2", "e2", MISSING_BOTH),
        ]
    )
    assert all_fail.success_rate == 0.0
    assert all_fail.has_failures
    assert not all_fail.all_succeeded
    assert all_fail.all_failed
