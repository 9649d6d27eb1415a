"""
Partial results handling for definition/value pairing.

Each requested datum is answered by two independent method responses. When
the server drops one of them the datum is still merged from the half that
arrived; the helpers here record which keys were affected so callers can log
or display the gap.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

MISSING_DEFINITION = "missing_definition"
MISSING_VALUE = "missing_value"
MISSING_BOTH = "missing_both"


@dataclass
class PartialResult:
    """
    Result container for a batch in which some pairs may be incomplete.

    Attributes
    ----------
    successes : List[str]
        Correlation keys for which both halves arrived
    failures : List[FailureInfo]
        Keys with at least one missing half
    success_rate : float
        Ratio of complete pairs to total keys (0.0-1.0)
    """

    successes: List[str] = field(default_factory=list)
    failures: List["FailureInfo"] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Calculate success rate (0.0-1.0)."""
        total = len(self.successes) + len(self.failures)
        if total == 0:
            return 0.0
        return len(self.successes) / total

    @property
    def has_failures(self) -> bool:
        """Check if any pair is incomplete."""
        return len(self.failures) > 0

    @property
    def all_succeeded(self) -> bool:
        """Check if every pair is complete."""
        return len(self.failures) == 0 and len(self.successes) > 0

    @property
    def all_failed(self) -> bool:
        """Check if no pair is complete."""
        return len(self.successes) == 0 and len(self.failures) > 0


@dataclass
class FailureInfo:
    """
    Information about an incomplete pair.

    Attributes
    ----------
    identifier : str
        Correlation key of the datum
    error : str
        Error message
    error_type : str
        One of ``missing_definition``, ``missing_value``, ``missing_both``
    """

    identifier: str
    error: str
    error_type: str


def _classify(has_definition: bool, has_value: bool) -> Optional[Tuple[str, str]]:
    if has_definition and has_value:
        return None
    if has_definition:
        return MISSING_VALUE, "no getValue response received"
    if has_value:
        return MISSING_DEFINITION, "no getDataDefinition response received"
    return MISSING_BOTH, "no response received"


def find_partial_pairs(
    match_list: Iterable[str], pairs: Dict[str, Tuple[Any, Any]]
) -> PartialResult:
    """
    Report which correlation keys were answered by both halves.

    Parameters
    ----------
    match_list : Iterable[str]
        Correlation keys in request order
    pairs : Dict[str, Tuple[Any, Any]]
        Mapping of key to ``(definition, value)``; a missing half is ``None``

    Returns
    -------
    PartialResult
        Complete keys as successes, incomplete keys as failures
    """
    result = PartialResult()
    for key in match_list:
        definition, value = pairs.get(key, (None, None))
        problem = _classify(definition is not None, value is not None)
        if problem is None:
            result.successes.append(key)
            continue
        error_type, message = problem
        result.failures.append(
            FailureInfo(identifier=key, error=message, error_type=error_type)
        )
        logger.warning(
            "dataeye.merge.partial_pair",
            extra={"identifier": key, "error_type": error_type},
        )
    return result


def format_failure_summary(result: PartialResult, operation_type: str = "datum") -> str:
    """
    Format a human-readable summary of incomplete pairs.

    Parameters
    ----------
    result : PartialResult
        The partial result to summarize
    operation_type : str
        Noun used for the counted items

    Returns
    -------
    str
        Formatted summary string
    """
    if not result.has_failures:
        return f"All {len(result.successes)} {operation_type}(s) complete."

    lines = [
        f"Partial results: {len(result.successes)} complete, "
        f"{len(result.failures)} incomplete ({result.success_rate:.1%} complete)",
    ]

    failures_by_type: Dict[str, List[FailureInfo]] = {}
    for failure in result.failures:
        failures_by_type.setdefault(failure.error_type, []).append(failure)

    for error_type, failures in failures_by_type.items():
        lines.append(f"  - {len(failures)} {error_type}")
        identifiers = [f.identifier for f in failures[:3]]
        if len(failures) > 3:
            identifiers.append(f"... and {len(failures) - 3} more")
        lines.append(f"    Affected: {', '.join(identifiers)}")

    return "\n".join(lines)
