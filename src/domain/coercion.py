"""
Value coercion for merged Prophet records.

Turns the raw string delivered by ``getValue`` into a display-ready value
using the metadata from ``getDataDefinition`` (type, precision, units).
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from ..errors import ValueCoercionError
from ..schemas.prophet_contract import MergedRecord

logger = logging.getLogger(__name__)

# Fractional digits used when a definition carries no precision
DEFAULT_PRECISION = 0


def _parse_precision(precision: Any) -> int:
    if precision is None or precision == "":
        return DEFAULT_PRECISION
    try:
        return int(str(precision).strip())
    except ValueError as exc:
        raise ValueCoercionError(f"Invalid precision {precision!r}") from exc


def format_decimal(raw: str, precision: Any) -> str:
    """Round a decimal string half-up and format it with thousands separators.

    Trailing fractional zeros are dropped after rounding.

    Examples
    --------
    >>> format_decimal("3.14159", "2")
    '3.14'
    >>> format_decimal("1234.50", "2")
    '1,234.5'
    >>> format_decimal("72.5", None)
    '73'

    Raises
    ------
    ValueError
        If ``raw`` is not a finite decimal number.
    """
    digits = _parse_precision(precision)
    try:
        rounded = Decimal(raw.strip()).quantize(
            Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP
        )
    except InvalidOperation as exc:
        raise ValueError(f"Not a decimal number: {raw!r}") from exc
    if rounded == rounded.to_integral_value():
        return f"{int(rounded):,}"
    return f"{rounded:,.{max(digits, 0)}f}".rstrip("0").rstrip(".")


def _coerce_numeric(
    raw: Optional[str], precision: Any, units_text: Optional[str]
) -> Any:
    if not raw:
        return raw
    value: Any
    try:
        value = format_decimal(raw, precision) if "." in raw else int(raw, 10)
    except ValueCoercionError:
        raise
    except ValueError:
        # Non-numeric text such as "---" is shown as delivered
        logger.debug("dataeye.coerce.non_numeric", extra={"raw": raw})
        return raw
    if units_text is not None:
        value = f"{value} {units_text}"
    return value


def _coerce_boolean(
    raw: Optional[str], true_text: Optional[str], false_text: Optional[str]
) -> Any:
    if true_text is not None:
        return true_text if raw == "true" else false_text
    if raw in ("true", "false"):
        return raw == "true"
    return raw


def value_of(record: MergedRecord) -> Any:
    """Return the display value of a merged record.

    Parameters
    ----------
    record: MergedRecord
        Record carrying ``type`` and ``value_obj`` plus optional ``precision``
        and ``units``.

    Returns
    -------
    Any
        - ``numeric``: ``int`` for integral strings, a formatted string for
          decimals, with ``" <units>"`` appended when units are known.
          Empty values pass through unchanged.
        - ``boolean``: the true/false label when the value carries labels,
          else a real ``bool`` for ``"true"``/``"false"``, else unchanged.
        - anything else (``enum``, ``string``, errors): unchanged.

    Raises
    ------
    ValueCoercionError
        If ``precision`` is not an integer.
    """
    value_obj = record.value_obj
    if value_obj is None:
        return None
    raw = value_obj.value

    if record.type == "numeric":
        units_text = record.units.text if record.units is not None else None
        return _coerce_numeric(raw, record.precision, units_text)
    if record.type == "boolean":
        return _coerce_boolean(raw, value_obj.true_text, value_obj.false_text)
    # TODO: map enum values to the labels in ``record.range`` once the
    # server's range tag shape is confirmed
    return raw
