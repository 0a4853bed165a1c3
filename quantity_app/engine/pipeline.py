"""
Coefficient and rounding pipeline.

raw quantity -> x adjustment coefficient -> ceil to rounding unit -> final quantity

Normalization, in order:
1. coefficient: blank -> 1.00, pulled into [-9.99, 9.99]. Zero is kept (the
   result is legitimately 0.00) but flagged with a warning.
2. rounding unit: blank, zero or negative -> 0.01. Zero and blank are silent;
   a negative unit is reported as an error by the validator, the pipeline
   only needs a positive divisor to stay total.
3. adjusted = raw x coefficient, rounded half-up to 2 places
4. final = adjusted ceiled to a multiple of the rounding unit
"""

import logging
from fractions import Fraction
from typing import NamedTuple, Union

from .errors import FieldIssue, IssueKind, warning
from .fixed_point import BLANK, CENT, ONE, FixedPoint, ceil_fraction_to_multiple_of
from .ranges import COEFFICIENT_RANGE

logger = logging.getLogger(__name__)

DEFAULT_COEFFICIENT = ONE
DEFAULT_ROUNDING_UNIT = CENT


class PipelineResult(NamedTuple):
    final_quantity: FixedPoint
    adjusted: FixedPoint
    coefficient: FixedPoint
    rounding_unit: FixedPoint
    warnings: tuple


def normalize_coefficient(value) -> tuple[FixedPoint, list[FieldIssue]]:
    """Blank -> 1.00; out-of-range values are pulled to the nearest bound."""
    issues = []
    if value is None or value is BLANK:
        return DEFAULT_COEFFICIENT, issues

    bounded = value.saturate(COEFFICIENT_RANGE.minimum, COEFFICIENT_RANGE.maximum)
    if bounded != value:
        logger.debug("Coefficient %s pulled to %s", value.format(), bounded.format())

    if bounded.is_zero():
        issues.append(warning(
            "adjustment_coefficient",
            IssueKind.ZERO_COEFFICIENT,
            "Adjustment coefficient is 0. The quantity will be 0.00.",
        ))
    elif bounded.is_negative():
        issues.append(warning(
            "adjustment_coefficient",
            IssueKind.NEGATIVE_VALUE,
            "Adjustment coefficient is negative. Please confirm.",
        ))
    return bounded, issues


def normalize_rounding_unit(value) -> FixedPoint:
    """Blank, zero and negative units all become 0.01 for the arithmetic."""
    if value is None or value is BLANK or value.is_zero():
        return DEFAULT_ROUNDING_UNIT
    if value.is_negative():
        logger.debug("Negative rounding unit %s computed as %s",
                     value.format(), DEFAULT_ROUNDING_UNIT.format())
        return DEFAULT_ROUNDING_UNIT
    return value


def apply(raw: Union[FixedPoint, Fraction, None], coefficient_input, rounding_input) -> PipelineResult:
    """Derive the final quantity from a raw quantity. Never raises for user input."""
    if raw is None or raw is BLANK:
        raw_fraction = Fraction(0)
    elif isinstance(raw, FixedPoint):
        raw_fraction = raw.to_fraction()
    else:
        raw_fraction = Fraction(raw)

    coefficient, issues = normalize_coefficient(coefficient_input)
    rounding_unit = normalize_rounding_unit(rounding_input)

    adjusted = FixedPoint.from_fraction(raw_fraction * coefficient.to_fraction())
    final_quantity = ceil_fraction_to_multiple_of(adjusted.to_fraction(), rounding_unit)

    return PipelineResult(
        final_quantity=final_quantity,
        adjusted=adjusted,
        coefficient=coefficient,
        rounding_unit=rounding_unit,
        warnings=tuple(issues),
    )
