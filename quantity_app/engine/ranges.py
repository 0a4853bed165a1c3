"""
Inclusive numeric domains per field.

Blank dimension inputs are always in range; blank stays blank.
"""

from typing import NamedTuple, Optional

from .errors import FieldIssue, IssueKind, error
from .fixed_point import BLANK, FixedPoint


class FieldRange(NamedTuple):
    minimum: FixedPoint
    maximum: FixedPoint

    def contains(self, value: FixedPoint) -> bool:
        return self.minimum <= value <= self.maximum

    def describe(self) -> str:
        return f"{self.minimum.format()} to {self.maximum.format()}"


QUANTITY_RANGE = FieldRange(FixedPoint.of("-999999.99"), FixedPoint.of("9999999.99"))
COEFFICIENT_RANGE = FieldRange(FixedPoint.of("-9.99"), FixedPoint.of("9.99"))
ROUNDING_UNIT_RANGE = FieldRange(FixedPoint.of("-99.99"), FixedPoint.of("99.99"))
DIMENSION_RANGE = FieldRange(FixedPoint.of("0.01"), FixedPoint.of("9999999.99"))

FIELD_RANGES = {
    "quantity": QUANTITY_RANGE,
    "adjustment_coefficient": COEFFICIENT_RANGE,
    "rounding_unit": ROUNDING_UNIT_RANGE,
    "width": DIMENSION_RANGE,
    "depth": DIMENSION_RANGE,
    "height": DIMENSION_RANGE,
    "range_length": DIMENSION_RANGE,
    "edge1": DIMENSION_RANGE,
    "edge2": DIMENSION_RANGE,
    "pitch_length": DIMENSION_RANGE,
    "length": DIMENSION_RANGE,
    "weight": DIMENSION_RANGE,
}


def check_range(field: str, value) -> Optional[FieldIssue]:
    """RANGE_EXCEEDED issue if value is outside the field's domain."""
    if value is None or value is BLANK:
        return None
    bounds = FIELD_RANGES.get(field)
    if bounds is None or bounds.contains(value):
        return None
    return error(
        field,
        IssueKind.RANGE_EXCEEDED,
        f"{field} must be between {bounds.describe()}",
        limit=bounds.describe(),
    )
