"""
Quantity item calculation & validation engine.

Pure Python math. No I/O, no database, no HTTP.
Given raw field text for a quantity-table line item, produce a computed,
displayable quantity plus the field-scoped errors and warnings that decide
whether the table may be saved.

Flow per edit:
    QuantityItem.update_field -> modes.compute -> pipeline.apply -> validator.validate
"""

from .errors import IssueKind, Severity, FieldIssue
from .fixed_point import FixedPoint, BLANK, FixedPointParseError, RangeExceededError
from .item import QuantityItem, QuantityGroup, QuantityTable
from .modes import CalculationMode

__all__ = [
    "BLANK",
    "CalculationMode",
    "FieldIssue",
    "FixedPoint",
    "FixedPointParseError",
    "IssueKind",
    "QuantityGroup",
    "QuantityItem",
    "QuantityTable",
    "RangeExceededError",
    "Severity",
]
