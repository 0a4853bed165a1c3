"""
Whole-item validation in a single pass.

Produces field-scoped errors (block save) and warnings (shown, never block).
The first issue recorded for a field wins, so the order of checks below is
the order of precedence.
"""

from typing import Iterable, NamedTuple, Optional

from ..config import settings
from .errors import FieldIssue, IssueKind, Severity, error, warning
from .fixed_point import BLANK
from .modes import CalculationMode, DIMENSION_FIELDS, inputs_for
from .ranges import check_range
from .text_width import FIELD_WIDTH_LIMITS, validate_field_width

REQUIRED_TEXT_FIELDS = ("name",)


class ValidationReport(NamedTuple):
    errors: dict
    warnings: dict

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error_kinds(self) -> dict:
        return {field: issue.kind for field, issue in self.errors.items()}

    def warning_kinds(self) -> dict:
        return {field: issue.kind for field, issue in self.warnings.items()}


class QuantityItemValidator:
    """Aggregates required, range, width and mode-consistency checks."""

    def __init__(self, zero_coefficient_is_error: Optional[bool] = None):
        if zero_coefficient_is_error is None:
            zero_coefficient_is_error = settings.ZERO_COEFFICIENT_IS_ERROR
        self.zero_coefficient_is_error = zero_coefficient_is_error

    def validate(self, item) -> ValidationReport:
        errors: dict = {}
        warnings: dict = {}

        def add(issue: Optional[FieldIssue]):
            if issue is None:
                return
            target = errors if issue.severity == Severity.ERROR else warnings
            target.setdefault(issue.field, issue)

        # 1. Required text
        for field in REQUIRED_TEXT_FIELDS:
            if not (item.text.get(field) or "").strip():
                add(error(field, IssueKind.REQUIRED_FIELD, f"{field} is required"))

        # 2. Display width of every classification field
        for field in FIELD_WIDTH_LIMITS:
            add(validate_field_width(field, item.text.get(field) or ""))

        # 3. Numeric domains
        mode = item.calculation_mode
        if mode == CalculationMode.STANDARD:
            add(check_range("quantity", item.entered_quantity))
        add(check_range("quantity", item.quantity))
        add(check_range("adjustment_coefficient", item.adjustment_coefficient))
        add(check_range("rounding_unit", item.rounding_unit))
        for field in DIMENSION_FIELDS:
            add(check_range(field, item.dimensions.get(field, BLANK)))

        # 4. Rounding unit must be a positive divisor
        if item.rounding_unit is not BLANK and item.rounding_unit.is_negative():
            add(error("rounding_unit", IssueKind.INVALID_ROUNDING_UNIT,
                      "Rounding unit must be greater than 0"))

        # 5. Coefficient sanity
        coefficient = item.adjustment_coefficient
        if coefficient is not BLANK and coefficient.is_zero():
            message = "Adjustment coefficient is 0. The quantity will be 0.00."
            if self.zero_coefficient_is_error:
                add(error("adjustment_coefficient", IssueKind.ZERO_COEFFICIENT, message))
            else:
                add(warning("adjustment_coefficient", IssueKind.ZERO_COEFFICIENT, message))
        elif coefficient is not BLANK and coefficient.is_negative():
            add(warning("adjustment_coefficient", IssueKind.NEGATIVE_VALUE,
                        "Adjustment coefficient is negative. Please confirm."))

        # 6. Mode consistency
        if mode == CalculationMode.STANDARD:
            if item.entered_quantity is not BLANK and item.entered_quantity.is_negative():
                add(warning("quantity", IssueKind.NEGATIVE_VALUE,
                            "Quantity is negative. Please confirm."))
        else:
            inputs = inputs_for(mode, item.dimensions)
            for field in inputs.missing_fields():
                add(warning(field, IssueKind.INCOMPLETE_CALCULATION,
                            f"{field} is blank; quantity stays 0.00 until all inputs are entered"))

        return ValidationReport(errors, warnings)

    def validate_batch(self, items: Iterable) -> list[ValidationReport]:
        return [self.validate(item) for item in items]
