"""
Field-scoped issues produced by the engine.

Nothing in the engine raises across its public API. Every problem with a
field's input is described by a FieldIssue and handed back to the caller,
who renders it inline. Only ERROR severity blocks a table save.
"""

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueKind(str, enum.Enum):
    # Hard errors
    PARSE_ERROR = "parse_error"
    RANGE_EXCEEDED = "range_exceeded"
    LENGTH_EXCEEDED = "length_exceeded"
    REQUIRED_FIELD = "required_field"
    INVALID_ROUNDING_UNIT = "invalid_rounding_unit"
    INVALID_CALCULATION_MODE = "invalid_calculation_mode"
    INVALID_REFERENCE = "invalid_reference"
    # Non-blocking
    ZERO_COEFFICIENT = "zero_coefficient"
    NEGATIVE_VALUE = "negative_value"
    INCOMPLETE_CALCULATION = "incomplete_calculation"


class FieldIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    kind: IssueKind
    message: str
    severity: Severity = Severity.ERROR
    limit: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


def error(field: str, kind: IssueKind, message: str, limit=None) -> FieldIssue:
    return FieldIssue(field=field, kind=kind, message=message,
                      severity=Severity.ERROR, limit=limit)


def warning(field: str, kind: IssueKind, message: str) -> FieldIssue:
    return FieldIssue(field=field, kind=kind, message=message,
                      severity=Severity.WARNING)
