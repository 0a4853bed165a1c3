"""
Quantity item aggregate and its containers.

Lifecycle of an item:
    created (STANDARD, coefficient 1.00, rounding 0.01, quantity 0.00)
    -> update_field (raw keystrokes, committed on blur)
    -> recompute (only when the edited field takes part in the active mode)
    -> validate
    -> snapshot (persisted by the caller once the table passes validate_all)

Rejected input never reaches the stored value: the previous value is kept and
the rejection is reported under that field until the field receives input
that is accepted.
"""

import logging
import uuid
from decimal import Decimal
from fractions import Fraction
from typing import Iterator, Optional

from . import pipeline
from .errors import FieldIssue, IssueKind, error
from .fixed_point import BLANK, ZERO, FixedPoint, format_optional, try_parse
from .modes import CalculationMode, Computation, DIMENSION_FIELDS, ModeInputs, inputs_for
from .ranges import check_range
from .text_width import validate_field_width
from .validator import QuantityItemValidator, ValidationReport

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    "major_category",
    "middle_category",
    "minor_category",
    "optional_category",
    "work_type",
    "name",
    "specification",
    "unit",
    "remarks",
)
MODE_FIELD = "calculation_mode"
PIPELINE_FIELDS = ("adjustment_coefficient", "rounding_unit")
NUMERIC_FIELDS = ("quantity",) + PIPELINE_FIELDS + DIMENSION_FIELDS
EDITABLE_FIELDS = TEXT_FIELDS + (MODE_FIELD,) + NUMERIC_FIELDS

TABLE_NAME_MAX_LENGTH = 200


class QuantityItem:
    """One line of a quantity table. Owns its fixed-point fields exclusively."""

    def __init__(self, item_id: Optional[str] = None,
                 validator: Optional[QuantityItemValidator] = None):
        self.id = item_id or str(uuid.uuid4())
        self.group = None
        self.calculation_mode = CalculationMode.STANDARD
        self.text = {field: "" for field in TEXT_FIELDS}
        self.entered_quantity = ZERO
        self.dimensions = {field: BLANK for field in DIMENSION_FIELDS}
        self.adjustment_coefficient = pipeline.DEFAULT_COEFFICIENT
        self.rounding_unit = pipeline.DEFAULT_ROUNDING_UNIT
        self.quantity = ZERO
        self.adjusted = ZERO
        self.computation = Computation(Fraction(0), "0.00", ())

        self._validator = validator or QuantityItemValidator()
        self._input_errors: dict[str, FieldIssue] = {}
        self._report = ValidationReport({}, {})

        self.recompute()
        self.validate()

    def __repr__(self):
        return (f"QuantityItem(id={self.id!r}, mode={self.calculation_mode.value}, "
                f"quantity={self.quantity.format()})")

    # --- Editing ---

    def update_field(self, field: str, raw_text) -> None:
        """Accept raw user input for any field: parse, store, recompute, re-validate."""
        if field == MODE_FIELD:
            self._update_mode(raw_text)
        elif field in TEXT_FIELDS:
            self._update_text(field, raw_text)
        elif field in NUMERIC_FIELDS:
            self._update_number(field, raw_text)
        else:
            logger.warning("Ignoring edit to unknown quantity item field %r", field)
            return

        if self._affects_computation(field):
            self.recompute()
        self.validate()

    def set_mode(self, mode) -> None:
        self.update_field(MODE_FIELD, mode)

    def _affects_computation(self, field: str) -> bool:
        if field == MODE_FIELD or field in PIPELINE_FIELDS:
            return True
        return self.mode_inputs().uses_field(field)

    def _reject(self, field: str, issue: FieldIssue) -> None:
        logger.debug("Rejected input for %s on item %s: %s", field, self.id, issue.message)
        self._input_errors[field] = issue

    def _accept(self, field: str) -> None:
        self._input_errors.pop(field, None)

    def _update_mode(self, raw_text) -> None:
        try:
            mode = CalculationMode.parse(raw_text)
        except ValueError as e:
            self._reject(MODE_FIELD, error(MODE_FIELD, IssueKind.INVALID_CALCULATION_MODE, str(e)))
            return
        self.calculation_mode = mode
        self._accept(MODE_FIELD)

    def _update_text(self, field: str, raw_text) -> None:
        text = "" if raw_text is None else str(raw_text)
        issue = validate_field_width(field, text)
        if issue:
            self._reject(field, issue)
            return
        self.text[field] = text
        self._accept(field)

    def _update_number(self, field: str, raw_text) -> None:
        parsed = try_parse(raw_text)
        if parsed.error:
            self._reject(field, error(
                field, IssueKind.PARSE_ERROR,
                f"{field} must be a number with up to 2 decimal places",
            ))
            return

        value = _commit_default(field, parsed.value)
        issue = check_range(field, value)
        if issue:
            self._reject(field, issue)
            return

        if field == "quantity":
            self.entered_quantity = value
        elif field == "adjustment_coefficient":
            self.adjustment_coefficient = value
        elif field == "rounding_unit":
            self.rounding_unit = value
        else:
            self.dimensions[field] = value
        self._accept(field)

    # --- Computation ---

    def calculation_values(self) -> dict:
        values = dict(self.dimensions)
        values["quantity"] = self.entered_quantity
        return values

    def mode_inputs(self) -> ModeInputs:
        """The active mode's variant; other modes' inputs are not part of it."""
        return inputs_for(self.calculation_mode, self.calculation_values())

    def recompute(self) -> FixedPoint:
        self.computation = self.mode_inputs().compute()
        result = pipeline.apply(self.computation.raw, self.adjustment_coefficient, self.rounding_unit)
        self.adjusted = result.adjusted
        self.quantity = result.final_quantity
        return self.quantity

    # --- Validation ---

    def validate(self) -> ValidationReport:
        self._report = self._validator.validate(self)
        return self.report()

    def report(self) -> ValidationReport:
        """Validator result with boundary rejections layered on top."""
        errors = dict(self._report.errors)
        errors.update(self._input_errors)
        return ValidationReport(errors, dict(self._report.warnings))

    def errors(self) -> dict:
        """{field: IssueKind} for every hard error. Empty means savable."""
        return self.report().error_kinds()

    def warnings(self) -> dict:
        return self.report().warning_kinds()

    def issues(self) -> list[FieldIssue]:
        report = self.report()
        return list(report.errors.values()) + list(report.warnings.values())

    def is_valid(self) -> bool:
        return not self.errors()

    # --- Output ---

    def display(self, field: str) -> str:
        """Committed display text. Numbers show 2 decimals; blank dimensions stay blank."""
        if field == MODE_FIELD:
            return self.calculation_mode.value
        if field in TEXT_FIELDS:
            return self.text[field]
        if field == "quantity":
            return self.quantity.format()
        if field == "entered_quantity":
            return self.entered_quantity.format()
        if field == "adjustment_coefficient":
            return self.adjustment_coefficient.format()
        if field == "rounding_unit":
            return self.rounding_unit.format()
        if field in DIMENSION_FIELDS:
            return format_optional(self.dimensions[field])
        raise KeyError(field)

    def display_values(self) -> dict:
        fields = EDITABLE_FIELDS + ("entered_quantity",)
        return {field: self.display(field) for field in fields}

    def snapshot(self) -> dict:
        """Persistable shape. Numbers as Decimal, blank dimensions as None."""
        data = {field: self.text[field] for field in TEXT_FIELDS}
        data[MODE_FIELD] = self.calculation_mode.value
        for field in DIMENSION_FIELDS:
            value = self.dimensions[field]
            data[field] = None if value is BLANK else value.to_decimal()
        data["entered_quantity"] = self.entered_quantity.to_decimal()
        data["adjustment_coefficient"] = self.adjustment_coefficient.to_decimal()
        data["rounding_unit"] = self.rounding_unit.to_decimal()
        data["quantity"] = self.quantity.to_decimal()
        return data

    @classmethod
    def from_snapshot(cls, data: dict, item_id: Optional[str] = None,
                      validator: Optional[QuantityItemValidator] = None) -> "QuantityItem":
        """Rebuild an item from stored values. The final quantity is recomputed."""
        item = cls(item_id=item_id, validator=validator)
        item._update_mode(data.get(MODE_FIELD) or CalculationMode.STANDARD)
        for field in TEXT_FIELDS:
            item.text[field] = data.get(field) or ""
        for field in DIMENSION_FIELDS:
            item.dimensions[field] = _stored_number(data.get(field))

        entered = data.get("entered_quantity", data.get("quantity"))
        item.entered_quantity = _commit_default("quantity", _stored_number(entered))
        item.adjustment_coefficient = _commit_default(
            "adjustment_coefficient", _stored_number(data.get("adjustment_coefficient")))
        item.rounding_unit = _commit_default(
            "rounding_unit", _stored_number(data.get("rounding_unit")))

        item.recompute()
        item.validate()
        return item

    def copy(self) -> "QuantityItem":
        """A new item with a fresh id and the same committed values."""
        return QuantityItem.from_snapshot(self.snapshot(), validator=self._validator)


def _commit_default(field: str, value):
    """What a blank (or zero rounding unit) becomes when the field is committed."""
    if field == "quantity" and value is BLANK:
        return ZERO
    if field == "adjustment_coefficient" and value is BLANK:
        return pipeline.DEFAULT_COEFFICIENT
    if field == "rounding_unit" and (value is BLANK or value.is_zero()):
        return pipeline.DEFAULT_ROUNDING_UNIT
    return value


def _stored_number(value):
    if value is None or value is BLANK:
        return BLANK
    if isinstance(value, FixedPoint):
        return value
    return FixedPoint.from_decimal(Decimal(str(value)))


class QuantityGroup:
    """A section of a table. Owns its items; the table link is a back-reference."""

    def __init__(self, group_id: Optional[str] = None, table=None,
                 name: Optional[str] = None, survey_image_id: Optional[str] = None):
        self.id = group_id or str(uuid.uuid4())
        self.table = table
        self.name = name
        self.survey_image_id = survey_image_id
        self.items: list[QuantityItem] = []

    def add_item(self, item: Optional[QuantityItem] = None) -> QuantityItem:
        item = item or QuantityItem()
        item.group = self
        self.items.append(item)
        return item

    def find_item(self, item_id: str) -> Optional[QuantityItem]:
        return next((i for i in self.items if i.id == item_id), None)

    def remove_item(self, item_id: str) -> bool:
        item = self.find_item(item_id)
        if item is None:
            return False
        self.items.remove(item)
        item.group = None
        return True

    def copy_item(self, item_id: str) -> Optional[QuantityItem]:
        """Duplicate an item to the end of this group. None if it is not here."""
        item = self.find_item(item_id)
        if item is None:
            return None
        return self.add_item(item.copy())


class QuantityTable:
    """Ordered groups of items plus a name that is edited on its own."""

    def __init__(self, table_id: Optional[str] = None, name: str = ""):
        self.id = table_id or str(uuid.uuid4())
        self.name = name
        self.groups: list[QuantityGroup] = []

    def rename(self, name) -> Optional[FieldIssue]:
        """Set the table name. Returns an issue and keeps the old name if invalid."""
        text = "" if name is None else str(name)
        if not text.strip():
            return error("name", IssueKind.REQUIRED_FIELD, "Table name is required")
        if len(text) > TABLE_NAME_MAX_LENGTH:
            return error("name", IssueKind.LENGTH_EXCEEDED,
                         f"Table name must be at most {TABLE_NAME_MAX_LENGTH} characters",
                         limit=str(TABLE_NAME_MAX_LENGTH))
        self.name = text
        return None

    def add_group(self, group: Optional[QuantityGroup] = None, **kwargs) -> QuantityGroup:
        group = group or QuantityGroup(**kwargs)
        group.table = self
        self.groups.append(group)
        return group

    def find_group(self, group_id: str) -> Optional[QuantityGroup]:
        return next((g for g in self.groups if g.id == group_id), None)

    def remove_group(self, group_id: str) -> bool:
        """Deleting a group deletes its items with it."""
        group = self.find_group(group_id)
        if group is None:
            return False
        self.groups.remove(group)
        group.table = None
        for item in group.items:
            item.group = None
        group.items.clear()
        return True

    def items(self) -> Iterator[QuantityItem]:
        for group in self.groups:
            yield from group.items

    def find_item(self, item_id: str) -> Optional[QuantityItem]:
        return next((i for i in self.items() if i.id == item_id), None)

    def move_item(self, item_id: str, target_group_id: str, position: int) -> Optional[QuantityItem]:
        """
        Move an item to position in a group of this table, within the same group
        or across groups. Position is clamped to the target's bounds.
        Returns None, and changes nothing, if the item or the group is not in this table.
        """
        item = self.find_item(item_id)
        target = self.find_group(target_group_id)
        if item is None or target is None:
            return None
        item.group.items.remove(item)
        position = max(0, min(position, len(target.items)))
        target.items.insert(position, item)
        item.group = target
        return item

    def validate_all(self) -> dict:
        """
        The save gate. Empty dict when every item is valid, else
        {item_id: {field: IssueKind}} for each item with hard errors.
        Warnings never appear here.
        """
        failures = {}
        for item in self.items():
            item_errors = item.errors()
            if item_errors:
                failures[item.id] = item_errors
        return failures
