"""
Quantity item aggregate tests: edit -> recompute -> validate -> save gate.

Tests:
1-5.   Defaults and STANDARD editing
6-9.   AREA_VOLUME and PITCH scenarios
10-15. Boundary rejections (parse, range, width, mode)
16-19. Validation rules (required, warnings, rounding unit, zero coefficient)
20-28. Snapshot, groups, tables, copy and move
29-32. Optional multipliers
"""

from decimal import Decimal

from conftest import make_item

from quantity_app.engine.errors import IssueKind
from quantity_app.engine.fixed_point import BLANK, FixedPoint
from quantity_app.engine.item import QuantityGroup, QuantityItem, QuantityTable
from quantity_app.engine.modes import CalculationMode
from quantity_app.engine.validator import QuantityItemValidator


# ============================================================
# Defaults and STANDARD
# ============================================================

def test_new_item_defaults():
    item = QuantityItem()
    assert item.calculation_mode == CalculationMode.STANDARD
    assert item.display("adjustment_coefficient") == "1.00"
    assert item.display("rounding_unit") == "0.01"
    assert item.display("quantity") == "0.00"
    assert item.display("width") == ""
    # Unnamed items cannot be saved
    assert item.errors() == {"name": IssueKind.REQUIRED_FIELD}


def test_standard_quantity_is_used_directly():
    item = make_item(quantity="12.5")
    assert item.display("quantity") == "12.50"
    assert item.errors() == {}


def test_standard_blank_commit_is_zero():
    item = make_item(quantity="12.5")
    item.update_field("quantity", "")
    assert item.display("quantity") == "0.00"
    assert item.display("entered_quantity") == "0.00"
    assert item.errors() == {}


def test_standard_coefficient_and_rounding_apply():
    item = make_item(quantity="10.3", adjustment_coefficient="1.1", rounding_unit="1")
    assert item.adjusted.format() == "11.33"
    assert item.display("quantity") == "12.00"


def test_standard_negative_quantity_warns_but_saves():
    item = make_item(quantity="-10")
    assert item.display("quantity") == "-10.00"
    assert item.errors() == {}
    assert item.warnings() == {"quantity": IssueKind.NEGATIVE_VALUE}


# ============================================================
# Computed modes
# ============================================================

def test_area_volume_scenarios():
    item = make_item(calculation_mode="AREA_VOLUME", width="10", depth="5", height="2")
    assert item.display("quantity") == "100.00"

    item.update_field("adjustment_coefficient", "2")
    assert item.display("quantity") == "200.00"

    item.update_field("adjustment_coefficient", "1")
    item.update_field("rounding_unit", "10")
    assert item.display("quantity") == "100.00"

    item.update_field("width", "20")
    assert item.display("quantity") == "200.00"
    assert item.errors() == {}


def test_area_volume_incomplete_is_soft():
    item = make_item(calculation_mode="AREA_VOLUME", width="10", depth="5")
    assert item.display("quantity") == "0.00"
    assert item.errors() == {}
    assert item.warnings() == {"height": IssueKind.INCOMPLETE_CALCULATION}


def test_pitch_scenario():
    item = make_item(calculation_mode="PITCH", range_length="1000", edge1="100",
                     edge2="100", pitch_length="200")
    assert item.display("quantity") == "5.00"
    assert item.computation.formula.endswith("= 5.00")
    assert item.errors() == {}
    assert item.warnings() == {}


def test_mode_switch_ignores_other_inputs_but_keeps_them():
    item = make_item(quantity="7", width="10", depth="5", height="2")
    # Dimension edits in STANDARD are stored, not computed
    assert item.display("quantity") == "7.00"
    assert item.display("width") == "10.00"

    item.set_mode("AREA_VOLUME")
    assert item.display("quantity") == "100.00"

    item.update_field("quantity", "3")   # read-only in computed modes: stored only
    assert item.display("quantity") == "100.00"

    item.set_mode("STANDARD")
    assert item.display("quantity") == "3.00"


# ============================================================
# Boundary rejections
# ============================================================

def test_parse_error_keeps_previous_value():
    item = make_item(quantity="4")
    item.update_field("quantity", "4x")
    assert item.display("quantity") == "4.00"
    assert item.errors() == {"quantity": IssueKind.PARSE_ERROR}

    item.update_field("quantity", "5")
    assert item.display("quantity") == "5.00"
    assert item.errors() == {}


def test_three_decimals_rejected():
    item = make_item()
    item.update_field("adjustment_coefficient", "1.255")
    assert item.errors() == {"adjustment_coefficient": IssueKind.PARSE_ERROR}
    assert item.display("adjustment_coefficient") == "1.00"


def test_out_of_range_rejected():
    item = make_item()
    item.update_field("adjustment_coefficient", "10")
    assert item.errors() == {"adjustment_coefficient": IssueKind.RANGE_EXCEEDED}
    assert item.display("adjustment_coefficient") == "1.00"

    item = make_item()
    item.update_field("quantity", "10000000")
    assert item.errors() == {"quantity": IssueKind.RANGE_EXCEEDED}

    item = make_item(calculation_mode="AREA_VOLUME")
    item.update_field("width", "0")
    assert item.errors() == {"width": IssueKind.RANGE_EXCEEDED}
    assert item.display("width") == ""


def test_range_bounds_are_inclusive():
    item = make_item(quantity="-999999.99")
    assert item.errors() == {}
    assert item.display("quantity") == "-999999.99"

    item = make_item(quantity="1", adjustment_coefficient="9.99")
    assert item.errors() == {}
    assert item.display("quantity") == "9.99"

    item = make_item(quantity="1", rounding_unit="99.99")
    assert item.errors() == {}
    assert item.display("quantity") == "99.99"

    # A valid coefficient can still push the final quantity out of range
    item = make_item(quantity="9999999.99", adjustment_coefficient="2")
    assert item.errors() == {"quantity": IssueKind.RANGE_EXCEEDED}


def test_text_over_width_rejected():
    item = make_item()
    item.update_field("unit", "立方米")
    assert item.display("unit") == "立方米"
    item.update_field("unit", "立方米ト")
    assert item.display("unit") == "立方米"
    assert item.errors() == {"unit": IssueKind.LENGTH_EXCEEDED}


def test_unknown_mode_rejected():
    item = make_item(quantity="3")
    item.update_field("calculation_mode", "TRIANGLE")
    assert item.calculation_mode == CalculationMode.STANDARD
    assert item.errors() == {"calculation_mode": IssueKind.INVALID_CALCULATION_MODE}


def test_unknown_field_is_ignored():
    item = make_item(quantity="3")
    item.update_field("colour", "red")
    assert item.errors() == {}


# ============================================================
# Validation rules
# ============================================================

def test_name_required_on_blur():
    item = make_item()
    item.update_field("name", "   ")
    assert item.errors() == {"name": IssueKind.REQUIRED_FIELD}


def test_rounding_unit_zero_and_blank_become_one_cent():
    item = make_item(rounding_unit="0")
    assert item.display("rounding_unit") == "0.01"
    item.update_field("rounding_unit", "5")
    item.update_field("rounding_unit", "")
    assert item.display("rounding_unit") == "0.01"
    assert item.errors() == {}


def test_negative_rounding_unit_is_hard_error():
    item = make_item(quantity="3.2", rounding_unit="-1")
    assert item.display("rounding_unit") == "-1.00"
    assert item.display("quantity") == "3.20"   # computed with 0.01
    assert item.errors() == {"rounding_unit": IssueKind.INVALID_ROUNDING_UNIT}


def test_zero_coefficient_warning_or_error():
    item = make_item(quantity="5", adjustment_coefficient="0")
    assert item.display("quantity") == "0.00"
    assert item.errors() == {}
    assert item.warnings() == {"adjustment_coefficient": IssueKind.ZERO_COEFFICIENT}

    strict = QuantityItem(validator=QuantityItemValidator(zero_coefficient_is_error=True))
    strict.update_field("name", "Rebar")
    strict.update_field("adjustment_coefficient", "0")
    assert strict.errors() == {"adjustment_coefficient": IssueKind.ZERO_COEFFICIENT}


def test_blank_coefficient_commits_as_one():
    item = make_item(quantity="5", adjustment_coefficient="3")
    item.update_field("adjustment_coefficient", "")
    assert item.display("adjustment_coefficient") == "1.00"
    assert item.display("quantity") == "5.00"


# ============================================================
# Snapshot, groups, tables
# ============================================================

def test_snapshot_round_trip():
    item = make_item(calculation_mode="PITCH", range_length="1000", edge1="100",
                     edge2="100", pitch_length="300", adjustment_coefficient="1.5",
                     rounding_unit="0.5", unit="本", work_type="鉄筋工")
    data = item.snapshot()
    assert data["calculation_mode"] == "PITCH"
    assert data["width"] is None
    assert data["range_length"] == Decimal("1000.00")
    assert data["quantity"] == Decimal("5.50")    # (800/300 + 1) x 1.5 = 5.50 -> ceil 0.5

    restored = QuantityItem.from_snapshot(data, item_id=item.id)
    assert restored.snapshot() == data
    assert restored.display("width") == ""
    assert restored.errors() == {}


def test_group_owns_items():
    group = QuantityGroup(name="Slab")
    first = group.add_item(make_item(quantity="1"))
    group.add_item(make_item(quantity="2"))
    assert first.group is group
    assert group.remove_item(first.id)
    assert first.group is None
    assert len(group.items) == 1
    assert not group.remove_item("missing")


def test_table_remove_group_cascades():
    table = QuantityTable(name="B1")
    group = table.add_group(name="Columns")
    item = group.add_item(make_item(quantity="1"))
    assert list(table.items()) == [item]
    assert table.remove_group(group.id)
    assert list(table.items()) == []
    assert group.items == []


def test_table_rename():
    table = QuantityTable(name="Draft")
    assert table.rename("Final take-off") is None
    assert table.name == "Final take-off"
    issue = table.rename("  ")
    assert issue.kind == IssueKind.REQUIRED_FIELD
    assert table.name == "Final take-off"


def test_validate_all_is_the_save_gate():
    table = QuantityTable(name="Level 2")
    group = table.add_group()
    good = group.add_item(make_item(quantity="-1"))          # warning only
    incomplete = group.add_item(make_item(calculation_mode="PITCH", range_length="100"))
    assert table.validate_all() == {}

    bad = group.add_item(QuantityItem())
    bad.update_field("quantity", "abc")
    assert table.validate_all() == {
        bad.id: {"name": IssueKind.REQUIRED_FIELD, "quantity": IssueKind.PARSE_ERROR},
    }
    assert good.id not in table.validate_all()
    assert incomplete.id not in table.validate_all()


def test_items_are_independent():
    first = make_item(quantity="1")
    second = make_item(quantity="2")
    first.update_field("adjustment_coefficient", "3")
    assert second.display("adjustment_coefficient") == "1.00"
    assert first.adjustment_coefficient == FixedPoint.of("3")
    assert second.dimensions["width"] is BLANK


def test_copy_gets_new_id_and_same_values():
    item = make_item(calculation_mode="AREA_VOLUME", width="10", depth="5", height="2",
                     weight="1.5", unit="m3")
    copied = item.copy()
    assert copied.id != item.id
    assert copied.snapshot() == item.snapshot()
    assert copied.display("quantity") == "150.00"

    copied.update_field("width", "20")
    assert item.display("width") == "10.00"


def test_group_copy_item_appends():
    group = QuantityGroup(name="Slab")
    first = group.add_item(make_item(quantity="1"))
    group.add_item(make_item(quantity="2"))
    copied = group.copy_item(first.id)
    assert group.items[-1] is copied
    assert copied.group is group
    assert copied.display("quantity") == "1.00"
    assert group.copy_item("missing") is None
    assert len(group.items) == 3


def test_table_move_item():
    table = QuantityTable(name="Level 3")
    wall = table.add_group(name="Wall")
    roof = table.add_group(name="Roof")
    a, b, c = (wall.add_item(make_item(name=n)) for n in ("A", "B", "C"))

    assert table.move_item(c.id, wall.id, 0) is c
    assert wall.items == [c, a, b]

    # Past the end clamps to last
    assert table.move_item(a.id, roof.id, 5) is a
    assert a.group is roof
    assert wall.items == [c, b]
    assert roof.items == [a]

    assert table.move_item(b.id, "elsewhere", 0) is None
    assert table.move_item("missing", roof.id, 0) is None
    assert wall.items == [c, b]


# ============================================================
# Optional multipliers
# ============================================================

def test_weight_multiplies_area_volume():
    item = make_item(calculation_mode="AREA_VOLUME", width="10", depth="5", height="2")
    item.update_field("weight", "2.5")
    assert item.display("quantity") == "250.00"
    assert item.warnings() == {}

    item.update_field("weight", "")
    assert item.display("weight") == ""
    assert item.display("quantity") == "100.00"


def test_blank_multiplier_is_not_incomplete():
    item = make_item(calculation_mode="PITCH", range_length="1000", edge1="100",
                     edge2="100", pitch_length="200")
    assert item.warnings() == {}
    item.update_field("length", "3")
    item.update_field("weight", "2")
    assert item.display("quantity") == "30.00"


def test_zero_multiplier_rejected():
    item = make_item(calculation_mode="AREA_VOLUME", width="10", depth="5", height="2")
    item.update_field("weight", "0")
    assert item.errors() == {"weight": IssueKind.RANGE_EXCEEDED}
    assert item.display("weight") == ""
    assert item.display("quantity") == "100.00"


def test_multiplier_ignored_by_standard():
    item = make_item(quantity="4", weight="3", length="2")
    assert item.display("quantity") == "4.00"
    assert item.display("weight") == "3.00"
