"""
Moves quantity items between database rows and the engine.

Rows only ever receive values from QuantityItem.snapshot(); every number a
row holds was parsed, normalized and computed by the engine first.
"""

from . import models, schemas
from .engine.item import (
    MODE_FIELD,
    TEXT_FIELDS,
    QuantityItem as EngineItem,
    QuantityTable as EngineTable,
)
from .engine.modes import DIMENSION_FIELDS

SNAPSHOT_COLUMNS = TEXT_FIELDS + (MODE_FIELD,) + DIMENSION_FIELDS + (
    "entered_quantity",
    "adjustment_coefficient",
    "rounding_unit",
    "quantity",
)


def row_snapshot(row: models.QuantityItem) -> dict:
    return {column: getattr(row, column) for column in SNAPSHOT_COLUMNS}


def to_engine_item(row: models.QuantityItem) -> EngineItem:
    return EngineItem.from_snapshot(row_snapshot(row), item_id=row.id)


def to_engine_table(row: models.QuantityTable) -> EngineTable:
    table = EngineTable(table_id=row.id, name=row.name)
    for group_row in row.groups:
        group = table.add_group(group_id=group_row.id, name=group_row.name,
                                survey_image_id=group_row.survey_image_id)
        for item_row in group_row.items:
            group.add_item(to_engine_item(item_row))
    return table


def apply_raw_fields(item: EngineItem, raw: schemas.QuantityItemFields) -> EngineItem:
    """Feed the submitted field text through update_field, mode first."""
    updates = raw.model_dump(exclude_unset=True)
    if MODE_FIELD in updates:
        item.update_field(MODE_FIELD, updates.pop(MODE_FIELD))
    for field, value in updates.items():
        item.update_field(field, value)
    return item


def write_snapshot(row: models.QuantityItem, item: EngineItem) -> models.QuantityItem:
    for column, value in item.snapshot().items():
        setattr(row, column, value)
    return row


def field_error_detail(failures: dict, message: str = "Quantity table has invalid fields") -> dict:
    """HTTP 400 body for a rejected save: {item_id: {field: kind}}."""
    return {
        "code": "FIELD_VALIDATION_ERROR",
        "message": message,
        "field_errors": {
            item_id: {field: kind.value for field, kind in errors.items()}
            for item_id, errors in failures.items()
        },
    }


def item_out(row: models.QuantityItem, item: EngineItem = None) -> schemas.QuantityItem:
    item = item or to_engine_item(row)
    return schemas.QuantityItem(
        id=row.id,
        quantity_group_id=row.quantity_group_id,
        display_order=row.display_order or 0,
        formula=item.computation.formula,
        warnings=list(item.report().warnings.values()),
        **item.display_values(),
    )


def group_out(row: models.QuantityGroup) -> schemas.QuantityGroup:
    return schemas.QuantityGroup(
        id=row.id,
        quantity_table_id=row.quantity_table_id,
        name=row.name,
        survey_image_id=row.survey_image_id,
        display_order=row.display_order or 0,
        items=[item_out(i) for i in row.items],
    )


def table_out(row: models.QuantityTable) -> schemas.QuantityTable:
    return schemas.QuantityTable(
        id=row.id,
        project_id=row.project_id,
        name=row.name,
        created_at=row.created_at,
        updated_at=row.updated_at,
        groups=[group_out(g) for g in row.groups],
    )


def preview_out(item: EngineItem) -> schemas.QuantityItemPreview:
    report = item.report()
    return schemas.QuantityItemPreview(
        values=item.display_values(),
        formula=item.computation.formula,
        is_valid=report.is_valid,
        errors=list(report.errors.values()),
        warnings=list(report.warnings.values()),
    )
