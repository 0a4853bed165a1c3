from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from .. import models, schemas
from ..database import get_db
from ..engine.item import QuantityItem as EngineItem
from ..persistence import (
    apply_raw_fields,
    field_error_detail,
    item_out,
    preview_out,
    to_engine_item,
    to_engine_table,
    write_snapshot,
)
from .quantity_groups import get_group_or_404

router = APIRouter(tags=["quantity-items"])

logger = logging.getLogger("quantity_app")


def get_item_or_404(item_id: str, db: Session) -> models.QuantityItem:
    item = db.query(models.QuantityItem).filter(models.QuantityItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Quantity item not found")
    return item


def _reject_if_invalid(item: EngineItem):
    errors = item.errors()
    if errors:
        logger.warning("Rejected quantity item %s: %s", item.id, sorted(errors))
        raise HTTPException(status_code=400, detail=field_error_detail({item.id: errors}))


@router.post("/quantity-items/preview", response_model=schemas.QuantityItemPreview)
def preview_item(raw: schemas.QuantityItemFields):
    """Run the engine on unsaved field text. Nothing is stored."""
    return preview_out(apply_raw_fields(EngineItem(), raw))


@router.post("/quantity-tables/{table_id}/groups/{group_id}/items", response_model=schemas.QuantityItem)
def create_item(table_id: str, group_id: str, raw: schemas.QuantityItemFields,
                db: Session = Depends(get_db)):
    group = get_group_or_404(group_id, db)
    if group.quantity_table_id != table_id:
        raise HTTPException(status_code=404, detail="Quantity group not found in this table")

    item = apply_raw_fields(EngineItem(), raw)
    _reject_if_invalid(item)

    row = models.QuantityItem(
        id=item.id,
        quantity_group_id=group.id,
        display_order=len(group.items),
    )
    write_snapshot(row, item)
    db.add(row)
    db.commit()
    db.refresh(row)
    return item_out(row, item)


@router.get("/quantity-items/{item_id}", response_model=schemas.QuantityItem)
def get_item(item_id: str, db: Session = Depends(get_db)):
    return item_out(get_item_or_404(item_id, db))


@router.put("/quantity-items/{item_id}", response_model=schemas.QuantityItem)
def update_item(item_id: str, raw: schemas.QuantityItemFields, db: Session = Depends(get_db)):
    """Apply field edits on top of the stored item; stored values change only if all is valid."""
    row = get_item_or_404(item_id, db)
    item = apply_raw_fields(to_engine_item(row), raw)
    _reject_if_invalid(item)

    write_snapshot(row, item)
    db.commit()
    db.refresh(row)
    return item_out(row, item)


@router.post("/quantity-items/{item_id}/copy", response_model=schemas.QuantityItem)
def copy_item(item_id: str, db: Session = Depends(get_db)):
    """Duplicate an item to the end of its own group."""
    row = get_item_or_404(item_id, db)
    group = row.group
    engine_group = to_engine_table(group.table).find_group(group.id)
    item = engine_group.copy_item(row.id)

    copied = models.QuantityItem(
        id=item.id,
        quantity_group_id=group.id,
        display_order=len(group.items),
    )
    write_snapshot(copied, item)
    db.add(copied)
    db.commit()
    db.refresh(copied)
    logger.info("Copied quantity item %s to %s", row.id, copied.id)
    return item_out(copied, item)


@router.post("/quantity-items/{item_id}/move", response_model=schemas.QuantityItem)
def move_item(item_id: str, move: schemas.QuantityItemMove, db: Session = Depends(get_db)):
    """Move an item to a position in any group of the same table."""
    row = get_item_or_404(item_id, db)
    target = get_group_or_404(move.target_group_id, db)
    table = row.group.table
    if target.quantity_table_id != table.id:
        raise HTTPException(status_code=400,
                            detail="Items can only be moved between groups of the same quantity table")

    engine_table = to_engine_table(table)
    item = engine_table.move_item(row.id, target.id, move.display_order)

    group_rows = {g.id: g for g in table.groups}
    item_rows = {i.id: i for g in table.groups for i in g.items}
    for engine_group in engine_table.groups:
        for order, engine_item in enumerate(engine_group.items):
            item_row = item_rows[engine_item.id]
            item_row.group = group_rows[engine_group.id]
            item_row.display_order = order

    db.commit()
    db.refresh(row)
    logger.info("Moved quantity item %s to group %s at %d", row.id, target.id, row.display_order)
    return item_out(row, item)


@router.delete("/quantity-items/{item_id}")
def delete_item(item_id: str, db: Session = Depends(get_db)):
    row = get_item_or_404(item_id, db)
    db.delete(row)
    db.commit()
    return {"ok": True}
