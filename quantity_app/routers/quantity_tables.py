from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import uuid

from .. import models, schemas
from ..database import get_db
from ..engine.errors import IssueKind
from ..engine.item import QuantityItem as EngineItem, QuantityTable as EngineTable
from ..persistence import apply_raw_fields, field_error_detail, table_out, to_engine_item, write_snapshot

router = APIRouter(prefix="/quantity-tables", tags=["quantity-tables"])

logger = logging.getLogger("quantity_app")


def get_table_or_404(table_id: str, db: Session) -> models.QuantityTable:
    table = db.query(models.QuantityTable).filter(models.QuantityTable.id == table_id).first()
    if not table:
        raise HTTPException(status_code=404, detail="Quantity table not found")
    return table


@router.post("/", response_model=schemas.QuantityTable)
def create_table(payload: schemas.QuantityTableCreate, db: Session = Depends(get_db)):
    engine_table = EngineTable()
    issue = engine_table.rename(payload.name)
    if issue:
        raise HTTPException(status_code=400, detail=issue.message)
    table = models.QuantityTable(name=engine_table.name, project_id=payload.project_id)
    db.add(table)
    db.commit()
    db.refresh(table)
    return table_out(table)


@router.get("/", response_model=List[schemas.QuantityTableSummary])
def list_tables(project_id: Optional[str] = None, skip: int = 0, limit: int = 100,
                db: Session = Depends(get_db)):
    query = db.query(models.QuantityTable)
    if project_id:
        query = query.filter(models.QuantityTable.project_id == project_id)
    tables = query.order_by(models.QuantityTable.created_at).offset(skip).limit(limit).all()
    return [
        schemas.QuantityTableSummary(
            id=t.id,
            project_id=t.project_id,
            name=t.name,
            created_at=t.created_at,
            updated_at=t.updated_at,
            group_count=len(t.groups),
            item_count=sum(len(g.items) for g in t.groups),
        )
        for t in tables
    ]


@router.get("/{table_id}", response_model=schemas.QuantityTable)
def get_table(table_id: str, db: Session = Depends(get_db)):
    return table_out(get_table_or_404(table_id, db))


@router.patch("/{table_id}", response_model=schemas.QuantityTable)
def rename_table(table_id: str, update: schemas.QuantityTableUpdate, db: Session = Depends(get_db)):
    """Name autosaves on blur, independently of the items."""
    table = get_table_or_404(table_id, db)
    engine_table = EngineTable(table_id=table.id, name=table.name)
    issue = engine_table.rename(update.name)
    if issue:
        raise HTTPException(status_code=400, detail=issue.message)
    table.name = engine_table.name
    db.commit()
    db.refresh(table)
    return table_out(table)


@router.delete("/{table_id}")
def delete_table(table_id: str, db: Session = Depends(get_db)):
    table = get_table_or_404(table_id, db)
    db.delete(table)
    db.commit()
    return {"ok": True}


@router.put("/{table_id}/save", response_model=schemas.QuantityTable)
def save_table(table_id: str, payload: schemas.QuantityTableSave, db: Session = Depends(get_db)):
    """
    Replace the table's groups and items in one go.

    Every item is rebuilt in the engine from its stored snapshot plus the
    submitted field text. If validate_all() reports any hard error the request
    is rejected with 400 before anything is written.
    """
    table = get_table_or_404(table_id, db)
    engine_table = EngineTable(table_id=table.id, name=table.name)

    if payload.name is not None:
        issue = engine_table.rename(payload.name)
        if issue:
            raise HTTPException(status_code=400, detail=field_error_detail(
                {table.id: {"name": issue.kind}}, message=issue.message))

    # Group ids must name this table's groups, each at most once
    own_group_ids = {group.id for group in table.groups}
    submitted_group_ids = [g.id for g in payload.groups if g.id]
    bad_groups = {
        group_id: {"id": IssueKind.INVALID_REFERENCE}
        for group_id in submitted_group_ids
        if group_id not in own_group_ids or submitted_group_ids.count(group_id) > 1
    }
    if bad_groups:
        logger.warning("Rejected save of quantity table %s: unknown or repeated group ids %s",
                       table.id, sorted(bad_groups))
        raise HTTPException(status_code=400, detail=field_error_detail(
            bad_groups, message="Groups must belong to this quantity table and appear once"))

    existing = {item.id: item for group in table.groups for item in group.items}
    claimed = set()
    new_item_ids = set()
    for g_index, group_in in enumerate(payload.groups):
        group = engine_table.add_group(
            group_id=group_in.id,
            name=group_in.name,
            survey_image_id=group_in.survey_image_id,
        )
        for i_index, item_in in enumerate(group_in.items):
            # Ids from other tables, and repeats of an id already used, become new items
            row = existing.get(item_in.id) if item_in.id not in claimed else None
            if row is not None:
                claimed.add(row.id)
                item = to_engine_item(row)
            else:
                # Position key so the client can map errors back to an unsaved row
                item = EngineItem(item_id=f"new-{g_index}-{i_index}")
                new_item_ids.add(item.id)
            apply_raw_fields(item, item_in.raw)
            group.add_item(item)

    failures = engine_table.validate_all()
    if failures:
        logger.warning("Rejected save of quantity table %s: %d invalid item(s)", table.id, len(failures))
        raise HTTPException(status_code=400, detail=field_error_detail(failures))

    table.name = engine_table.name
    table.groups.clear()
    db.flush()

    for g_order, group in enumerate(engine_table.groups):
        group_row = models.QuantityGroup(
            id=group.id,
            quantity_table_id=table.id,
            name=group.name,
            survey_image_id=group.survey_image_id,
            display_order=g_order,
        )
        for i_order, item in enumerate(group.items):
            item_id = str(uuid.uuid4()) if item.id in new_item_ids else item.id
            item_row = models.QuantityItem(id=item_id, display_order=i_order)
            write_snapshot(item_row, item)
            group_row.items.append(item_row)
        table.groups.append(group_row)

    db.commit()
    db.refresh(table)
    logger.info("Saved quantity table %s (%d groups)", table.id, len(engine_table.groups))
    return table_out(table)
