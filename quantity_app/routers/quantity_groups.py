from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..persistence import group_out
from .quantity_tables import get_table_or_404

router = APIRouter(tags=["quantity-groups"])


def get_group_or_404(group_id: str, db: Session) -> models.QuantityGroup:
    group = db.query(models.QuantityGroup).filter(models.QuantityGroup.id == group_id).first()
    if not group:
        raise HTTPException(status_code=404, detail="Quantity group not found")
    return group


@router.post("/quantity-tables/{table_id}/groups", response_model=schemas.QuantityGroup)
def create_group(table_id: str, payload: schemas.QuantityGroupCreate, db: Session = Depends(get_db)):
    table = get_table_or_404(table_id, db)
    group = models.QuantityGroup(
        quantity_table_id=table.id,
        name=payload.name,
        survey_image_id=payload.survey_image_id,
        display_order=len(table.groups),
    )
    db.add(group)
    db.commit()
    db.refresh(group)
    return group_out(group)


@router.get("/quantity-groups/{group_id}", response_model=schemas.QuantityGroup)
def get_group(group_id: str, db: Session = Depends(get_db)):
    return group_out(get_group_or_404(group_id, db))


@router.delete("/quantity-groups/{group_id}")
def delete_group(group_id: str, db: Session = Depends(get_db)):
    """Deletes the group and every item in it."""
    group = get_group_or_404(group_id, db)
    deleted_items = len(group.items)
    db.delete(group)
    db.commit()
    return {"ok": True, "deleted_items": deleted_items}
