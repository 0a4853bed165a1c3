from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime

from .engine.errors import FieldIssue


# --- Quantity items ---

class QuantityItemFields(BaseModel):
    """
    Raw field text exactly as typed. Only the fields that were sent are applied,
    calculation_mode first so the edit lands in the right mode.
    """
    major_category: Optional[str] = None
    middle_category: Optional[str] = None
    minor_category: Optional[str] = None
    optional_category: Optional[str] = None
    work_type: Optional[str] = None
    name: Optional[str] = None
    specification: Optional[str] = None
    unit: Optional[str] = None
    remarks: Optional[str] = None
    calculation_mode: Optional[str] = None
    quantity: Optional[str] = None
    adjustment_coefficient: Optional[str] = None
    rounding_unit: Optional[str] = None
    width: Optional[str] = None
    depth: Optional[str] = None
    height: Optional[str] = None
    range_length: Optional[str] = None
    edge1: Optional[str] = None
    edge2: Optional[str] = None
    pitch_length: Optional[str] = None
    length: Optional[str] = None
    weight: Optional[str] = None


class QuantityItem(BaseModel):
    """Stored item, numbers rendered the way the table displays them."""
    id: str
    quantity_group_id: str
    display_order: int
    major_category: str
    middle_category: str
    minor_category: str
    optional_category: str
    work_type: str
    name: str
    specification: str
    unit: str
    remarks: str
    calculation_mode: str
    width: str
    depth: str
    height: str
    range_length: str
    edge1: str
    edge2: str
    pitch_length: str
    length: str
    weight: str
    entered_quantity: str
    adjustment_coefficient: str
    rounding_unit: str
    quantity: str
    formula: str
    warnings: List[FieldIssue] = []


class QuantityItemMove(BaseModel):
    target_group_id: str
    display_order: int = Field(default=0, ge=0)


class QuantityItemPreview(BaseModel):
    values: Dict[str, str]
    formula: str
    is_valid: bool
    errors: List[FieldIssue] = []
    warnings: List[FieldIssue] = []


# --- Quantity groups ---

class QuantityGroupCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    survey_image_id: Optional[str] = None


class QuantityGroup(BaseModel):
    id: str
    quantity_table_id: str
    name: Optional[str] = None
    survey_image_id: Optional[str] = None
    display_order: int
    items: List[QuantityItem] = []


# --- Quantity tables ---

class QuantityTableCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    project_id: Optional[str] = None


class QuantityTableUpdate(BaseModel):
    name: str


class QuantityTableSummary(BaseModel):
    id: str
    project_id: Optional[str] = None
    name: str
    created_at: datetime
    updated_at: datetime
    group_count: int = 0
    item_count: int = 0


class QuantityTable(BaseModel):
    id: str
    project_id: Optional[str] = None
    name: str
    created_at: datetime
    updated_at: datetime
    groups: List[QuantityGroup] = []


# --- Bulk save ---

class ItemSave(BaseModel):
    id: Optional[str] = None
    raw: QuantityItemFields


class GroupSave(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=200)
    survey_image_id: Optional[str] = None
    items: List[ItemSave] = []


class QuantityTableSave(BaseModel):
    name: Optional[str] = None
    groups: List[GroupSave] = []
