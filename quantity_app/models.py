from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
from decimal import Decimal

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# All engine numbers are fixed-point hundredths: stored as NUMERIC(12, 2), never FLOAT.
Fixed2 = Numeric(12, 2, asdecimal=True)


class QuantityTable(Base):
    """A project's quantity take-off document."""
    __tablename__ = "quantity_tables"

    id = Column(String, primary_key=True, default=_uuid)
    project_id = Column(String, nullable=True, index=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    groups = relationship(
        "QuantityGroup",
        back_populates="table",
        cascade="all, delete-orphan",
        order_by="QuantityGroup.display_order",
    )


class QuantityGroup(Base):
    """Section of a table, optionally linked to an annotated survey photo."""
    __tablename__ = "quantity_groups"

    id = Column(String, primary_key=True, default=_uuid)
    quantity_table_id = Column(String, ForeignKey("quantity_tables.id"), nullable=False)
    name = Column(String(200), nullable=True)
    survey_image_id = Column(String, nullable=True)
    display_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    table = relationship("QuantityTable", back_populates="groups")
    items = relationship(
        "QuantityItem",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="QuantityItem.display_order",
    )


class QuantityItem(Base):
    """
    One line item. Columns mirror QuantityItem.snapshot(): the engine
    computes `quantity`, this table only stores it.
    """
    __tablename__ = "quantity_items"

    id = Column(String, primary_key=True, default=_uuid)
    quantity_group_id = Column(String, ForeignKey("quantity_groups.id"), nullable=False)
    display_order = Column(Integer, default=0)

    # Classification
    major_category = Column(String, default="")
    middle_category = Column(String, default="")
    minor_category = Column(String, default="")
    optional_category = Column(String, default="")
    work_type = Column(String, default="")
    name = Column(String, nullable=False)
    specification = Column(String, default="")
    unit = Column(String, default="")
    remarks = Column(Text, default="")

    # Calculation
    calculation_mode = Column(String, default="STANDARD")
    width = Column(Fixed2, nullable=True)
    depth = Column(Fixed2, nullable=True)
    height = Column(Fixed2, nullable=True)
    range_length = Column(Fixed2, nullable=True)
    edge1 = Column(Fixed2, nullable=True)
    edge2 = Column(Fixed2, nullable=True)
    pitch_length = Column(Fixed2, nullable=True)
    length = Column(Fixed2, nullable=True)
    weight = Column(Fixed2, nullable=True)
    entered_quantity = Column(Fixed2, nullable=False, default=0)
    adjustment_coefficient = Column(Fixed2, nullable=False, default=1)
    rounding_unit = Column(Fixed2, nullable=False, default=Decimal("0.01"))
    quantity = Column(Fixed2, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    group = relationship("QuantityGroup", back_populates="items")
