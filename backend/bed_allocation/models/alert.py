"""
Alert model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
import uuid

from bed_allocation.models.enums import AlertTypeEnum, AlertSeverityEnum


class Alert(SQLModel, table=True):
    """
    Operational alert raised after bed state changes.

    Occupancy alerts for one ward and threshold are de-duplicated while an
    unread copy younger than the dedup window exists.
    """
    __tablename__ = "alert"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True
    )
    type: AlertTypeEnum = Field(index=True)
    severity: AlertSeverityEnum = Field(default=AlertSeverityEnum.INFO)
    message: str
    ward_id: Optional[str] = Field(default=None, index=True)
    threshold: Optional[int] = Field(default=None)
    related_bed_id: Optional[str] = Field(default=None)
    is_read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"Alert(type={self.type}, severity={self.severity}, ward_id={self.ward_id})"
