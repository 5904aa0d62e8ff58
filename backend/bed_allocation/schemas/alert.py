"""
Alert schemas.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from bed_allocation.models.enums import AlertTypeEnum, AlertSeverityEnum


class AlertResponse(BaseModel):
    id: str
    type: AlertTypeEnum
    severity: AlertSeverityEnum
    message: str
    ward_id: Optional[str]
    threshold: Optional[int]
    related_bed_id: Optional[str]
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
