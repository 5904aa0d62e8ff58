"""
Bed request schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from bed_allocation.models.enums import (
    GenderEnum,
    RequestKindEnum,
    RequestPriorityEnum,
    RequestStatusEnum,
)


class BedRequestCreate(BaseModel):
    """Schema to create a bed request."""

    kind: RequestKindEnum = RequestKindEnum.STANDARD

    # Patient reference or walk-in demographics
    patient_id: Optional[str] = None
    patient_name: Optional[str] = Field(default=None, max_length=200)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[GenderEnum] = None
    condition: Optional[str] = None

    ward: str = Field(..., min_length=1)
    equipment: List[str] = []
    priority: RequestPriorityEnum = RequestPriorityEnum.ROUTINE
    notes: Optional[str] = None

    # Emergency intake: admit right away into the best global bed
    auto_admit: bool = False


class BedRequestApprove(BaseModel):
    bed_id: Optional[str] = None


class BedRequestReject(BaseModel):
    reason: Optional[str] = None


class BedRequestReserve(BaseModel):
    bed_id: Optional[str] = None


class BedRequestResponse(BaseModel):
    """Bed request response schema."""

    id: str
    kind: RequestKindEnum
    patient_id: Optional[str]
    patient_name: Optional[str]
    age: Optional[int]
    gender: Optional[GenderEnum]
    condition: Optional[str]
    requested_by: str
    ward_hint: str
    equipment_required: List[str] = []
    priority: RequestPriorityEnum
    status: RequestStatusEnum
    notes: Optional[str]
    recommended_beds: List[str] = []
    assigned_bed_id: Optional[str]
    request_date: datetime
    resolved_at: Optional[datetime]
    fulfilled_date: Optional[datetime]
