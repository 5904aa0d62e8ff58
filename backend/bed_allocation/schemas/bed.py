"""
Bed and ward schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from bed_allocation.models.enums import BedStatusEnum, WardTypeEnum


class WardResponse(BaseModel):
    """Ward response schema."""

    id: str
    name: str
    type: WardTypeEnum
    floor: int
    capacity: int
    equipment: List[str] = []


class BedResponse(BaseModel):
    """Bed response schema."""

    id: str
    bed_number: str
    ward_id: str
    floor: int
    status: BedStatusEnum
    equipment: List[str] = []
    current_patient_id: Optional[str]
    reserved_for_request_id: Optional[str]
    estimated_available_time: Optional[datetime]
    cleaning_started_at: Optional[datetime]
    auto_cleaning_enabled: bool
    last_updated: datetime

    # Ward info
    ward_name: Optional[str] = None
    ward_type: Optional[WardTypeEnum] = None


class BedStatusUpdate(BaseModel):
    """Operator status edit."""
    status: BedStatusEnum
    estimated_available_time: Optional[datetime] = None


class BedRecommendRequest(BaseModel):
    """Recommendation query."""
    ward: Optional[str] = None
    equipment: List[str] = []
    emergency: bool = False
    limit: int = Field(default=1, ge=1, le=10)


class BedRecommendResponse(BaseModel):
    """Recommendation result, best first. Empty when nothing is available."""
    recommended: Optional[BedResponse] = None
    candidates: List[BedResponse] = []


class ConsistencyResponse(BaseModel):
    consistent: bool
    violations: List[str] = []
