"""
Patient schemas.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from bed_allocation.models.enums import GenderEnum, PatientPriorityEnum, PatientStatusEnum


class PatientAdmit(BaseModel):
    """
    Data for an admission.

    Either `patient_id` (readmit an existing patient) or the demographics
    of a new patient.
    """
    patient_id: Optional[str] = None

    # Demographics
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: GenderEnum = GenderEnum.OTHER
    department: str = "General"
    reason_for_admission: Optional[str] = None
    priority: PatientPriorityEnum = PatientPriorityEnum.MEDIUM

    # Stay
    estimated_stay_days: Optional[int] = Field(default=None, ge=0)
    expected_discharge_date: Optional[datetime] = None

    @field_validator('name', 'reason_for_admission')
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None


class AdmissionRequest(PatientAdmit):
    """Body of POST /patients: admission data plus the target bed."""
    bed_id: str


class TransferRequest(BaseModel):
    """Body of POST /patients/{id}/transfer."""
    new_bed_id: str


class PatientResponse(BaseModel):
    """Patient response schema."""

    id: str
    patient_code: str
    name: str
    age: int
    gender: GenderEnum
    department: str
    reason_for_admission: str
    priority: PatientPriorityEnum
    status: PatientStatusEnum
    assigned_bed_id: Optional[str]
    admitted_at: Optional[datetime]
    discharged_at: Optional[datetime]
    estimated_stay_days: Optional[int]
    expected_discharge_date: Optional[datetime]

    class Config:
        from_attributes = True
