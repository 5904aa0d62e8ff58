"""
Patient model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
import uuid

from bed_allocation.models.enums import (
    GenderEnum,
    PatientPriorityEnum,
    PatientStatusEnum,
)


class Patient(SQLModel, table=True):
    """
    Patient record.

    Created on admission and kept after discharge as history. While
    `status` is admitted, `assigned_bed_id` points to a bed occupied by
    this patient.
    """
    __tablename__ = "patient"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True
    )
    patient_code: str = Field(index=True, unique=True)  # 9X2A1

    # ============================================
    # DEMOGRAPHICS
    # ============================================
    name: str
    age: int
    gender: GenderEnum = Field(default=GenderEnum.OTHER)
    department: str = Field(default="General")
    reason_for_admission: str
    priority: PatientPriorityEnum = Field(default=PatientPriorityEnum.MEDIUM)

    # ============================================
    # STAY
    # ============================================
    status: PatientStatusEnum = Field(default=PatientStatusEnum.ADMITTED, index=True)
    assigned_bed_id: Optional[str] = Field(default=None, foreign_key="bed.id", index=True)
    admitted_at: Optional[datetime] = Field(default=None)
    discharged_at: Optional[datetime] = Field(default=None)
    estimated_stay_days: Optional[int] = Field(default=None)
    expected_discharge_date: Optional[datetime] = Field(default=None)

    # Incremented by every guarded update
    version: int = Field(default=0)

    def __repr__(self) -> str:
        return f"Patient(id={self.id}, code={self.patient_code}, status={self.status})"

    @property
    def is_admitted(self) -> bool:
        return self.status == PatientStatusEnum.ADMITTED
