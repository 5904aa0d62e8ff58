"""
Bed request model.
"""
from sqlmodel import SQLModel, Field
from typing import Optional, List
from datetime import datetime
import uuid

from bed_allocation.models.enums import (
    GenderEnum,
    RequestKindEnum,
    RequestPriorityEnum,
    RequestStatusEnum,
)
from bed_allocation.utils.helpers import safe_json_loads


class BedRequest(SQLModel, table=True):
    """
    Standard or emergency bed request.

    Either references an existing patient or carries the walk-in
    demographics used to create one on approval. Recommended beds are
    computed at creation time and are never reserved by it.
    """
    __tablename__ = "bed_request"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True
    )
    kind: RequestKindEnum = Field(default=RequestKindEnum.STANDARD)

    # ============================================
    # PATIENT (reference or walk-in demographics)
    # ============================================
    patient_id: Optional[str] = Field(default=None, foreign_key="patient.id", index=True)
    patient_name: Optional[str] = Field(default=None)
    age: Optional[int] = Field(default=None)
    gender: Optional[GenderEnum] = Field(default=None)
    condition: Optional[str] = Field(default=None)

    # ============================================
    # REQUEST
    # ============================================
    requested_by: str
    ward_hint: str
    equipment_required: str = Field(default="[]")  # JSON list
    priority: RequestPriorityEnum = Field(default=RequestPriorityEnum.ROUTINE)
    status: RequestStatusEnum = Field(default=RequestStatusEnum.PENDING, index=True)
    notes: Optional[str] = Field(default=None)

    # ============================================
    # ALLOCATION
    # ============================================
    recommended_beds: str = Field(default="[]")  # JSON list of bed ids, best first
    assigned_bed_id: Optional[str] = Field(default=None, foreign_key="bed.id")

    # ============================================
    # TIMESTAMPS
    # ============================================
    request_date: datetime = Field(default_factory=datetime.utcnow, index=True)
    resolved_at: Optional[datetime] = Field(default=None)
    fulfilled_date: Optional[datetime] = Field(default=None)

    # Incremented by every guarded transition
    version: int = Field(default=0)

    def __repr__(self) -> str:
        return f"BedRequest(id={self.id}, ward_hint={self.ward_hint}, status={self.status})"

    @property
    def equipment_list(self) -> List[str]:
        return safe_json_loads(self.equipment_required)

    @property
    def recommended_bed_ids(self) -> List[str]:
        return safe_json_loads(self.recommended_beds)

    def notes_with(self, note: str) -> str:
        """Current notes with `note` appended, separated by ' | '."""
        return f"{self.notes} | {note}" if self.notes else note
