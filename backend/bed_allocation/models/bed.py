"""
Bed model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
import uuid

from bed_allocation.models.enums import BedStatusEnum
from bed_allocation.utils.helpers import safe_json_loads

if TYPE_CHECKING:
    from bed_allocation.models.ward import Ward


class Bed(SQLModel, table=True):
    """
    Hospital bed.

    Status changes only through the admission, discharge, transfer,
    reservation and operator-edit operations. `current_patient_id` is set
    if and only if the bed is occupied.
    """
    __tablename__ = "bed"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True
    )
    bed_number: str = Field(index=True, unique=True)  # ICU-001
    ward_id: str = Field(foreign_key="ward.id", index=True)
    floor: int = Field(default=1)
    status: BedStatusEnum = Field(default=BedStatusEnum.AVAILABLE, index=True)
    equipment: str = Field(default="[]")  # JSON list of tags

    # Linkage
    current_patient_id: Optional[str] = Field(default=None, index=True)
    reserved_for_request_id: Optional[str] = Field(default=None)

    # Cleaning
    estimated_available_time: Optional[datetime] = Field(default=None)
    cleaning_started_at: Optional[datetime] = Field(default=None)
    auto_cleaning_enabled: bool = Field(default=True)

    last_updated: datetime = Field(default_factory=datetime.utcnow)

    # Incremented by every guarded transition
    version: int = Field(default=0)

    ward: Optional["Ward"] = Relationship(back_populates="beds")

    def __repr__(self) -> str:
        return f"Bed(id={self.id}, bed_number={self.bed_number}, status={self.status})"

    @property
    def equipment_list(self) -> List[str]:
        return safe_json_loads(self.equipment)

    @property
    def is_available(self) -> bool:
        return self.status == BedStatusEnum.AVAILABLE

    @property
    def is_occupied(self) -> bool:
        return self.status == BedStatusEnum.OCCUPIED
