"""
Ward model.
"""
from sqlmodel import SQLModel, Field, Relationship
from typing import List, TYPE_CHECKING
from datetime import datetime
import uuid

from bed_allocation.models.enums import WardTypeEnum
from bed_allocation.utils.helpers import safe_json_loads

if TYPE_CHECKING:
    from bed_allocation.models.bed import Bed


class Ward(SQLModel, table=True):
    """
    Hospital ward.

    A named unit (ICU, Emergency, General Ward...) holding a set of beds
    that share a type and an equipment profile.
    """
    __tablename__ = "ward"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True
    )
    name: str = Field(index=True, unique=True)
    type: WardTypeEnum = Field(index=True)
    floor: int = Field(default=1)
    capacity: int = Field(default=0)
    equipment: str = Field(default="[]")  # JSON list
    created_at: datetime = Field(default_factory=datetime.utcnow)

    beds: List["Bed"] = Relationship(back_populates="ward")

    @property
    def equipment_list(self) -> List[str]:
        return safe_json_loads(self.equipment)

    def __repr__(self) -> str:
        return f"Ward(id={self.id}, name={self.name}, type={self.type})"
