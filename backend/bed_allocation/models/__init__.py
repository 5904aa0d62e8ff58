"""
Data models.
Re-exports every table and enum for simpler imports.
"""
from bed_allocation.models.enums import (
    WardTypeEnum,
    BedStatusEnum,
    GenderEnum,
    PatientPriorityEnum,
    PatientStatusEnum,
    RequestKindEnum,
    RequestPriorityEnum,
    RequestStatusEnum,
    AlertTypeEnum,
    AlertSeverityEnum,
    RoleEnum,
)

from bed_allocation.models.ward import Ward
from bed_allocation.models.bed import Bed
from bed_allocation.models.patient import Patient
from bed_allocation.models.bed_request import BedRequest
from bed_allocation.models.alert import Alert

__all__ = [
    # Enums
    "WardTypeEnum",
    "BedStatusEnum",
    "GenderEnum",
    "PatientPriorityEnum",
    "PatientStatusEnum",
    "RequestKindEnum",
    "RequestPriorityEnum",
    "RequestStatusEnum",
    "AlertTypeEnum",
    "AlertSeverityEnum",
    "RoleEnum",
    # Models
    "Ward",
    "Bed",
    "Patient",
    "BedRequest",
    "Alert",
]
