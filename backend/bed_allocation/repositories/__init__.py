"""
Data access repositories.
"""
from bed_allocation.repositories.base import BaseRepository
from bed_allocation.repositories.ward_repo import WardRepository
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.repositories.patient_repo import PatientRepository
from bed_allocation.repositories.request_repo import BedRequestRepository
from bed_allocation.repositories.alert_repo import AlertRepository

__all__ = [
    "BaseRepository",
    "WardRepository",
    "BedRepository",
    "PatientRepository",
    "BedRequestRepository",
    "AlertRepository",
]
