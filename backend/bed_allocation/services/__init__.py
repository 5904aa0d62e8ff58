"""
Business logic services.
"""
from bed_allocation.services.admission_service import AdmissionService
from bed_allocation.services.discharge_service import DischargeService
from bed_allocation.services.transfer_service import TransferService
from bed_allocation.services.bed_service import BedService
from bed_allocation.services.request_service import RequestService
from bed_allocation.services.cleaning_service import CleaningService
from bed_allocation.services.alert_service import AlertService
from bed_allocation.services.consistency_service import ConsistencyService

__all__ = [
    "AdmissionService",
    "DischargeService",
    "TransferService",
    "BedService",
    "RequestService",
    "CleaningService",
    "AlertService",
    "ConsistencyService",
]
