"""
System enumerations.
Centralized to avoid circular imports.
"""
from enum import Enum


class WardTypeEnum(str, Enum):
    """Kind of hospital unit."""
    ICU = "icu"
    ER = "er"
    GENERAL = "general"


class BedStatusEnum(str, Enum):
    """Status of a hospital bed."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    CLEANING = "cleaning"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"


class GenderEnum(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class PatientPriorityEnum(str, Enum):
    """Clinical priority recorded on the patient."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PatientStatusEnum(str, Enum):
    ADMITTED = "admitted"
    DISCHARGED = "discharged"
    TRANSFERRED = "transferred"


class RequestKindEnum(str, Enum):
    """Origin of a bed request."""
    STANDARD = "standard"
    EMERGENCY = "emergency"


class RequestPriorityEnum(str, Enum):
    """Urgency of a bed request."""
    ROUTINE = "routine"
    MODERATE = "moderate"
    URGENT = "urgent"
    CRITICAL = "critical"


class RequestStatusEnum(str, Enum):
    """Lifecycle state of a bed request."""
    PENDING = "pending"
    APPROVED = "approved"      # bed reserved, admission pending
    ASSIGNED = "assigned"      # patient admitted to the bed
    FULFILLED = "fulfilled"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class AlertTypeEnum(str, Enum):
    CRITICAL_OCCUPANCY = "critical_occupancy"
    BED_UNAVAILABLE = "bed_unavailable"
    BED_AVAILABLE = "bed_available"


class AlertSeverityEnum(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class RoleEnum(str, Enum):
    """Staff roles supplied by the authentication gateway."""
    HOSPITAL_ADMIN = "hospital_admin"
    ICU_MANAGER = "icu_manager"
    ER_STAFF = "er_staff"
    NURSE = "nurse"
    DOCTOR = "doctor"


# ============================================
# CONSTANTS RELATED TO ENUMS
# ============================================

# Ward ranking for emergency (global) allocation
WARD_TYPE_PRIORITY = [
    WardTypeEnum.ER,
    WardTypeEnum.ICU,
    WardTypeEnum.GENERAL,
]

# Statuses an operator may set directly on a bed
DIRECT_EDIT_STATUSES = [
    BedStatusEnum.AVAILABLE,
    BedStatusEnum.CLEANING,
    BedStatusEnum.MAINTENANCE,
]

# Statuses counted as "unavailable but not occupied" by the occupancy alert
UNAVAILABLE_BED_STATUSES = [
    BedStatusEnum.CLEANING,
    BedStatusEnum.MAINTENANCE,
    BedStatusEnum.RESERVED,
]

# Request statuses on which approve/reject are no longer allowed
PROCESSED_REQUEST_STATUSES = [
    RequestStatusEnum.ASSIGNED,
    RequestStatusEnum.FULFILLED,
    RequestStatusEnum.REJECTED,
    RequestStatusEnum.CANCELLED,
]

# Request statuses from which a cancellation is accepted
CANCELLABLE_REQUEST_STATUSES = [
    RequestStatusEnum.PENDING,
    RequestStatusEnum.APPROVED,
]

# Request statuses from which an approval is accepted
APPROVABLE_REQUEST_STATUSES = [
    RequestStatusEnum.PENDING,
    RequestStatusEnum.APPROVED,
]

# Patient statuses from which an admission is accepted
ADMITTABLE_PATIENT_STATUSES = [
    PatientStatusEnum.DISCHARGED,
    PatientStatusEnum.TRANSFERRED,
]
