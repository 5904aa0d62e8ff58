"""
Pydantic request and response schemas.
"""
from bed_allocation.schemas.bed import (
    WardResponse,
    BedResponse,
    BedStatusUpdate,
    BedRecommendRequest,
    BedRecommendResponse,
    ConsistencyResponse,
)
from bed_allocation.schemas.patient import (
    PatientAdmit,
    AdmissionRequest,
    TransferRequest,
    PatientResponse,
)
from bed_allocation.schemas.bed_request import (
    BedRequestCreate,
    BedRequestApprove,
    BedRequestReject,
    BedRequestReserve,
    BedRequestResponse,
)
from bed_allocation.schemas.alert import AlertResponse
from bed_allocation.schemas.responses import MessageResponse

__all__ = [
    "WardResponse",
    "BedResponse",
    "BedStatusUpdate",
    "BedRecommendRequest",
    "BedRecommendResponse",
    "ConsistencyResponse",
    "PatientAdmit",
    "AdmissionRequest",
    "TransferRequest",
    "PatientResponse",
    "BedRequestCreate",
    "BedRequestApprove",
    "BedRequestReject",
    "BedRequestReserve",
    "BedRequestResponse",
    "AlertResponse",
    "MessageResponse",
]
