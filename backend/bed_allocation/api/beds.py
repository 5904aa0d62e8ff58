"""
Bed endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from typing import List, Optional

from bed_allocation.core.database import get_session
from bed_allocation.core.websocket_manager import manager
from bed_allocation.core.exceptions import BaseAppException
from bed_allocation.models.bed import Bed
from bed_allocation.models.enums import BedStatusEnum
from bed_allocation.schemas.bed import (
    WardResponse,
    BedResponse,
    BedStatusUpdate,
    BedRecommendRequest,
    BedRecommendResponse,
    ConsistencyResponse,
)
from bed_allocation.schemas.responses import MessageResponse
from bed_allocation.services.bed_service import BedService
from bed_allocation.services.cleaning_service import CleaningService
from bed_allocation.services.consistency_service import ConsistencyService

router = APIRouter()


def bed_to_response(bed: Bed) -> BedResponse:
    """Builds the response for a bed, including its ward."""
    ward = bed.ward
    return BedResponse(
        id=bed.id,
        bed_number=bed.bed_number,
        ward_id=bed.ward_id,
        floor=bed.floor,
        status=bed.status,
        equipment=bed.equipment_list,
        current_patient_id=bed.current_patient_id,
        reserved_for_request_id=bed.reserved_for_request_id,
        estimated_available_time=bed.estimated_available_time,
        cleaning_started_at=bed.cleaning_started_at,
        auto_cleaning_enabled=bed.auto_cleaning_enabled,
        last_updated=bed.last_updated,
        ward_name=ward.name if ward else None,
        ward_type=ward.type if ward else None,
    )


@router.get("", response_model=List[BedResponse])
def list_beds(
    ward: Optional[str] = None,
    status: Optional[BedStatusEnum] = None,
    session: Session = Depends(get_session)
):
    """Lists beds, optionally filtered by ward (id or name) and status."""
    service = BedService(session)
    return [bed_to_response(bed) for bed in service.list_beds(ward=ward, status=status)]


@router.post("/recommend", response_model=BedRecommendResponse)
def recommend_bed(
    request: BedRecommendRequest,
    session: Session = Depends(get_session)
):
    """
    Recommends beds for a ward and equipment profile.
    Nothing is reserved.
    """
    service = BedService(session)
    emergency = request.emergency or not request.ward
    candidates = service.rank_beds(
        request.ward,
        request.equipment,
        emergency=emergency,
        limit=request.limit,
    )
    return BedRecommendResponse(
        recommended=bed_to_response(candidates[0]) if candidates else None,
        candidates=[bed_to_response(bed) for bed in candidates],
    )


@router.get("/consistency", response_model=ConsistencyResponse)
def check_consistency(session: Session = Depends(get_session)):
    """Reports bed/patient links that violate the occupancy invariants."""
    violations = ConsistencyService(session).find_violations()
    return ConsistencyResponse(consistent=not violations, violations=violations)


@router.get("/wards", response_model=List[WardResponse])
def list_wards(session: Session = Depends(get_session)):
    return [
        WardResponse(
            id=ward.id,
            name=ward.name,
            type=ward.type,
            floor=ward.floor,
            capacity=ward.capacity,
            equipment=ward.equipment_list,
        )
        for ward in BedService(session).list_wards()
    ]


@router.get("/{bed_id}", response_model=BedResponse)
def get_bed(bed_id: str, session: Session = Depends(get_session)):
    """Gets one bed."""
    try:
        bed = BedService(session).get_bed(bed_id)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return bed_to_response(bed)


@router.patch("/{bed_id}/status", response_model=BedResponse)
async def update_bed_status(
    bed_id: str,
    request: BedStatusUpdate,
    session: Session = Depends(get_session)
):
    """Operator status edit (available, cleaning, maintenance)."""
    service = BedService(session)

    try:
        result = service.update_status(
            bed_id,
            request.status,
            estimated_available_time=request.estimated_available_time,
        )
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    await manager.publish_events(result.events)
    return bed_to_response(result.bed)


@router.post("/{bed_id}/finish-cleaning", response_model=MessageResponse)
async def finish_cleaning(bed_id: str, session: Session = Depends(get_session)):
    """Marks a bed in cleaning as available."""
    service = CleaningService(session)

    try:
        result = service.finish_cleaning(bed_id)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    await manager.publish_events(result.events)
    bed = result.released[0]
    return MessageResponse(
        success=True,
        message=f"Bed {bed.bed_number} is now available",
        data={"bed_id": bed.id, "status": bed.status.value},
    )
