"""
Bed request endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from typing import List, Optional

from bed_allocation.core.database import get_session
from bed_allocation.core.websocket_manager import manager
from bed_allocation.core.auth_dependencies import Actor, get_current_actor
from bed_allocation.core.exceptions import BaseAppException
from bed_allocation.models.bed_request import BedRequest
from bed_allocation.models.enums import RequestStatusEnum, RequestKindEnum
from bed_allocation.schemas.bed_request import (
    BedRequestCreate,
    BedRequestApprove,
    BedRequestReject,
    BedRequestReserve,
    BedRequestResponse,
)
from bed_allocation.services.request_service import RequestService, RequestResult

router = APIRouter()


def request_to_response(request: BedRequest) -> BedRequestResponse:
    return BedRequestResponse(
        id=request.id,
        kind=request.kind,
        patient_id=request.patient_id,
        patient_name=request.patient_name,
        age=request.age,
        gender=request.gender,
        condition=request.condition,
        requested_by=request.requested_by,
        ward_hint=request.ward_hint,
        equipment_required=request.equipment_list,
        priority=request.priority,
        status=request.status,
        notes=request.notes,
        recommended_beds=request.recommended_bed_ids,
        assigned_bed_id=request.assigned_bed_id,
        request_date=request.request_date,
        resolved_at=request.resolved_at,
        fulfilled_date=request.fulfilled_date,
    )


async def _publish(result: RequestResult) -> BedRequestResponse:
    await manager.publish_events(result.events)
    return request_to_response(result.request)


@router.get("", response_model=List[BedRequestResponse])
def list_requests(
    status: Optional[RequestStatusEnum] = None,
    kind: Optional[RequestKindEnum] = None,
    mine: bool = False,
    actor: Actor = Depends(get_current_actor),
    session: Session = Depends(get_session)
):
    """Lists bed requests, newest first."""
    service = RequestService(session)
    requests = service.list_requests(
        status=status,
        kind=kind,
        requested_by=actor.user_id if mine else None,
    )
    return [request_to_response(request) for request in requests]


@router.post("", response_model=BedRequestResponse, status_code=201)
async def create_request(
    data: BedRequestCreate,
    actor: Actor = Depends(get_current_actor),
    session: Session = Depends(get_session)
):
    """Creates a bed request with ranked bed recommendations."""
    try:
        result = RequestService(session).create_request(data, actor)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return await _publish(result)


@router.get("/{request_id}", response_model=BedRequestResponse)
def get_request(request_id: str, session: Session = Depends(get_session)):
    try:
        request = RequestService(session).get_request(request_id)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return request_to_response(request)


@router.patch("/{request_id}/approve", response_model=BedRequestResponse)
async def approve_request(
    request_id: str,
    data: Optional[BedRequestApprove] = None,
    actor: Actor = Depends(get_current_actor),
    session: Session = Depends(get_session)
):
    """Approves a request and admits the patient."""
    bed_id = data.bed_id if data else None
    try:
        result = RequestService(session).approve_request(request_id, actor, bed_id=bed_id)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return await _publish(result)


@router.patch("/{request_id}/reserve", response_model=BedRequestResponse)
async def reserve_bed(
    request_id: str,
    data: Optional[BedRequestReserve] = None,
    actor: Actor = Depends(get_current_actor),
    session: Session = Depends(get_session)
):
    """Holds a bed for a pending request."""
    bed_id = data.bed_id if data else None
    try:
        result = RequestService(session).reserve_bed(request_id, bed_id, actor)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return await _publish(result)


@router.patch("/{request_id}/reject", response_model=BedRequestResponse)
async def reject_request(
    request_id: str,
    data: Optional[BedRequestReject] = None,
    actor: Actor = Depends(get_current_actor),
    session: Session = Depends(get_session)
):
    reason = data.reason if data else None
    try:
        result = RequestService(session).reject_request(request_id, actor, reason=reason)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return await _publish(result)


@router.patch("/{request_id}/cancel", response_model=BedRequestResponse)
async def cancel_request(
    request_id: str,
    actor: Actor = Depends(get_current_actor),
    session: Session = Depends(get_session)
):
    try:
        result = RequestService(session).cancel_request(request_id, actor)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return await _publish(result)


@router.patch("/{request_id}/fulfill", response_model=BedRequestResponse)
async def fulfill_request(
    request_id: str,
    actor: Actor = Depends(get_current_actor),
    session: Session = Depends(get_session)
):
    try:
        result = RequestService(session).fulfill_request(request_id, actor)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return await _publish(result)
