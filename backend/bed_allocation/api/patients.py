"""
Patient endpoints: admission, discharge and transfer.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from typing import List, Optional

from bed_allocation.core.database import get_session
from bed_allocation.core.websocket_manager import manager
from bed_allocation.core.exceptions import BaseAppException, PatientNotFoundError
from bed_allocation.models.enums import PatientStatusEnum
from bed_allocation.repositories.patient_repo import PatientRepository
from bed_allocation.schemas.patient import AdmissionRequest, TransferRequest, PatientResponse
from bed_allocation.services.admission_service import AdmissionService
from bed_allocation.services.discharge_service import DischargeService
from bed_allocation.services.transfer_service import TransferService

router = APIRouter()


@router.get("", response_model=List[PatientResponse])
def list_patients(
    status: Optional[PatientStatusEnum] = None,
    session: Session = Depends(get_session)
):
    """Lists patients, optionally by status."""
    return PatientRepository(session).list_patients(status=status)


@router.post("", response_model=PatientResponse, status_code=201)
async def admit_patient(
    request: AdmissionRequest,
    session: Session = Depends(get_session)
):
    """Admits a new or existing patient into a bed."""
    service = AdmissionService(session)

    try:
        result = service.admit_patient(request, request.bed_id)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    await manager.publish_events(result.events)
    return result.patient


@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(patient_id: str, session: Session = Depends(get_session)):
    """Gets one patient."""
    patient = PatientRepository(session).get_by_id(patient_id)
    if not patient:
        error = PatientNotFoundError(patient_id)
        raise HTTPException(status_code=error.status_code, detail=error.message)
    return patient


@router.post("/{patient_id}/discharge", response_model=PatientResponse)
async def discharge_patient(patient_id: str, session: Session = Depends(get_session)):
    """Discharges a patient; their bed goes to cleaning."""
    service = DischargeService(session)

    try:
        result = service.discharge_patient(patient_id)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    await manager.publish_events(result.events)
    return result.patient


@router.post("/{patient_id}/transfer", response_model=PatientResponse)
async def transfer_patient(
    patient_id: str,
    request: TransferRequest,
    session: Session = Depends(get_session)
):
    """Moves an admitted patient to another available bed."""
    service = TransferService(session)

    try:
        result = service.transfer_patient(patient_id, request.new_bed_id)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    await manager.publish_events(result.events)
    return result.patient
