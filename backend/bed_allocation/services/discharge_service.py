"""
Discharge service.
Discharges admitted patients and sends their bed to cleaning.
"""
from typing import Optional, List, Dict, Any
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging

from bed_allocation.config import settings
from bed_allocation.models.bed import Bed
from bed_allocation.models.patient import Patient
from bed_allocation.models.enums import BedStatusEnum, PatientStatusEnum
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.repositories.patient_repo import PatientRepository
from bed_allocation.core.exceptions import (
    BaseAppException,
    ConflictError,
    PatientNotFoundError,
    PatientAlreadyDischargedError,
    PatientNotAdmittedError,
    InternalFailureError,
)
from bed_allocation.services import events

logger = logging.getLogger("bed_allocation.discharge")


@dataclass
class DischargeResult:
    """Result of a discharge."""
    success: bool
    message: str
    patient: Optional[Patient] = None
    bed: Optional[Bed] = None
    events: List[Dict[str, Any]] = field(default_factory=list)


def cleaning_deadline(now: datetime) -> datetime:
    """Time at which a bed entering cleaning now is expected to be ready."""
    return now + timedelta(minutes=settings.CLEANING_DURATION_MINUTES)


class DischargeService:
    """Service for patient discharges."""

    def __init__(self, session: Session):
        self.session = session
        self.patient_repo = PatientRepository(session)
        self.bed_repo = BedRepository(session)

    def discharge_patient(self, patient_id: str) -> DischargeResult:
        """
        Discharges a patient.

        The patient becomes discharged and their bed, if they still occupy
        it, moves to cleaning with an estimated available time. The
        patient keeps `assigned_bed_id` as history.

        Args:
            patient_id: Patient ID

        Returns:
            Discharge result

        Raises:
            PatientNotFoundError: Unknown patient
            PatientAlreadyDischargedError: Second discharge
            PatientNotAdmittedError: Patient in any other non-admitted state
            InternalFailureError: Store failure, nothing was written
        """
        patient = self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise PatientNotFoundError(patient_id)

        if patient.status == PatientStatusEnum.DISCHARGED:
            logger.warning(f"Patient {patient.patient_code} is already discharged")
            raise PatientAlreadyDischargedError(patient.patient_code)
        if patient.status != PatientStatusEnum.ADMITTED:
            raise PatientNotAdmittedError(patient.patient_code, patient.status.value)

        now = datetime.utcnow()
        bed = self.bed_repo.get_by_id(patient.assigned_bed_id) if patient.assigned_bed_id else None

        try:
            discharged = self.patient_repo.conditional_update(
                patient,
                [PatientStatusEnum.ADMITTED],
                status=PatientStatusEnum.DISCHARGED,
                discharged_at=now,
            )
            if not discharged:
                if patient.status == PatientStatusEnum.DISCHARGED:
                    raise PatientAlreadyDischargedError(patient.patient_code)
                raise ConflictError(
                    f"Patient {patient.patient_code} changed concurrently, retry the discharge"
                )

            # Only release a bed this patient actually occupies
            if bed and bed.current_patient_id == patient.id:
                released = self.bed_repo.conditional_update(
                    bed,
                    [BedStatusEnum.OCCUPIED],
                    status=BedStatusEnum.CLEANING,
                    current_patient_id=None,
                    cleaning_started_at=now,
                    estimated_available_time=cleaning_deadline(now),
                    last_updated=now,
                )
                if not released:
                    raise ConflictError(
                        f"Bed {bed.bed_number} changed concurrently, retry the discharge"
                    )
            else:
                bed = None

            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Discharge of patient {patient_id} failed: {e}")
            raise InternalFailureError("discharge", str(e))

        self.session.refresh(patient)
        produced = [events.patient_event("discharged", patient, bed)]
        if bed:
            self.session.refresh(bed)
            produced.insert(0, events.bed_updated(bed))
            logger.info(f"Patient {patient.patient_code} discharged, bed {bed.bed_number} to cleaning")
        else:
            logger.info(f"Patient {patient.patient_code} discharged without a bed to release")

        return DischargeResult(
            success=True,
            message=f"Patient {patient.patient_code} discharged",
            patient=patient,
            bed=bed,
            events=produced,
        )
