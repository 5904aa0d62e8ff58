"""
Transfer service.
Moves an admitted patient to another available bed.
"""
from typing import Optional, List, Dict, Any
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass, field
from datetime import datetime
import logging

from bed_allocation.models.bed import Bed
from bed_allocation.models.patient import Patient
from bed_allocation.models.enums import BedStatusEnum, PatientStatusEnum
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.repositories.patient_repo import PatientRepository
from bed_allocation.core.exceptions import (
    BaseAppException,
    ValidationError,
    ConflictError,
    PatientNotFoundError,
    BedNotFoundError,
    PatientNotAdmittedError,
    BedNotAvailableError,
    InternalFailureError,
)
from bed_allocation.services import events
from bed_allocation.services.alert_service import AlertService
from bed_allocation.services.discharge_service import cleaning_deadline

logger = logging.getLogger("bed_allocation.transfer")


@dataclass
class TransferResult:
    """Result of a transfer."""
    success: bool
    message: str
    patient: Optional[Patient] = None
    old_bed: Optional[Bed] = None
    new_bed: Optional[Bed] = None
    events: List[Dict[str, Any]] = field(default_factory=list)


class TransferService:
    """
    Service for bed-to-bed transfers.

    The old bed goes to cleaning, the new bed is claimed with a guarded
    update and the patient is re-pointed, all in one transaction. The
    patient stays admitted.
    """

    def __init__(self, session: Session):
        self.session = session
        self.patient_repo = PatientRepository(session)
        self.bed_repo = BedRepository(session)

    def transfer_patient(self, patient_id: str, new_bed_id: str) -> TransferResult:
        """
        Transfers a patient to another bed.

        Args:
            patient_id: Patient ID
            new_bed_id: Destination bed ID

        Returns:
            Transfer result

        Raises:
            PatientNotFoundError: Unknown patient
            PatientNotAdmittedError: Patient is not admitted
            BedNotFoundError: Unknown destination bed
            ValidationError: Destination is the current bed
            BedNotAvailableError: Destination not available or lost to another writer
            InternalFailureError: Store failure, nothing was written
        """
        patient = self.patient_repo.get_by_id(patient_id)
        if not patient:
            raise PatientNotFoundError(patient_id)

        if patient.status != PatientStatusEnum.ADMITTED:
            raise PatientNotAdmittedError(patient.patient_code, patient.status.value)

        new_bed = self.bed_repo.get_by_id(new_bed_id)
        if not new_bed:
            raise BedNotFoundError(new_bed_id)

        if patient.assigned_bed_id == new_bed.id:
            raise ValidationError(
                f"Patient {patient.patient_code} is already in bed {new_bed.bed_number}"
            )

        if new_bed.status != BedStatusEnum.AVAILABLE:
            logger.warning(
                f"Transfer of {patient.patient_code} rejected: bed {new_bed.bed_number} "
                f"is {new_bed.status.value}"
            )
            raise BedNotAvailableError(new_bed.bed_number, new_bed.status.value)

        old_bed = self.bed_repo.get_by_id(patient.assigned_bed_id) if patient.assigned_bed_id else None
        now = datetime.utcnow()

        try:
            # 1. Free the old bed
            if old_bed and old_bed.current_patient_id == patient.id:
                freed = self.bed_repo.conditional_update(
                    old_bed,
                    [BedStatusEnum.OCCUPIED],
                    status=BedStatusEnum.CLEANING,
                    current_patient_id=None,
                    cleaning_started_at=now,
                    estimated_available_time=cleaning_deadline(now),
                    last_updated=now,
                )
                if not freed:
                    raise ConflictError(
                        f"Bed {old_bed.bed_number} changed concurrently, retry the transfer"
                    )
            else:
                old_bed = None

            # 2. Occupy the new bed
            claimed = self.bed_repo.conditional_update(
                new_bed,
                [BedStatusEnum.AVAILABLE],
                status=BedStatusEnum.OCCUPIED,
                current_patient_id=patient.id,
                estimated_available_time=None,
                cleaning_started_at=None,
                last_updated=now,
            )
            if not claimed:
                logger.warning(f"Bed {new_bed.bed_number} was taken by a concurrent writer")
                raise BedNotAvailableError(new_bed.bed_number, new_bed.status.value)

            # 3. Re-point the patient
            moved = self.patient_repo.conditional_update(
                patient,
                [PatientStatusEnum.ADMITTED],
                assigned_bed_id=new_bed.id,
            )
            if not moved:
                raise ConflictError(
                    f"Patient {patient.patient_code} changed concurrently, retry the transfer"
                )

            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Transfer of patient {patient_id} failed: {e}")
            raise InternalFailureError("transfer", str(e))

        self.session.refresh(patient)
        self.session.refresh(new_bed)

        produced: List[Dict[str, Any]] = []
        if old_bed:
            self.session.refresh(old_bed)
            produced.append(events.bed_updated(old_bed))
        produced.append(events.bed_updated(new_bed))
        produced.append(events.patient_event(
            "transferred",
            patient,
            new_bed,
            from_bed_id=old_bed.id if old_bed else None,
        ))
        produced.extend(AlertService(self.session).check_occupancy(new_bed.ward_id))

        logger.info(
            f"Patient {patient.patient_code} transferred "
            f"{old_bed.bed_number if old_bed else '-'} -> {new_bed.bed_number}"
        )

        return TransferResult(
            success=True,
            message=f"Patient {patient.patient_code} transferred to bed {new_bed.bed_number}",
            patient=patient,
            old_bed=old_bed,
            new_bed=new_bed,
            events=produced,
        )
