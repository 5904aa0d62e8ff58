"""
Admission service.

Admits a patient into a bed. The bed claim and the update of an existing
patient are conditional updates guarded by status and version, and both
writes are committed together, so a losing concurrent writer never leaves
a bed half-claimed or a patient in two beds.

Re-running an admission that already happened (bed occupied by the same
patient) is a successful no-op, and repairs the patient side if only the
bed write had been applied.
"""
from typing import Optional, List, Dict, Any, Callable, Iterable
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
import random
import string
import time

from bed_allocation.config import settings
from bed_allocation.models.bed import Bed
from bed_allocation.models.patient import Patient
from bed_allocation.models.enums import (
    BedStatusEnum,
    PatientStatusEnum,
    ADMITTABLE_PATIENT_STATUSES,
)
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.repositories.patient_repo import PatientRepository
from bed_allocation.core.exceptions import (
    BaseAppException,
    ValidationError,
    BedNotFoundError,
    PatientNotFoundError,
    ConflictError,
    BedNotAvailableError,
    PatientAlreadyAdmittedError,
    InternalFailureError,
)
from bed_allocation.schemas.patient import PatientAdmit
from bed_allocation.services import events
from bed_allocation.services.alert_service import AlertService

logger = logging.getLogger("bed_allocation.admission")

CODE_ALPHABET = string.ascii_uppercase + string.digits


def random_patient_code(length: Optional[int] = None) -> str:
    """Random upper-case alphanumeric code, e.g. "9X2A1"."""
    length = length or settings.PATIENT_CODE_LENGTH
    return "".join(random.choices(CODE_ALPHABET, k=length))


@dataclass
class AdmissionResult:
    """Result of an admission."""
    success: bool
    message: str
    patient: Optional[Patient] = None
    bed: Optional[Bed] = None
    patient_created: bool = False
    already_admitted: bool = False
    events: List[Dict[str, Any]] = field(default_factory=list)


class AdmissionService:
    """
    Service for patient admissions.

    Handles:
    - Unique patient code generation
    - Guarded bed claim and patient update in one transaction
    - Occupancy alert evaluation after the commit
    """

    def __init__(
        self,
        session: Session,
        code_factory: Optional[Callable[[], str]] = None
    ):
        self.session = session
        self.bed_repo = BedRepository(session)
        self.patient_repo = PatientRepository(session)
        self.code_factory = code_factory or random_patient_code

    def generate_patient_code(self) -> str:
        """
        Generates a patient code not used by any stored patient.

        Tries `PATIENT_CODE_MAX_ATTEMPTS` random codes, then falls back to
        the last digits of the current timestamp.

        Returns:
            Patient code
        """
        for _ in range(settings.PATIENT_CODE_MAX_ATTEMPTS):
            code = self.code_factory()
            if not self.patient_repo.exists_code(code):
                return code

        code = str(int(time.time() * 1000))[-settings.PATIENT_CODE_LENGTH:]
        logger.warning(f"Patient code collisions exhausted, using timestamp code {code}")
        return code

    def admit_patient(self, data: PatientAdmit, bed_id: str) -> AdmissionResult:
        """
        Admits a new or existing patient into a bed.

        Args:
            data: Demographics of a new patient, or `patient_id`
            bed_id: Target bed

        Returns:
            Admission result with the patient, the bed and the events

        Raises:
            BedNotFoundError: Unknown bed
            PatientNotFoundError: Unknown `patient_id`
            ValidationError: Missing demographics
            BedNotAvailableError: Bed not available or lost to another writer
            PatientAlreadyAdmittedError: Patient already occupies another bed
            InternalFailureError: Store failure, nothing was written
        """
        bed = self.bed_repo.get_by_id(bed_id)
        if not bed:
            raise BedNotFoundError(bed_id)

        patient = None
        if data.patient_id:
            patient = self.patient_repo.get_by_id(data.patient_id)
            if not patient:
                raise PatientNotFoundError(data.patient_id)

        try:
            result = self.stage_admission(bed, patient=patient, data=data)
            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Admission into bed {bed_id} failed: {e}")
            raise InternalFailureError("admission", str(e))

        self.session.refresh(result.patient)
        self.session.refresh(result.bed)

        if not result.already_admitted:
            result.events.extend(AlertService(self.session).check_occupancy(result.bed.ward_id))

        return result

    def stage_admission(
        self,
        bed: Bed,
        patient: Optional[Patient] = None,
        data: Optional[PatientAdmit] = None,
        request_id: Optional[str] = None
    ) -> AdmissionResult:
        """
        Applies the admission writes to the session without committing.

        The caller owns the transaction and must roll back on any error.

        Args:
            bed: Target bed
            patient: Existing patient, or None to create one from `data`
            data: Demographics and stay information
            request_id: Request holding a reservation on `bed`, if any

        Returns:
            Admission result (events not yet published)
        """
        # Idempotent retry: bed already occupied by this patient
        if patient and bed.status == BedStatusEnum.OCCUPIED and bed.current_patient_id == patient.id:
            repaired = self._repair_patient_side(patient, bed)
            message = (
                f"Patient {patient.patient_code} admission repaired for bed {bed.bed_number}"
                if repaired else
                f"Patient {patient.patient_code} already admitted to bed {bed.bed_number}"
            )
            logger.info(message)
            return AdmissionResult(
                success=True,
                message=message,
                patient=patient,
                bed=bed,
                already_admitted=not repaired,
                events=[events.bed_updated(bed), events.patient_event("admitted", patient, bed)]
                if repaired else [],
            )

        if patient and patient.is_admitted:
            raise self._already_admitted(patient)

        allowed = self._claimable_statuses(bed, request_id)
        if bed.status not in allowed:
            logger.warning(f"Bed {bed.bed_number} rejected admission (status: {bed.status.value})")
            raise BedNotAvailableError(bed.bed_number, bed.status.value)

        patient_created = False
        if patient is None:
            patient = self._new_patient(data)
            self.patient_repo.add(patient)
            patient_created = True

        claimed = self.bed_repo.conditional_update(
            bed,
            allowed,
            status=BedStatusEnum.OCCUPIED,
            current_patient_id=patient.id,
            reserved_for_request_id=None,
            estimated_available_time=None,
            cleaning_started_at=None,
        )
        if not claimed:
            logger.warning(f"Bed {bed.bed_number} was taken by a concurrent writer")
            raise BedNotAvailableError(bed.bed_number, bed.status.value)

        now = datetime.utcnow()
        stay = dict(
            status=PatientStatusEnum.ADMITTED,
            assigned_bed_id=bed.id,
            admitted_at=now,
            discharged_at=None,
            **self._stay_values(patient, data, now)
        )
        if patient_created:
            for name, value in stay.items():
                setattr(patient, name, value)
            self.patient_repo.add(patient)
        elif not self.patient_repo.conditional_update(patient, ADMITTABLE_PATIENT_STATUSES, **stay):
            raise self._already_admitted(patient)

        logger.info(f"Patient {patient.patient_code} admitted to bed {bed.bed_number}")

        return AdmissionResult(
            success=True,
            message=f"Patient {patient.patient_code} admitted to bed {bed.bed_number}",
            patient=patient,
            bed=bed,
            patient_created=patient_created,
            events=[events.bed_updated(bed), events.patient_event("admitted", patient, bed)],
        )

    def _claimable_statuses(self, bed: Bed, request_id: Optional[str]) -> Iterable[BedStatusEnum]:
        if request_id and bed.status == BedStatusEnum.RESERVED and bed.reserved_for_request_id == request_id:
            return [BedStatusEnum.AVAILABLE, BedStatusEnum.RESERVED]
        return [BedStatusEnum.AVAILABLE]

    def _stay_values(
        self,
        patient: Patient,
        data: Optional[PatientAdmit],
        admitted_at: datetime
    ) -> Dict[str, Any]:
        """
        Estimated stay and expected discharge for a new stay.

        An explicit expected discharge date wins; otherwise it is
        admitted_at + estimated_stay_days when a positive stay is known.
        """
        days = patient.estimated_stay_days
        if data is not None and data.estimated_stay_days is not None:
            days = data.estimated_stay_days

        expected = patient.expected_discharge_date
        if data is not None and data.expected_discharge_date is not None:
            expected = data.expected_discharge_date
        elif days and days > 0:
            expected = admitted_at + timedelta(days=days)

        return {"estimated_stay_days": days, "expected_discharge_date": expected}

    def _already_admitted(self, patient: Patient) -> PatientAlreadyAdmittedError:
        current = self.bed_repo.get_by_id(patient.assigned_bed_id) if patient.assigned_bed_id else None
        logger.warning(f"Patient {patient.patient_code} is already admitted elsewhere")
        return PatientAlreadyAdmittedError(
            patient.patient_code,
            current.bed_number if current else str(patient.assigned_bed_id)
        )

    def _repair_patient_side(self, patient: Patient, bed: Bed) -> bool:
        """Points an existing patient at the bed they occupy. True if anything changed."""
        if patient.is_admitted and patient.assigned_bed_id == bed.id:
            return False
        repaired = self.patient_repo.conditional_update(
            patient,
            list(PatientStatusEnum),
            status=PatientStatusEnum.ADMITTED,
            assigned_bed_id=bed.id,
            admitted_at=patient.admitted_at or datetime.utcnow(),
            discharged_at=None,
        )
        if not repaired:
            raise ConflictError(f"Patient {patient.patient_code} changed concurrently, retry")
        return True

    def _new_patient(self, data: Optional[PatientAdmit]) -> Patient:
        if data is None or not data.name:
            raise ValidationError("Patient name is required to admit a new patient")
        if data.age is None:
            raise ValidationError("Patient age is required to admit a new patient")
        if data.age < 0:
            raise ValidationError("Patient age must not be negative")

        return Patient(
            patient_code=self.generate_patient_code(),
            name=data.name,
            age=data.age,
            gender=data.gender,
            department=data.department,
            reason_for_admission=data.reason_for_admission or "Not specified",
            priority=data.priority,
            estimated_stay_days=data.estimated_stay_days,
        )
