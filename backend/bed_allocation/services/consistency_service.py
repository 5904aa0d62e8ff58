"""
Consistency service.
Scans the bed and patient tables for broken links between them.
"""
from typing import List
from sqlmodel import Session
import logging

from bed_allocation.models.enums import BedStatusEnum
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.repositories.patient_repo import PatientRepository

logger = logging.getLogger("bed_allocation.consistency")


class ConsistencyService:
    """
    Checks the bed/patient invariants:

    - a bed has a current patient if and only if it is occupied, and that
      patient's assigned bed is this bed
    - an admitted patient's assigned bed is occupied by that patient
    - a reservation marker exists only on reserved beds
    """

    def __init__(self, session: Session):
        self.session = session
        self.bed_repo = BedRepository(session)
        self.patient_repo = PatientRepository(session)

    def find_violations(self) -> List[str]:
        """
        Lists every invariant violation found.

        Returns:
            Human readable descriptions, empty when consistent
        """
        violations: List[str] = []
        patients = {patient.id: patient for patient in self.patient_repo.get_all()}
        beds = {bed.id: bed for bed in self.bed_repo.get_all()}

        for bed in beds.values():
            occupied = bed.status == BedStatusEnum.OCCUPIED
            if occupied and not bed.current_patient_id:
                violations.append(f"Bed {bed.bed_number} is occupied without a patient")
            if not occupied and bed.current_patient_id:
                violations.append(
                    f"Bed {bed.bed_number} is {bed.status.value} but links patient {bed.current_patient_id}"
                )
            if bed.current_patient_id:
                patient = patients.get(bed.current_patient_id)
                if patient is None:
                    violations.append(
                        f"Bed {bed.bed_number} links unknown patient {bed.current_patient_id}"
                    )
                elif patient.assigned_bed_id != bed.id:
                    violations.append(
                        f"Bed {bed.bed_number} links patient {patient.patient_code} "
                        f"whose assigned bed is {patient.assigned_bed_id}"
                    )
            if bed.reserved_for_request_id and bed.status != BedStatusEnum.RESERVED:
                violations.append(
                    f"Bed {bed.bed_number} keeps a reservation while {bed.status.value}"
                )

        for patient in patients.values():
            if not patient.is_admitted:
                continue
            bed = beds.get(patient.assigned_bed_id) if patient.assigned_bed_id else None
            if bed is None:
                violations.append(f"Admitted patient {patient.patient_code} has no bed")
            elif bed.status != BedStatusEnum.OCCUPIED or bed.current_patient_id != patient.id:
                violations.append(
                    f"Admitted patient {patient.patient_code} is not in bed {bed.bed_number} "
                    f"(status: {bed.status.value})"
                )

        if violations:
            logger.warning(f"Consistency check found {len(violations)} violation(s)")
        return violations
