"""
Patient repository.
"""
from typing import Optional, List, Iterable
from sqlmodel import Session, select
from sqlalchemy import update

from bed_allocation.repositories.base import BaseRepository
from bed_allocation.models.patient import Patient
from bed_allocation.models.enums import PatientStatusEnum


class PatientRepository(BaseRepository[Patient]):
    """Repository for patient operations."""

    def __init__(self, session: Session):
        super().__init__(session, Patient)

    def get_by_code(self, patient_code: str) -> Optional[Patient]:
        query = select(Patient).where(Patient.patient_code == patient_code)
        return self.session.exec(query).first()

    def exists_code(self, patient_code: str) -> bool:
        """
        Checks whether a patient code is already taken.

        Args:
            patient_code: Candidate code

        Returns:
            True if another patient uses it
        """
        return self.get_by_code(patient_code) is not None

    def list_patients(self, status: Optional[PatientStatusEnum] = None) -> List[Patient]:
        """
        Lists patients, most recent admissions first.

        Args:
            status: Only patients in this status

        Returns:
            List of patients
        """
        query = select(Patient)
        if status:
            query = query.where(Patient.status == status)
        query = query.order_by(Patient.admitted_at.desc())
        return list(self.session.exec(query).all())

    def conditional_update(
        self,
        patient: Patient,
        expected_statuses: Iterable[PatientStatusEnum],
        **values
    ) -> bool:
        """
        Updates a patient only if it is still in one of the expected
        statuses and nobody changed it since it was loaded.

        Guarded by status and version like BedRepository.conditional_update.
        Nothing is committed here.

        Args:
            patient: Patient as loaded by the caller
            expected_statuses: Statuses the patient may currently be in
            **values: Columns to set

        Returns:
            True if this writer won, False if the row no longer matched
        """
        self.session.flush()

        statement = (
            update(Patient)
            .where(
                Patient.id == patient.id,
                Patient.status.in_(list(expected_statuses)),
                Patient.version == patient.version,
            )
            .values(version=Patient.version + 1, **values)
        )
        result = self.session.connection().execute(statement)
        self.session.refresh(patient)
        return result.rowcount == 1
