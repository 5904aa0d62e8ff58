"""
Tests for bed-to-bed transfers.
"""
import pytest

from bed_allocation.models.enums import BedStatusEnum, PatientStatusEnum, WardTypeEnum
from bed_allocation.core.exceptions import (
    ValidationError,
    BedNotFoundError,
    PatientNotFoundError,
    PatientNotAdmittedError,
    BedNotAvailableError,
)
from bed_allocation.services.consistency_service import ConsistencyService
from bed_allocation.services.transfer_service import TransferService


@pytest.fixture
def transfer_setup(create_ward, create_bed, create_patient):
    er = create_ward("Emergency", WardTypeEnum.ER)
    icu = create_ward("ICU", WardTypeEnum.ICU)
    old_bed = create_bed(er, "EME-001")
    new_bed = create_bed(icu, "ICU-004", equipment=["Ventilator"])
    patient = create_patient(code="RS045", name="Rahul Sharma", bed=old_bed)
    return {"old_bed": old_bed, "new_bed": new_bed, "patient": patient, "icu": icu}


class TestTransfer:
    """Tests for TransferService."""

    def test_transfer(self, session, transfer_setup):
        patient = transfer_setup["patient"]
        new_bed = transfer_setup["new_bed"]

        result = TransferService(session).transfer_patient(patient.id, new_bed.id)

        assert result.patient.status == PatientStatusEnum.ADMITTED
        assert result.patient.assigned_bed_id == new_bed.id
        assert result.new_bed.status == BedStatusEnum.OCCUPIED
        assert result.new_bed.current_patient_id == patient.id
        assert result.old_bed.status == BedStatusEnum.CLEANING
        assert result.old_bed.current_patient_id is None
        assert result.old_bed.estimated_available_time is not None

        types = [e["type"] for e in result.events]
        assert types[:3] == ["bed:updated", "bed:updated", "patient:transferred"]
        assert result.events[2]["from_bed_id"] == transfer_setup["old_bed"].id
        assert ConsistencyService(session).find_violations() == []

    def test_target_not_available(self, session, transfer_setup, create_bed):
        patient = transfer_setup["patient"]
        busy = create_bed(transfer_setup["icu"], "ICU-005", status=BedStatusEnum.CLEANING)

        with pytest.raises(BedNotAvailableError):
            TransferService(session).transfer_patient(patient.id, busy.id)

        old_bed = transfer_setup["old_bed"]
        session.refresh(old_bed)
        assert old_bed.status == BedStatusEnum.OCCUPIED
        assert old_bed.current_patient_id == patient.id

    def test_same_bed(self, session, transfer_setup):
        patient = transfer_setup["patient"]
        with pytest.raises(ValidationError):
            TransferService(session).transfer_patient(patient.id, transfer_setup["old_bed"].id)

    def test_discharged_patient(self, session, transfer_setup, create_patient):
        gone = create_patient(code="GONE1")
        with pytest.raises(PatientNotAdmittedError):
            TransferService(session).transfer_patient(gone.id, transfer_setup["new_bed"].id)

    def test_unknown_patient_and_bed(self, session, transfer_setup):
        service = TransferService(session)
        with pytest.raises(PatientNotFoundError):
            service.transfer_patient("missing", transfer_setup["new_bed"].id)
        with pytest.raises(BedNotFoundError):
            service.transfer_patient(transfer_setup["patient"].id, "missing")
