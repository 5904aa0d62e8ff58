"""
Tests for the bed request lifecycle.
"""
import pytest
from sqlmodel import Session, select

from bed_allocation.models.bed import Bed
from bed_allocation.models.patient import Patient
from bed_allocation.models.enums import (
    BedStatusEnum,
    PatientStatusEnum,
    RequestKindEnum,
    RequestStatusEnum,
    WardTypeEnum,
)
from bed_allocation.core.auth_dependencies import Actor
from bed_allocation.core.exceptions import (
    ValidationError,
    NoBedSelectedError,
    PermissionDeniedError,
    PatientNotFoundError,
    WardNotFoundError,
    RequestNotFoundError,
    ConflictError,
    BedNotAvailableError,
    PatientAlreadyAdmittedError,
    RequestAlreadyProcessedError,
)
from bed_allocation.schemas.bed_request import BedRequestCreate
from bed_allocation.services.bed_service import BedService
from bed_allocation.services.consistency_service import ConsistencyService
from bed_allocation.services.request_service import RequestService


def event_types(result):
    return [event["type"] for event in result.events]


class TestEndToEnd:
    """The three reference allocation scenarios."""

    def test_ventilator_request_lands_in_ventilator_bed(self, session, admin, icu_ward_scenario):
        """Request for a ventilator in ICU is approved into ICU-002."""
        beds = icu_ward_scenario["beds"]
        service = RequestService(session)

        recommended = BedService(session).recommend_bed("ICU", ["Ventilator"])
        assert recommended.bed_number == "ICU-002"

        created = service.create_request(
            BedRequestCreate(ward="ICU", equipment=["Ventilator"], patient_name="Amit", age=62),
            admin,
        )
        request = created.request
        assert request.status == RequestStatusEnum.PENDING
        assert request.recommended_bed_ids[0] == beds[1].id
        assert event_types(created) == ["request:created"]

        # Recommendation does not reserve anything
        session.refresh(beds[1])
        assert beds[1].status == BedStatusEnum.AVAILABLE

        result = service.approve_request(request.id, admin)

        assert result.bed.bed_number == "ICU-002"
        assert result.bed.status == BedStatusEnum.OCCUPIED
        assert result.bed.current_patient_id == result.patient.id
        assert result.patient.status == PatientStatusEnum.ADMITTED
        assert result.patient.assigned_bed_id == beds[1].id
        assert result.request.status == RequestStatusEnum.ASSIGNED
        assert result.request.assigned_bed_id == beds[1].id
        assert result.request.patient_id == result.patient.id
        assert result.request.fulfilled_date is not None
        assert "request:approved" in event_types(result)
        assert "bed:updated" in event_types(result)
        assert "patient:admitted" in event_types(result)
        assert ConsistencyService(session).find_violations() == []

    def test_no_bed_anywhere(self, session, admin, create_ward, create_bed, create_patient):
        """No available bed: request is created empty and approval needs a bed."""
        ward = create_ward("ICU")
        create_patient(code="OCC01", bed=create_bed(ward, "ICU-001"))
        create_bed(ward, "ICU-002", status=BedStatusEnum.MAINTENANCE)

        assert BedService(session).recommend_bed("ICU", ["Ventilator"]) is None

        service = RequestService(session)
        request = service.create_request(
            BedRequestCreate(ward="ICU", equipment=["Ventilator"], patient_name="Rahul", age=45),
            admin,
        ).request
        assert request.recommended_bed_ids == []
        assert request.status == RequestStatusEnum.PENDING

        with pytest.raises(NoBedSelectedError):
            service.approve_request(request.id, admin)

        session.refresh(request)
        assert request.status == RequestStatusEnum.PENDING


class TestCreateRequest:
    """Tests for request creation."""

    def test_stores_up_to_three_candidates(self, session, admin, create_ward, create_bed):
        ward = create_ward("ICU")
        for i in range(1, 6):
            create_bed(ward, f"ICU-00{i}")

        request = RequestService(session).create_request(
            BedRequestCreate(ward="icu", patient_name="Priya", age=28), admin
        ).request

        assert len(request.recommended_bed_ids) == 3
        assert request.ward_hint == "ICU"
        assert request.requested_by == admin.user_id

    def test_unknown_ward(self, session, admin):
        with pytest.raises(WardNotFoundError):
            RequestService(session).create_request(
                BedRequestCreate(ward="Cardiology", patient_name="A", age=1), admin
            )

    def test_walk_in_requires_name(self, session, admin, create_ward):
        create_ward("ICU")
        with pytest.raises(ValidationError):
            RequestService(session).create_request(BedRequestCreate(ward="ICU", age=30), admin)

    def test_walk_in_requires_age(self, session, admin, create_ward):
        create_ward("ICU")
        with pytest.raises(ValidationError):
            RequestService(session).create_request(
                BedRequestCreate(ward="ICU", patient_name="No Age"), admin
            )

    def test_unknown_patient_reference(self, session, admin, create_ward):
        create_ward("ICU")
        with pytest.raises(PatientNotFoundError):
            RequestService(session).create_request(
                BedRequestCreate(ward="ICU", patient_id="missing"), admin
            )

    def test_equipment_is_normalized(self, session, admin, create_ward, create_bed):
        ward = create_ward("ICU")
        create_bed(ward, "ICU-001")
        request = RequestService(session).create_request(
            BedRequestCreate(
                ward="ICU", patient_name="A", age=30,
                equipment=["Ventilator", "standard", " ventilator "],
            ),
            admin,
        ).request
        assert request.equipment_list == ["ventilator"]


class TestEmergencyRequests:
    """Tests for emergency requests and instant admission."""

    @pytest.fixture
    def mixed_wards(self, create_ward, create_bed):
        icu = create_ward("ICU", WardTypeEnum.ICU)
        er = create_ward("Emergency", WardTypeEnum.ER)
        create_bed(icu, "ICU-001")
        er_bed = create_bed(er, "EME-001", equipment=["Monitor"])
        return {"icu": icu, "er": er, "er_bed": er_bed}

    def test_emergency_uses_global_ranking(self, session, admin, mixed_wards):
        request = RequestService(session).create_request(
            BedRequestCreate(
                kind=RequestKindEnum.EMERGENCY, ward="ICU", patient_name="Trauma", age=33
            ),
            admin,
        ).request
        assert request.recommended_bed_ids[0] == mixed_wards["er_bed"].id

    def test_auto_admit(self, session, er_staff, mixed_wards):
        result = RequestService(session).create_request(
            BedRequestCreate(
                kind=RequestKindEnum.EMERGENCY, ward="ICU", patient_name="Trauma", age=33,
                auto_admit=True,
            ),
            er_staff,
        )
        assert result.request.status == RequestStatusEnum.ASSIGNED
        assert result.bed.id == mixed_wards["er_bed"].id
        assert result.patient.status == PatientStatusEnum.ADMITTED
        assert event_types(result)[0] == "request:created"
        assert "patient:admitted" in event_types(result)
        assert ConsistencyService(session).find_violations() == []

    def test_auto_admit_only_for_emergencies(self, session, admin, mixed_wards):
        with pytest.raises(ValidationError):
            RequestService(session).create_request(
                BedRequestCreate(ward="ICU", patient_name="A", age=30, auto_admit=True), admin
            )

    def test_auto_admit_requires_role(self, session, nurse, mixed_wards):
        with pytest.raises(PermissionDeniedError):
            RequestService(session).create_request(
                BedRequestCreate(
                    kind=RequestKindEnum.EMERGENCY, ward="ICU", patient_name="A", age=30,
                    auto_admit=True,
                ),
                nurse,
            )

    def test_auto_admit_without_beds_stays_pending(self, session, er_staff, create_ward):
        create_ward("Emergency", WardTypeEnum.ER)
        result = RequestService(session).create_request(
            BedRequestCreate(
                kind=RequestKindEnum.EMERGENCY, ward="Emergency", patient_name="A", age=30,
                auto_admit=True,
            ),
            er_staff,
        )
        assert result.request.status == RequestStatusEnum.PENDING
        assert result.patient is None


class TestApproveRequest:
    """Tests for request approval."""

    def test_second_approval_is_already_processed(self, session, admin, create_request, icu_ward_scenario):
        service = RequestService(session)
        request = create_request(admin, equipment=["Ventilator"])
        first = service.approve_request(request.id, admin)

        with pytest.raises(RequestAlreadyProcessedError):
            service.approve_request(request.id, admin, bed_id=first.bed.id)

        patients = session.exec(select(Patient).where(Patient.name == "Walk In")).all()
        assert len(patients) == 1
        assert ConsistencyService(session).find_violations() == []

    def test_explicit_bed_wins(self, session, admin, create_request, icu_ward_scenario):
        bed1 = icu_ward_scenario["beds"][0]
        request = create_request(admin, equipment=["Ventilator"])

        result = RequestService(session).approve_request(request.id, admin, bed_id=bed1.id)
        assert result.bed.bed_number == "ICU-001"

    def test_occupied_bed_rejected_and_request_stays_pending(
        self, session, admin, create_request, icu_ward_scenario
    ):
        occupied = icu_ward_scenario["beds"][2]
        request = create_request(admin)

        with pytest.raises(BedNotAvailableError) as exc:
            RequestService(session).approve_request(request.id, admin, bed_id=occupied.id)
        assert "ICU-003" in exc.value.message
        assert "occupied" in exc.value.message

        session.refresh(request)
        assert request.status == RequestStatusEnum.PENDING
        assert session.exec(select(Patient).where(Patient.name == "Walk In")).all() == []

    def test_first_writer_wins_on_shared_recommendation(
        self, session, admin, create_request, icu_ward_scenario
    ):
        service = RequestService(session)
        first = create_request(admin, equipment=["Ventilator"], patient_name="First")
        second = create_request(admin, equipment=["Ventilator"], patient_name="Second")
        assert first.recommended_bed_ids[0] == second.recommended_bed_ids[0]

        service.approve_request(first.id, admin)
        with pytest.raises(BedNotAvailableError):
            service.approve_request(second.id, admin)

        # The loser can still be placed in another bed
        result = service.approve_request(second.id, admin, bed_id=second.recommended_bed_ids[1])
        assert result.request.status == RequestStatusEnum.ASSIGNED
        assert ConsistencyService(session).find_violations() == []

    def test_linked_patient_is_readmitted(
        self, session, admin, create_patient, create_request, icu_ward_scenario
    ):
        patient = create_patient(code="RET01", name="Returning")
        request = create_request(admin, patient_id=patient.id)

        result = RequestService(session).approve_request(request.id, admin)

        assert result.patient.id == patient.id
        assert result.patient.status == PatientStatusEnum.ADMITTED
        assert session.exec(select(Patient).where(Patient.name == "Walk In")).all() == []

    def test_approver_role_required(self, session, admin, nurse, create_request, icu_ward_scenario):
        request = create_request(nurse)
        with pytest.raises(PermissionDeniedError):
            RequestService(session).approve_request(request.id, nurse)

    def test_unknown_request(self, session, admin):
        with pytest.raises(RequestNotFoundError):
            RequestService(session).approve_request("missing", admin)


class TestConcurrentWriters:
    """Two sessions acting on the same request or patient."""

    def test_stale_approval_into_other_bed_loses(self, engine, session, admin, create_request, icu_ward_scenario):
        bed1, bed2, _ = icu_ward_scenario["beds"]
        request = create_request(admin)

        with Session(engine) as other:
            stale = RequestService(other)
            assert stale.get_request(request.id).status == RequestStatusEnum.PENDING

            RequestService(session).approve_request(request.id, admin, bed_id=bed1.id)

            with pytest.raises(RequestAlreadyProcessedError):
                stale.approve_request(request.id, admin, bed_id=bed2.id)

        session.expire_all()
        assert bed2.status == BedStatusEnum.AVAILABLE
        assert request.status == RequestStatusEnum.ASSIGNED
        assert request.assigned_bed_id == bed1.id
        assert len(session.exec(select(Patient).where(Patient.name == "Walk In")).all()) == 1
        assert ConsistencyService(session).find_violations() == []

    def test_stale_reject_cannot_undo_approval(self, engine, session, admin, create_request, icu_ward_scenario):
        request = create_request(admin)

        with Session(engine) as other:
            stale = RequestService(other)
            stale.get_request(request.id)

            RequestService(session).approve_request(request.id, admin)

            with pytest.raises(RequestAlreadyProcessedError):
                stale.reject_request(request.id, admin, reason="Duplicate")

        session.expire_all()
        assert request.status == RequestStatusEnum.ASSIGNED
        assert request.notes is None

    def test_linked_patient_approved_twice_lands_once(
        self, engine, session, admin, create_patient, create_request, icu_ward_scenario
    ):
        bed1, bed2, _ = icu_ward_scenario["beds"]
        patient = create_patient(code="RET01", name="Returning")
        first = create_request(admin, patient_id=patient.id)
        second = create_request(admin, patient_id=patient.id)

        with Session(engine) as other:
            stale = RequestService(other)
            stale.get_request(second.id)
            other.get(Patient, patient.id)

            RequestService(session).approve_request(first.id, admin, bed_id=bed2.id)

            with pytest.raises(PatientAlreadyAdmittedError):
                stale.approve_request(second.id, admin, bed_id=bed1.id)

        session.expire_all()
        assert bed1.status == BedStatusEnum.AVAILABLE
        assert second.status == RequestStatusEnum.PENDING
        assert patient.assigned_bed_id == bed2.id
        assert ConsistencyService(session).find_violations() == []


class TestReservation:
    """Tests for reservations (pending -> approved)."""

    def test_reserve_then_approve(self, session, admin, create_request, icu_ward_scenario):
        service = RequestService(session)
        request = create_request(admin, equipment=["Ventilator"])

        reserved = service.reserve_bed(request.id, None, admin)
        assert reserved.request.status == RequestStatusEnum.APPROVED
        assert reserved.bed.status == BedStatusEnum.RESERVED
        assert reserved.bed.reserved_for_request_id == request.id

        # A reserved bed is not offered to other requests
        other = create_request(admin, equipment=["Ventilator"], patient_name="Other")
        assert reserved.bed.id not in other.recommended_bed_ids

        result = service.approve_request(request.id, admin)
        assert result.bed.id == reserved.bed.id
        assert result.bed.status == BedStatusEnum.OCCUPIED
        assert result.bed.reserved_for_request_id is None
        assert ConsistencyService(session).find_violations() == []

    def test_reserved_bed_refused_to_other_request(self, session, admin, create_request, icu_ward_scenario):
        service = RequestService(session)
        holder = create_request(admin, equipment=["Ventilator"])
        intruder = create_request(admin, equipment=["Ventilator"], patient_name="Intruder")
        held = service.reserve_bed(holder.id, None, admin).bed

        with pytest.raises(BedNotAvailableError):
            service.approve_request(intruder.id, admin, bed_id=held.id)

    def test_approve_elsewhere_releases_reservation(self, session, admin, create_request, icu_ward_scenario):
        bed1, bed2, _ = icu_ward_scenario["beds"]
        service = RequestService(session)
        request = create_request(admin)
        service.reserve_bed(request.id, bed1.id, admin)

        result = service.approve_request(request.id, admin, bed_id=bed2.id)

        session.refresh(bed1)
        assert result.bed.id == bed2.id
        assert bed1.status == BedStatusEnum.AVAILABLE
        assert bed1.reserved_for_request_id is None
        assert ConsistencyService(session).find_violations() == []

    def test_reserve_unavailable_bed(self, session, admin, create_request, icu_ward_scenario):
        request = create_request(admin)
        with pytest.raises(BedNotAvailableError):
            RequestService(session).reserve_bed(request.id, icu_ward_scenario["beds"][2].id, admin)

    def test_reserve_twice(self, session, admin, create_request, icu_ward_scenario):
        service = RequestService(session)
        request = create_request(admin)
        service.reserve_bed(request.id, None, admin)
        with pytest.raises(RequestAlreadyProcessedError):
            service.reserve_bed(request.id, None, admin)


class TestRejectCancelFulfill:
    """Tests for the remaining transitions."""

    def test_reject_appends_reason(self, session, admin, create_request, icu_ward_scenario):
        request = create_request(admin, notes="Post-op")
        result = RequestService(session).reject_request(request.id, admin, reason="No ICU staff")

        assert result.request.status == RequestStatusEnum.REJECTED
        assert result.request.notes == "Post-op | Rejected: No ICU staff"
        assert result.request.resolved_at is not None
        assert event_types(result) == ["request:rejected"]

    def test_reject_has_no_bed_side_effects(self, session, admin, create_request, icu_ward_scenario):
        request = create_request(admin)
        RequestService(session).reject_request(request.id, admin)

        statuses = [bed.status for bed in session.exec(select(Bed).order_by(Bed.bed_number)).all()]
        assert statuses == [BedStatusEnum.AVAILABLE, BedStatusEnum.AVAILABLE, BedStatusEnum.OCCUPIED]

    def test_terminal_states_have_no_transitions(self, session, admin, create_request, icu_ward_scenario):
        service = RequestService(session)
        request = create_request(admin)
        service.reject_request(request.id, admin)

        with pytest.raises(RequestAlreadyProcessedError):
            service.reject_request(request.id, admin)
        with pytest.raises(RequestAlreadyProcessedError):
            service.approve_request(request.id, admin)
        with pytest.raises(RequestAlreadyProcessedError):
            service.cancel_request(request.id, admin)

    def test_requester_may_cancel(self, session, nurse, create_request, icu_ward_scenario):
        request = create_request(nurse)
        result = RequestService(session).cancel_request(request.id, nurse)
        assert result.request.status == RequestStatusEnum.CANCELLED

    def test_other_user_needs_cancel_role(self, session, nurse, create_request, icu_ward_scenario):
        request = create_request(nurse)
        stranger = Actor(user_id="doctor-9", roles=["doctor"])
        with pytest.raises(PermissionDeniedError):
            RequestService(session).cancel_request(request.id, stranger)

    def test_cancel_releases_reservation(self, session, admin, create_request, icu_ward_scenario):
        service = RequestService(session)
        request = create_request(admin)
        bed = service.reserve_bed(request.id, None, admin).bed

        result = service.cancel_request(request.id, admin)

        assert result.request.status == RequestStatusEnum.CANCELLED
        assert result.bed.id == bed.id
        assert result.bed.status == BedStatusEnum.AVAILABLE
        assert "bed:updated" in event_types(result)
        assert ConsistencyService(session).find_violations() == []

    def test_cancel_assigned_request(self, session, admin, create_request, icu_ward_scenario):
        service = RequestService(session)
        request = create_request(admin)
        service.approve_request(request.id, admin)
        with pytest.raises(RequestAlreadyProcessedError):
            service.cancel_request(request.id, admin)

    def test_fulfill_after_approval(self, session, admin, create_request, icu_ward_scenario):
        service = RequestService(session)
        request = create_request(admin)
        service.approve_request(request.id, admin)

        result = service.fulfill_request(request.id, admin)
        assert result.request.status == RequestStatusEnum.FULFILLED

        with pytest.raises(RequestAlreadyProcessedError):
            service.fulfill_request(request.id, admin)

    def test_fulfill_pending_request(self, session, admin, create_request, icu_ward_scenario):
        request = create_request(admin)
        with pytest.raises(ConflictError):
            RequestService(session).fulfill_request(request.id, admin)

    def test_list_requests_filters(self, session, admin, nurse, create_request, icu_ward_scenario):
        service = RequestService(session)
        mine = create_request(nurse)
        other = create_request(admin)
        service.reject_request(other.id, admin)

        pending = service.list_requests(status=RequestStatusEnum.PENDING)
        assert [r.id for r in pending] == [mine.id]
        assert [r.id for r in service.list_requests(requested_by=nurse.user_id)] == [mine.id]
