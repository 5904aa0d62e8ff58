"""
Bed request service.

State machine over bed requests:

    pending  --reserve--> approved   bed held as reserved for the request
    pending  --approve--> assigned   patient admitted
    approved --approve--> assigned   patient admitted (reserved or explicit bed)
    assigned --fulfill--> fulfilled  patient confirmed in the bed
    pending  --reject-->  rejected
    pending  --cancel-->  cancelled
    approved --cancel-->  cancelled  reservation released

Terminal states have no outgoing transitions; trying one raises
RequestAlreadyProcessedError.
"""
from typing import Optional, List, Dict, Any
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass, field
from datetime import datetime
import logging

from bed_allocation.config import settings
from bed_allocation.models.bed import Bed
from bed_allocation.models.bed_request import BedRequest
from bed_allocation.models.patient import Patient
from bed_allocation.models.enums import (
    BedStatusEnum,
    GenderEnum,
    PatientPriorityEnum,
    RequestKindEnum,
    RequestPriorityEnum,
    RequestStatusEnum,
    RoleEnum,
    PROCESSED_REQUEST_STATUSES,
    APPROVABLE_REQUEST_STATUSES,
    CANCELLABLE_REQUEST_STATUSES,
)
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.repositories.patient_repo import PatientRepository
from bed_allocation.repositories.request_repo import BedRequestRepository
from bed_allocation.repositories.ward_repo import WardRepository
from bed_allocation.core.auth_dependencies import Actor
from bed_allocation.core.exceptions import (
    BaseAppException,
    ValidationError,
    NoBedSelectedError,
    PermissionDeniedError,
    BedNotFoundError,
    PatientNotFoundError,
    RequestNotFoundError,
    WardNotFoundError,
    ConflictError,
    BedNotAvailableError,
    RequestAlreadyProcessedError,
    InternalFailureError,
)
from bed_allocation.schemas.bed_request import BedRequestCreate
from bed_allocation.schemas.patient import PatientAdmit
from bed_allocation.services import events
from bed_allocation.services.admission_service import AdmissionService
from bed_allocation.services.alert_service import AlertService
from bed_allocation.services.bed_service import BedService
from bed_allocation.utils.helpers import safe_json_dumps, normalize_equipment_tags

logger = logging.getLogger("bed_allocation.requests")


PRIORITY_MAP = {
    RequestPriorityEnum.ROUTINE: PatientPriorityEnum.LOW,
    RequestPriorityEnum.MODERATE: PatientPriorityEnum.MEDIUM,
    RequestPriorityEnum.URGENT: PatientPriorityEnum.HIGH,
    RequestPriorityEnum.CRITICAL: PatientPriorityEnum.CRITICAL,
}


@dataclass
class RequestResult:
    """Result of a request operation."""
    success: bool
    message: str
    request: Optional[BedRequest] = None
    patient: Optional[Patient] = None
    bed: Optional[Bed] = None
    events: List[Dict[str, Any]] = field(default_factory=list)


class RequestService:
    """Service for the bed request lifecycle."""

    def __init__(self, session: Session, admission_service: Optional[AdmissionService] = None):
        self.session = session
        self.request_repo = BedRequestRepository(session)
        self.bed_repo = BedRepository(session)
        self.patient_repo = PatientRepository(session)
        self.ward_repo = WardRepository(session)
        self.bed_service = BedService(session)
        self.admission_service = admission_service or AdmissionService(session)

    # ============================================
    # QUERIES
    # ============================================

    def get_request(self, request_id: str) -> BedRequest:
        request = self.request_repo.get_by_id(request_id)
        if not request:
            raise RequestNotFoundError(request_id)
        return request

    def list_requests(
        self,
        status: Optional[RequestStatusEnum] = None,
        kind: Optional[RequestKindEnum] = None,
        requested_by: Optional[str] = None
    ) -> List[BedRequest]:
        return self.request_repo.list_requests(status=status, kind=kind, requested_by=requested_by)

    # ============================================
    # CREATE
    # ============================================

    def create_request(self, data: BedRequestCreate, actor: Actor) -> RequestResult:
        """
        Creates a pending bed request with up to three recommended beds.

        Recommended beds are not reserved. An emergency request with
        `auto_admit` is approved in the same call when a bed is found.

        Args:
            data: Request data
            actor: Requesting user

        Returns:
            Request result

        Raises:
            ValidationError: Missing ward or patient data
            WardNotFoundError: Unknown ward
            PatientNotFoundError: Unknown patient reference
            PermissionDeniedError: auto_admit without an admitting role
        """
        ward_hint = (data.ward or "").strip()
        if not ward_hint:
            raise ValidationError("Ward is required")
        ward = self.ward_repo.resolve(ward_hint)
        if not ward:
            raise WardNotFoundError(ward_hint)

        if data.patient_id:
            if not self.patient_repo.get_by_id(data.patient_id):
                raise PatientNotFoundError(data.patient_id)
        else:
            if not data.patient_name or not data.patient_name.strip():
                raise ValidationError("Patient name is required when no patient is referenced")
            if data.age is None:
                raise ValidationError("Patient age is required when no patient is referenced")

        emergency = data.kind == RequestKindEnum.EMERGENCY
        if data.auto_admit:
            if not emergency:
                raise ValidationError("Only emergency requests can be admitted on creation")
            admit_roles = list(settings.APPROVER_ROLES) + [RoleEnum.ER_STAFF.value]
            if not actor.has_any_role(admit_roles):
                raise PermissionDeniedError("emergency admission", admit_roles)

        equipment = normalize_equipment_tags(data.equipment)
        candidates = self.bed_service.rank_beds(ward.name, equipment, emergency=emergency)

        request = BedRequest(
            kind=data.kind,
            patient_id=data.patient_id,
            patient_name=data.patient_name.strip() if data.patient_name else None,
            age=data.age,
            gender=data.gender,
            condition=data.condition,
            requested_by=actor.user_id,
            ward_hint=ward.name,
            equipment_required=safe_json_dumps(equipment),
            priority=data.priority,
            notes=data.notes,
            recommended_beds=safe_json_dumps([bed.id for bed in candidates]),
        )

        try:
            self.request_repo.save(request)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Creating bed request failed: {e}")
            raise InternalFailureError("request creation", str(e))

        logger.info(
            f"{request.kind.value.capitalize()} request {request.id} created for {ward.name} "
            f"with {len(candidates)} candidate bed(s)"
        )
        result = RequestResult(
            success=True,
            message="Bed request created",
            request=request,
            events=[events.request_event("created", request)],
        )

        if data.auto_admit:
            if not candidates:
                result.message = "Emergency request created, no bed available for admission"
                return result
            try:
                admitted = self._approve(request, None)
            except ConflictError as e:
                logger.warning(f"Emergency admission for request {request.id} failed: {e.message}")
                self.session.refresh(request)
                result.message = f"Emergency request created, admission failed: {e.message}"
                return result
            admitted.events = result.events + admitted.events
            admitted.message = "Emergency request created and patient admitted"
            return admitted

        return result

    # ============================================
    # APPROVE
    # ============================================

    def approve_request(
        self,
        request_id: str,
        actor: Actor,
        bed_id: Optional[str] = None
    ) -> RequestResult:
        """
        Approves a request and admits its patient.

        Target bed: `bed_id`, else the bed reserved for the request, else
        the first recommended bed.

        Args:
            request_id: Request ID
            actor: Approving user
            bed_id: Explicit bed

        Returns:
            Request result with the admitted patient and bed

        Raises:
            PermissionDeniedError: Actor is not an approver
            RequestNotFoundError: Unknown request
            RequestAlreadyProcessedError: Request already assigned or closed
            NoBedSelectedError: No bed could be resolved
            BedNotFoundError: Unknown bed
            BedNotAvailableError: Bed not available or lost to another writer
        """
        self._require_roles(actor, settings.APPROVER_ROLES, "approve request")
        request = self.get_request(request_id)
        if request.status in PROCESSED_REQUEST_STATUSES:
            logger.warning(f"Approve on request {request_id} rejected: {request.status.value}")
            raise RequestAlreadyProcessedError(request_id, request.status.value)
        return self._approve(request, bed_id)

    def _approve(self, request: BedRequest, bed_id: Optional[str]) -> RequestResult:
        target_id = bed_id or request.assigned_bed_id
        if not target_id:
            recommended = request.recommended_bed_ids
            target_id = recommended[0] if recommended else None
        if not target_id:
            raise NoBedSelectedError(request.id)

        bed = self.bed_repo.get_by_id(target_id)
        if not bed:
            raise BedNotFoundError(target_id)

        patient = None
        if request.patient_id:
            patient = self.patient_repo.get_by_id(request.patient_id)
            if not patient:
                raise PatientNotFoundError(request.patient_id)

        produced: List[Dict[str, Any]] = []
        try:
            # Approving into a different bed than the reserved one frees the reservation
            if request.assigned_bed_id and request.assigned_bed_id != bed.id:
                released = self._release_reservation(request)
                if released:
                    produced.append(events.bed_updated(released))

            admission = self.admission_service.stage_admission(
                bed,
                patient=patient,
                data=self._walk_in_data(request, bed),
                request_id=request.id,
            )

            now = datetime.utcnow()
            assigned = self.request_repo.conditional_transition(
                request,
                APPROVABLE_REQUEST_STATUSES,
                status=RequestStatusEnum.ASSIGNED,
                assigned_bed_id=bed.id,
                patient_id=admission.patient.id,
                fulfilled_date=now,
                resolved_at=now,
            )
            if not assigned:
                logger.warning(f"Request {request.id} was processed by a concurrent writer")
                raise RequestAlreadyProcessedError(request.id, request.status.value)

            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Approving request {request.id} failed: {e}")
            raise InternalFailureError("request approval", str(e))

        self.session.refresh(request)
        self.session.refresh(admission.patient)
        self.session.refresh(bed)

        produced.insert(0, events.request_event("approved", request))
        produced.append(events.bed_updated(bed))
        produced.append(events.patient_event("admitted", admission.patient, bed, request_id=request.id))
        produced.extend(AlertService(self.session).check_occupancy(bed.ward_id))

        logger.info(
            f"Request {request.id} approved: patient {admission.patient.patient_code} "
            f"in bed {bed.bed_number}"
        )
        return RequestResult(
            success=True,
            message=f"Request approved, patient admitted to bed {bed.bed_number}",
            request=request,
            patient=admission.patient,
            bed=bed,
            events=produced,
        )

    def _walk_in_data(self, request: BedRequest, bed: Bed) -> PatientAdmit:
        ward = self.ward_repo.get_by_id(bed.ward_id)
        return PatientAdmit(
            name=request.patient_name,
            age=request.age,
            gender=request.gender or GenderEnum.OTHER,
            department=ward.name if ward else request.ward_hint,
            reason_for_admission=request.condition or f"Bed request ({request.kind.value})",
            priority=PRIORITY_MAP.get(request.priority, PatientPriorityEnum.MEDIUM),
        )

    # ============================================
    # RESERVE
    # ============================================

    def reserve_bed(
        self,
        request_id: str,
        bed_id: Optional[str],
        actor: Actor
    ) -> RequestResult:
        """
        Holds a bed for a pending request (pending -> approved).

        Args:
            request_id: Request ID
            bed_id: Bed to hold, defaults to the first recommended bed
            actor: Approving user

        Returns:
            Request result with the reserved bed
        """
        self._require_roles(actor, settings.APPROVER_ROLES, "reserve bed")
        request = self.get_request(request_id)
        if request.status != RequestStatusEnum.PENDING:
            raise RequestAlreadyProcessedError(request_id, request.status.value)

        if not bed_id:
            recommended = request.recommended_bed_ids
            bed_id = recommended[0] if recommended else None
        if not bed_id:
            raise NoBedSelectedError(request_id)

        bed = self.bed_repo.get_by_id(bed_id)
        if not bed:
            raise BedNotFoundError(bed_id)
        if bed.status != BedStatusEnum.AVAILABLE:
            raise BedNotAvailableError(bed.bed_number, bed.status.value)

        try:
            held = self.bed_repo.conditional_update(
                bed,
                [BedStatusEnum.AVAILABLE],
                status=BedStatusEnum.RESERVED,
                reserved_for_request_id=request.id,
            )
            if not held:
                raise BedNotAvailableError(bed.bed_number, bed.status.value)

            approved = self.request_repo.conditional_transition(
                request,
                [RequestStatusEnum.PENDING],
                status=RequestStatusEnum.APPROVED,
                assigned_bed_id=bed.id,
            )
            if not approved:
                raise RequestAlreadyProcessedError(request_id, request.status.value)
            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Reserving bed {bed_id} for request {request_id} failed: {e}")
            raise InternalFailureError("bed reservation", str(e))

        self.session.refresh(request)
        self.session.refresh(bed)
        logger.info(f"Bed {bed.bed_number} reserved for request {request.id}")

        return RequestResult(
            success=True,
            message=f"Bed {bed.bed_number} reserved",
            request=request,
            bed=bed,
            events=[events.request_event("approved", request), events.bed_updated(bed)],
        )

    # ============================================
    # REJECT / CANCEL / FULFILL
    # ============================================

    def reject_request(
        self,
        request_id: str,
        actor: Actor,
        reason: Optional[str] = None
    ) -> RequestResult:
        """
        Rejects a pending request. No bed or patient is touched.

        Raises:
            PermissionDeniedError: Actor is not an approver
            RequestNotFoundError: Unknown request
            RequestAlreadyProcessedError: Request is not pending
        """
        self._require_roles(actor, settings.APPROVER_ROLES, "reject request")
        request = self.get_request(request_id)
        if request.status != RequestStatusEnum.PENDING:
            raise RequestAlreadyProcessedError(request_id, request.status.value)

        note = f"Rejected: {reason.strip()}" if reason and reason.strip() else "Rejected"
        self._transition(
            request,
            [RequestStatusEnum.PENDING],
            "request rejection",
            status=RequestStatusEnum.REJECTED,
            notes=request.notes_with(note),
            resolved_at=datetime.utcnow(),
        )

        logger.info(f"Request {request.id} rejected by {actor.user_id}")
        return RequestResult(
            success=True,
            message="Request rejected",
            request=request,
            events=[events.request_event("rejected", request, reason=reason)],
        )

    def cancel_request(self, request_id: str, actor: Actor) -> RequestResult:
        """
        Cancels a pending or approved request, releasing its reservation.

        Raises:
            RequestNotFoundError: Unknown request
            PermissionDeniedError: Actor is neither the requester nor a canceller
            RequestAlreadyProcessedError: Request already assigned or closed
        """
        request = self.get_request(request_id)
        if actor.user_id != request.requested_by:
            self._require_roles(actor, settings.CANCEL_ROLES, "cancel request")

        if request.status not in CANCELLABLE_REQUEST_STATUSES:
            raise RequestAlreadyProcessedError(request_id, request.status.value)

        released = None
        try:
            released = self._release_reservation(request)
            cancelled = self.request_repo.conditional_transition(
                request,
                CANCELLABLE_REQUEST_STATUSES,
                status=RequestStatusEnum.CANCELLED,
                resolved_at=datetime.utcnow(),
            )
            if not cancelled:
                raise RequestAlreadyProcessedError(request_id, request.status.value)
            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Cancelling request {request_id} failed: {e}")
            raise InternalFailureError("request cancellation", str(e))

        self.session.refresh(request)
        produced = [events.request_event("cancelled", request)]
        if released:
            self.session.refresh(released)
            produced.append(events.bed_updated(released))
            produced.extend(AlertService(self.session).bed_available(released))

        logger.info(f"Request {request.id} cancelled by {actor.user_id}")
        return RequestResult(
            success=True,
            message="Request cancelled",
            request=request,
            bed=released,
            events=produced,
        )

    def fulfill_request(self, request_id: str, actor: Actor) -> RequestResult:
        """
        Confirms an assigned request once its patient occupies the bed.

        Raises:
            PermissionDeniedError: Actor is not an approver
            RequestNotFoundError: Unknown request
            RequestAlreadyProcessedError: Request already fulfilled or closed
            ConflictError: Request not assigned yet, or bed not occupied by its patient
        """
        self._require_roles(actor, settings.APPROVER_ROLES, "fulfill request")
        request = self.get_request(request_id)

        if request.status in (
            RequestStatusEnum.FULFILLED,
            RequestStatusEnum.REJECTED,
            RequestStatusEnum.CANCELLED,
        ):
            raise RequestAlreadyProcessedError(request_id, request.status.value)
        if request.status != RequestStatusEnum.ASSIGNED:
            raise ConflictError(
                f"Request {request_id} has no admitted patient yet (status: {request.status.value})"
            )

        bed = self.bed_repo.get_by_id(request.assigned_bed_id) if request.assigned_bed_id else None
        if not bed or bed.status != BedStatusEnum.OCCUPIED or bed.current_patient_id != request.patient_id:
            raise ConflictError(f"The patient of request {request_id} is not in the assigned bed")

        self._transition(
            request,
            [RequestStatusEnum.ASSIGNED],
            "request fulfilment",
            status=RequestStatusEnum.FULFILLED,
            fulfilled_date=datetime.utcnow(),
        )

        logger.info(f"Request {request.id} fulfilled")
        return RequestResult(
            success=True,
            message="Request fulfilled",
            request=request,
            bed=bed,
            events=[events.request_event("fulfilled", request)],
        )

    # ============================================
    # HELPERS
    # ============================================

    def _require_roles(self, actor: Actor, roles: List[str], operation: str) -> None:
        if not actor.has_any_role(roles):
            logger.warning(f"{actor.user_id} denied '{operation}' (roles: {actor.roles})")
            raise PermissionDeniedError(operation, list(roles))

    def _release_reservation(self, request: BedRequest) -> Optional[Bed]:
        """Frees the bed held for a request, if any. Does not commit."""
        bed = self.bed_repo.get_reserved_for_request(request.id)
        if not bed:
            return None
        released = self.bed_repo.conditional_update(
            bed,
            [BedStatusEnum.RESERVED],
            status=BedStatusEnum.AVAILABLE,
            reserved_for_request_id=None,
        )
        if not released:
            raise ConflictError(f"Bed {bed.bed_number} changed concurrently, retry")
        logger.info(f"Reservation of bed {bed.bed_number} for request {request.id} released")
        return bed

    def _transition(
        self,
        request: BedRequest,
        expected_statuses: List[RequestStatusEnum],
        operation: str,
        **values
    ) -> None:
        """Applies and commits a guarded transition with no bed side effects."""
        try:
            moved = self.request_repo.conditional_transition(request, expected_statuses, **values)
            if not moved:
                logger.warning(f"{operation} for {request.id} lost to a concurrent writer")
                raise RequestAlreadyProcessedError(request.id, request.status.value)
            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"{operation} for {request.id} failed: {e}")
            raise InternalFailureError(operation, str(e))
        self.session.refresh(request)
