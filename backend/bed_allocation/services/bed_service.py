"""
Bed service.

Entry point for bed recommendations and operator status edits.
"""
from typing import Optional, List, Dict, Any
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass, field
from datetime import datetime
import logging

from bed_allocation.config import settings
from bed_allocation.models.bed import Bed
from bed_allocation.models.ward import Ward
from bed_allocation.models.enums import BedStatusEnum, DIRECT_EDIT_STATUSES
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.repositories.ward_repo import WardRepository
from bed_allocation.core.exceptions import (
    BaseAppException,
    ValidationError,
    ConflictError,
    BedNotFoundError,
    InternalFailureError,
)
from bed_allocation.services import events
from bed_allocation.services.alert_service import AlertService
from bed_allocation.services.bed_matcher import (
    BedSnapshot,
    make_snapshot,
    recommend_bed,
    recommend_bed_global,
    rank_beds,
)
from bed_allocation.services.discharge_service import cleaning_deadline

logger = logging.getLogger("bed_allocation.beds")


@dataclass
class BedResult:
    """Result of a bed status change."""
    success: bool
    message: str
    bed: Optional[Bed] = None
    events: List[Dict[str, Any]] = field(default_factory=list)


class BedService:
    """Service for bed queries, recommendations and direct status edits."""

    def __init__(self, session: Session):
        self.session = session
        self.bed_repo = BedRepository(session)
        self.ward_repo = WardRepository(session)

    # ============================================
    # QUERIES
    # ============================================

    def get_bed(self, bed_id: str) -> Bed:
        bed = self.bed_repo.get_by_id(bed_id)
        if not bed:
            raise BedNotFoundError(bed_id)
        return bed

    def list_beds(
        self,
        ward: Optional[str] = None,
        status: Optional[BedStatusEnum] = None
    ) -> List[Bed]:
        """
        Lists beds, optionally for one ward (id or name) and status.

        An unknown ward yields an empty list.
        """
        ward_id = None
        if ward:
            found = self.ward_repo.resolve(ward)
            if not found:
                return []
            ward_id = found.id
        return self.bed_repo.list_beds(ward_id=ward_id, status=status)

    def list_wards(self) -> List[Ward]:
        return self.ward_repo.get_all_ordered()

    def load_snapshot(self) -> List[BedSnapshot]:
        """
        Reads the current bed pool for the matcher.

        Returns:
            One snapshot per bed, ordered by bed number
        """
        return [
            make_snapshot(
                id=bed.id,
                bed_number=bed.bed_number,
                ward_id=ward.id,
                ward_name=ward.name,
                ward_type=ward.type,
                status=bed.status,
                equipment=bed.equipment_list,
            )
            for bed, ward in self.bed_repo.list_with_wards()
        ]

    # ============================================
    # RECOMMENDATION
    # ============================================

    def recommend_bed(
        self,
        ward_hint: Optional[str],
        equipment: Optional[List[str]] = None,
        emergency: bool = False,
        fallback: bool = True
    ) -> Optional[Bed]:
        """
        Recommends one bed against a fresh snapshot.

        Args:
            ward_hint: Ward id or name; ignored for emergencies
            equipment: Required equipment tags
            emergency: Rank whole wards (ER, ICU, general) instead of the hint
            fallback: If False only the hinted ward is searched

        Returns:
            The recommended bed or None
        """
        pool = self.load_snapshot()
        if emergency or not ward_hint:
            snapshot = recommend_bed_global(pool, equipment)
        else:
            snapshot = recommend_bed(pool, ward_hint, equipment, fallback=fallback)

        if snapshot is None:
            logger.info(f"No bed available for ward={ward_hint} equipment={equipment}")
            return None
        return self.bed_repo.get_by_id(snapshot.id)

    def rank_beds(
        self,
        ward_hint: Optional[str],
        equipment: Optional[List[str]] = None,
        emergency: bool = False,
        limit: Optional[int] = None
    ) -> List[Bed]:
        """Ranked candidate beds, best first, against a fresh snapshot."""
        if limit is None:
            limit = settings.RECOMMENDATION_LIMIT
        ranked = rank_beds(
            self.load_snapshot(),
            ward_hint or "",
            equipment,
            limit=limit,
            emergency=emergency or not ward_hint,
        )
        return [self.bed_repo.get_by_id(snapshot.id) for snapshot in ranked]

    # ============================================
    # DIRECT STATUS EDIT
    # ============================================

    def update_status(
        self,
        bed_id: str,
        status: BedStatusEnum,
        estimated_available_time: Optional[datetime] = None
    ) -> BedResult:
        """
        Operator status edit.

        Only available, cleaning and maintenance may be set directly.
        Occupancy goes through admission and reservations through bed
        requests, so a bed linked to a patient or held for a request
        cannot be edited.

        Args:
            bed_id: Bed ID
            status: Target status
            estimated_available_time: For cleaning; defaults to now plus
                the cleaning duration

        Returns:
            Bed result

        Raises:
            BedNotFoundError: Unknown bed
            ValidationError: Target status not editable
            ConflictError: Bed linked to a patient or a request
        """
        bed = self.get_bed(bed_id)

        if status not in DIRECT_EDIT_STATUSES:
            if status == BedStatusEnum.OCCUPIED:
                raise ValidationError("Beds become occupied only through an admission")
            raise ValidationError("Beds are reserved only through a bed request")

        if bed.current_patient_id or bed.status == BedStatusEnum.OCCUPIED:
            logger.warning(f"Status edit on occupied bed {bed.bed_number} rejected")
            raise ConflictError(
                f"Bed {bed.bed_number} has a patient assigned. Discharge the patient first.",
                "BED_OCCUPIED"
            )

        if bed.reserved_for_request_id or bed.status == BedStatusEnum.RESERVED:
            raise ConflictError(
                f"Bed {bed.bed_number} is reserved for a request. Cancel the request first.",
                "BED_RESERVED"
            )

        previous = bed.status
        now = datetime.utcnow()
        values: Dict[str, Any] = {"status": status, "last_updated": now}
        if status == BedStatusEnum.CLEANING:
            values["cleaning_started_at"] = now
            values["estimated_available_time"] = estimated_available_time or cleaning_deadline(now)
        else:
            values["cleaning_started_at"] = None
            values["estimated_available_time"] = None

        try:
            updated = self.bed_repo.conditional_update(bed, DIRECT_EDIT_STATUSES, **values)
            if not updated:
                raise ConflictError(f"Bed {bed.bed_number} changed concurrently, reload and retry")
            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Status edit of bed {bed_id} failed: {e}")
            raise InternalFailureError("bed status update", str(e))

        self.session.refresh(bed)
        logger.info(f"Bed {bed.bed_number}: {previous.value} -> {bed.status.value}")

        produced = [events.bed_updated(bed)]
        if bed.status == BedStatusEnum.AVAILABLE and previous != BedStatusEnum.AVAILABLE:
            produced.extend(AlertService(self.session).bed_available(bed))

        return BedResult(
            success=True,
            message=f"Bed {bed.bed_number} is now {bed.status.value}",
            bed=bed,
            events=produced,
        )
