"""
Cleaning service.
Returns beds from cleaning to available, on demand or once their
estimated available time has passed.
"""
from typing import Optional, List, Dict, Any
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass, field
from datetime import datetime
import logging

from bed_allocation.models.bed import Bed
from bed_allocation.models.enums import BedStatusEnum
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.core.exceptions import (
    BaseAppException,
    BedNotFoundError,
    BedNotAvailableError,
    InternalFailureError,
)
from bed_allocation.services import events
from bed_allocation.services.alert_service import AlertService

logger = logging.getLogger("bed_allocation.cleaning")


@dataclass
class CleaningResult:
    """Result of a cleaning release."""
    released: List[Bed] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)


class CleaningService:
    """Service for the cleaning stage of the bed lifecycle."""

    def __init__(self, session: Session):
        self.session = session
        self.bed_repo = BedRepository(session)

    def finish_cleaning(self, bed_id: str) -> CleaningResult:
        """
        Marks a bed in cleaning as available.

        Args:
            bed_id: Bed ID

        Returns:
            Cleaning result with the released bed

        Raises:
            BedNotFoundError: Unknown bed
            BedNotAvailableError: Bed is not in cleaning
        """
        bed = self.bed_repo.get_by_id(bed_id)
        if not bed:
            raise BedNotFoundError(bed_id)
        if bed.status != BedStatusEnum.CLEANING:
            raise BedNotAvailableError(bed.bed_number, bed.status.value)

        try:
            if not self._release(bed):
                raise BedNotAvailableError(bed.bed_number, bed.status.value)
            self.session.commit()
        except BaseAppException:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Finishing cleaning of bed {bed_id} failed: {e}")
            raise InternalFailureError("finish cleaning", str(e))

        return self._after_release([bed])

    def release_ready_beds(self, now: Optional[datetime] = None) -> CleaningResult:
        """
        Releases every auto-cleaning bed whose cleaning window elapsed.

        Beds changed by someone else since they were read are skipped.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            Cleaning result with the released beds
        """
        now = now or datetime.utcnow()
        released: List[Bed] = []

        try:
            for bed in self.bed_repo.get_cleaning_due(now):
                if self._release(bed):
                    released.append(bed)
                else:
                    logger.debug(f"Bed {bed.bed_number} changed during sweep, skipped")
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Cleaning sweep failed: {e}")
            raise InternalFailureError("cleaning sweep", str(e))

        if released:
            logger.info(f"Cleaning sweep released {len(released)} bed(s)")
        return self._after_release(released)

    def _release(self, bed: Bed) -> bool:
        return self.bed_repo.conditional_update(
            bed,
            [BedStatusEnum.CLEANING],
            status=BedStatusEnum.AVAILABLE,
            cleaning_started_at=None,
            estimated_available_time=None,
        )

    def _after_release(self, beds: List[Bed]) -> CleaningResult:
        result = CleaningResult(released=beds)
        alert_service = AlertService(self.session)
        for bed in beds:
            self.session.refresh(bed)
            logger.info(f"Bed {bed.bed_number} cleaned and available")
            result.events.append(events.bed_updated(bed))
            result.events.extend(alert_service.bed_available(bed))
        return result
