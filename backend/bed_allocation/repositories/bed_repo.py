"""
Bed repository.
"""
from typing import Optional, List, Tuple, Iterable, Dict
from sqlmodel import Session, select
from sqlalchemy import update
from datetime import datetime

from bed_allocation.repositories.base import BaseRepository
from bed_allocation.models.bed import Bed
from bed_allocation.models.ward import Ward
from bed_allocation.models.enums import BedStatusEnum


class BedRepository(BaseRepository[Bed]):
    """Repository for bed operations."""

    def __init__(self, session: Session):
        super().__init__(session, Bed)

    def get_by_number(self, bed_number: str) -> Optional[Bed]:
        """
        Gets a bed by its number.

        Args:
            bed_number: Bed number (e.g. "ICU-002")

        Returns:
            The bed or None
        """
        query = select(Bed).where(Bed.bed_number == bed_number)
        return self.session.exec(query).first()

    def list_beds(
        self,
        ward_id: Optional[str] = None,
        status: Optional[BedStatusEnum] = None
    ) -> List[Bed]:
        """
        Lists beds ordered by bed number.

        Args:
            ward_id: Only beds of this ward
            status: Only beds in this status

        Returns:
            List of beds
        """
        query = select(Bed)
        if ward_id:
            query = query.where(Bed.ward_id == ward_id)
        if status:
            query = query.where(Bed.status == status)
        query = query.order_by(Bed.bed_number)
        return list(self.session.exec(query).all())

    def list_with_wards(self) -> List[Tuple[Bed, Ward]]:
        """
        Lists every bed joined with its ward, ordered by bed number.

        Returns:
            List of (bed, ward) pairs
        """
        query = (
            select(Bed, Ward)
            .join(Ward, Bed.ward_id == Ward.id)
            .order_by(Bed.bed_number)
        )
        return list(self.session.exec(query).all())

    def get_cleaning_due(self, now: datetime) -> List[Bed]:
        """
        Gets auto-cleaning beds whose cleaning window has elapsed.

        Args:
            now: Reference time

        Returns:
            List of beds ready to become available
        """
        query = (
            select(Bed)
            .where(
                Bed.status == BedStatusEnum.CLEANING,
                Bed.auto_cleaning_enabled == True,  # noqa: E712
                Bed.estimated_available_time != None,  # noqa: E711
                Bed.estimated_available_time <= now,
            )
            .order_by(Bed.bed_number)
        )
        return list(self.session.exec(query).all())

    def get_reserved_for_request(self, request_id: str) -> Optional[Bed]:
        query = select(Bed).where(Bed.reserved_for_request_id == request_id)
        return self.session.exec(query).first()

    def count_by_status(self, ward_id: str) -> Dict[str, int]:
        """
        Counts the beds of a ward by status.

        Args:
            ward_id: Ward ID

        Returns:
            Dictionary with one count per status value
        """
        counts = {status.value: 0 for status in BedStatusEnum}
        for bed in self.list_beds(ward_id=ward_id):
            counts[bed.status.value] += 1
        return counts

    def conditional_update(
        self,
        bed: Bed,
        expected_statuses: Iterable[BedStatusEnum],
        **values
    ) -> bool:
        """
        Updates a bed only if it is still in one of the expected statuses
        and nobody changed it since it was loaded.

        The UPDATE is guarded by status and version; the version is bumped
        on success. Nothing is committed here.

        Args:
            bed: Bed as loaded by the caller
            expected_statuses: Statuses the bed may currently be in
            **values: Columns to set

        Returns:
            True if this writer won, False if the row no longer matched
        """
        # Pending ORM changes must reach the database before the raw UPDATE
        self.session.flush()

        values.setdefault("last_updated", datetime.utcnow())
        statement = (
            update(Bed)
            .where(
                Bed.id == bed.id,
                Bed.status.in_(list(expected_statuses)),
                Bed.version == bed.version,
            )
            .values(version=Bed.version + 1, **values)
        )
        result = self.session.connection().execute(statement)
        self.session.refresh(bed)
        return result.rowcount == 1
