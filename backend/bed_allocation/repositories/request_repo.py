"""
Bed request repository.
"""
from typing import Optional, List, Iterable
from sqlmodel import Session, select
from sqlalchemy import update

from bed_allocation.repositories.base import BaseRepository
from bed_allocation.models.bed_request import BedRequest
from bed_allocation.models.enums import RequestStatusEnum, RequestKindEnum


class BedRequestRepository(BaseRepository[BedRequest]):
    """Repository for bed request operations."""

    def __init__(self, session: Session):
        super().__init__(session, BedRequest)

    def list_requests(
        self,
        status: Optional[RequestStatusEnum] = None,
        kind: Optional[RequestKindEnum] = None,
        requested_by: Optional[str] = None
    ) -> List[BedRequest]:
        """
        Lists bed requests, newest first.

        Args:
            status: Only requests in this status
            kind: Only standard or only emergency requests
            requested_by: Only requests made by this user

        Returns:
            List of requests
        """
        query = select(BedRequest)
        if status:
            query = query.where(BedRequest.status == status)
        if kind:
            query = query.where(BedRequest.kind == kind)
        if requested_by:
            query = query.where(BedRequest.requested_by == requested_by)
        query = query.order_by(BedRequest.request_date.desc())
        return list(self.session.exec(query).all())

    def conditional_transition(
        self,
        request: BedRequest,
        expected_statuses: Iterable[RequestStatusEnum],
        **values
    ) -> bool:
        """
        Moves a request to a new state only if it is still in one of the
        expected statuses and unchanged since it was loaded.

        Nothing is committed here. A False return means another writer
        processed the request first; `request` then holds its current row.

        Args:
            request: Request as loaded by the caller
            expected_statuses: Statuses the transition starts from
            **values: Columns to set, usually including `status`

        Returns:
            True if this writer won
        """
        self.session.flush()

        statement = (
            update(BedRequest)
            .where(
                BedRequest.id == request.id,
                BedRequest.status.in_(list(expected_statuses)),
                BedRequest.version == request.version,
            )
            .values(version=BedRequest.version + 1, **values)
        )
        result = self.session.connection().execute(statement)
        self.session.refresh(request)
        return result.rowcount == 1
