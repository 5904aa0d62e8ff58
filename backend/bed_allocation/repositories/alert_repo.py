"""
Alert repository.
"""
from typing import Optional, List
from sqlmodel import Session, select
from datetime import datetime

from bed_allocation.repositories.base import BaseRepository
from bed_allocation.models.alert import Alert
from bed_allocation.models.enums import AlertTypeEnum


class AlertRepository(BaseRepository[Alert]):
    """Repository for alert operations."""

    def __init__(self, session: Session):
        super().__init__(session, Alert)

    def find_recent_unread(
        self,
        alert_type: AlertTypeEnum,
        ward_id: Optional[str],
        threshold: Optional[int],
        since: datetime,
        related_bed_id: Optional[str] = None
    ) -> Optional[Alert]:
        """
        Finds an unread alert of the same kind created after `since`.

        Args:
            alert_type: Alert type
            ward_id: Ward the alert refers to
            threshold: Threshold band that triggered it
            since: Start of the de-duplication window
            related_bed_id: Bed the alert refers to, if any

        Returns:
            The existing alert or None
        """
        query = select(Alert).where(
            Alert.type == alert_type,
            Alert.ward_id == ward_id,
            Alert.threshold == threshold,
            Alert.is_read == False,  # noqa: E712
            Alert.created_at >= since,
        )
        if related_bed_id:
            query = query.where(Alert.related_bed_id == related_bed_id)
        return self.session.exec(query).first()

    def list_alerts(self, unread_only: bool = False, limit: int = 50) -> List[Alert]:
        query = select(Alert)
        if unread_only:
            query = query.where(Alert.is_read == False)  # noqa: E712
        query = query.order_by(Alert.created_at.desc()).limit(limit)
        return list(self.session.exec(query).all())

    def mark_read(self, alert: Alert) -> Alert:
        alert.is_read = True
        return self.save(alert)
