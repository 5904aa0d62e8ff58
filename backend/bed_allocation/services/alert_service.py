"""
Alert service.

Raises occupancy and availability alerts after bed state changes. Alerts
are a side reaction: failures are logged and never propagate to the
operation that triggered them.
"""
from typing import List, Optional, Dict, Any
from sqlmodel import Session
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timedelta
import logging

from bed_allocation.config import settings
from bed_allocation.models.alert import Alert
from bed_allocation.models.bed import Bed
from bed_allocation.models.enums import AlertTypeEnum, AlertSeverityEnum, UNAVAILABLE_BED_STATUSES
from bed_allocation.repositories.alert_repo import AlertRepository
from bed_allocation.repositories.bed_repo import BedRepository
from bed_allocation.repositories.ward_repo import WardRepository
from bed_allocation.core.exceptions import AlertNotFoundError
from bed_allocation.services import events

logger = logging.getLogger("bed_allocation.alerts")


class AlertService:
    """Service for occupancy and bed availability alerts."""

    def __init__(self, session: Session):
        self.session = session
        self.alert_repo = AlertRepository(session)
        self.bed_repo = BedRepository(session)
        self.ward_repo = WardRepository(session)

    def check_occupancy(self, ward_id: str) -> List[Dict[str, Any]]:
        """
        Evaluates the occupancy bands of a ward and raises alerts.

        Bands:
            no available beds -> critical, threshold 100
            occupancy >= 90%  -> critical, threshold 90
            occupancy >= 80%  -> warning, threshold 80
        Independently, >= 30% of beds cleaning/maintenance/reserved with
        fewer than 3 available raises a bed_unavailable warning.

        Args:
            ward_id: Ward to evaluate

        Returns:
            alert:new events for the alerts created
        """
        try:
            return self._check_occupancy(ward_id)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Occupancy check failed for ward {ward_id}: {e}")
            return []

    def _check_occupancy(self, ward_id: str) -> List[Dict[str, Any]]:
        ward = self.ward_repo.get_by_id(ward_id)
        if not ward:
            return []

        counts = self.bed_repo.count_by_status(ward_id)
        total = sum(counts.values())
        if total == 0:
            return []

        occupied = counts["occupied"]
        available = counts["available"]
        cleaning = counts["cleaning"]
        maintenance = counts["maintenance"]
        reserved = counts["reserved"]
        unavailable = sum(counts[status.value] for status in UNAVAILABLE_BED_STATUSES)

        occupancy = occupied / total * 100
        unavailable_pct = unavailable / total * 100

        logger.debug(
            f"Ward {ward.name}: occupied {occupancy:.1f}%, "
            f"unavailable {unavailable_pct:.1f}%, available {available}"
        )

        produced: List[Dict[str, Any]] = []

        if available == 0:
            alert = self.create_alert(
                AlertTypeEnum.CRITICAL_OCCUPANCY,
                AlertSeverityEnum.CRITICAL,
                f"CRITICAL: {ward.name} has NO available beds "
                f"({occupied} occupied, {cleaning} cleaning, "
                f"{maintenance} maintenance, {reserved} reserved)",
                ward_id=ward_id,
                threshold=100,
            )
        elif occupancy >= 90:
            alert = self.create_alert(
                AlertTypeEnum.CRITICAL_OCCUPANCY,
                AlertSeverityEnum.CRITICAL,
                f"CRITICAL: {ward.name} is at {occupancy:.1f}% capacity "
                f"({occupied}/{total} beds occupied, {available} available)",
                ward_id=ward_id,
                threshold=90,
            )
        elif occupancy >= 80:
            alert = self.create_alert(
                AlertTypeEnum.CRITICAL_OCCUPANCY,
                AlertSeverityEnum.WARNING,
                f"WARNING: {ward.name} is at {occupancy:.1f}% capacity "
                f"({occupied}/{total} beds occupied, {available} available)",
                ward_id=ward_id,
                threshold=80,
            )
        else:
            alert = None

        if alert:
            produced.append(events.alert_new(alert))

        if unavailable_pct >= 30 and available < 3:
            alert = self.create_alert(
                AlertTypeEnum.BED_UNAVAILABLE,
                AlertSeverityEnum.WARNING,
                f"{ward.name}: {unavailable} beds unavailable ({cleaning} cleaning, "
                f"{maintenance} maintenance, {reserved} reserved). "
                f"Only {available} beds available.",
                ward_id=ward_id,
            )
            if alert:
                produced.append(events.alert_new(alert))

        return produced

    def bed_available(self, bed: Bed) -> List[Dict[str, Any]]:
        """
        Raises an info alert for a bed that became available.

        Args:
            bed: The bed, already committed as available

        Returns:
            alert:new events for the alerts created
        """
        try:
            ward = self.ward_repo.get_by_id(bed.ward_id)
            ward_name = ward.name if ward else "Unknown Ward"
            alert = self.create_alert(
                AlertTypeEnum.BED_AVAILABLE,
                AlertSeverityEnum.INFO,
                f"Bed {bed.bed_number} in {ward_name} is now available",
                ward_id=bed.ward_id,
                related_bed_id=bed.id,
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Bed available alert failed for {bed.bed_number}: {e}")
            return []
        return [events.alert_new(alert)] if alert else []

    def create_alert(
        self,
        alert_type: AlertTypeEnum,
        severity: AlertSeverityEnum,
        message: str,
        ward_id: Optional[str] = None,
        threshold: Optional[int] = None,
        related_bed_id: Optional[str] = None
    ) -> Optional[Alert]:
        """
        Creates an alert unless an unread twin exists in the dedup window.

        Args:
            alert_type: Alert type
            severity: Alert severity
            message: Human readable text
            ward_id: Ward the alert refers to
            threshold: Occupancy band that triggered it
            related_bed_id: Bed the alert refers to

        Returns:
            The new alert, or None when a duplicate was found
        """
        since = datetime.utcnow() - timedelta(minutes=settings.ALERT_DEDUP_MINUTES)
        existing = self.alert_repo.find_recent_unread(
            alert_type, ward_id, threshold, since, related_bed_id=related_bed_id
        )
        if existing:
            logger.debug(f"Similar alert already exists, skipping: {alert_type.value}")
            return None

        alert = Alert(
            type=alert_type,
            severity=severity,
            message=message,
            ward_id=ward_id,
            threshold=threshold,
            related_bed_id=related_bed_id,
        )
        self.alert_repo.save(alert)
        logger.info(f"Alert created: {message}")
        return alert

    def list_alerts(self, unread_only: bool = False, limit: int = 50) -> List[Alert]:
        return self.alert_repo.list_alerts(unread_only=unread_only, limit=limit)

    def mark_read(self, alert_id: str) -> Alert:
        alert = self.alert_repo.get_by_id(alert_id)
        if not alert:
            raise AlertNotFoundError(alert_id)
        return self.alert_repo.mark_read(alert)
