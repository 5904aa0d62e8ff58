"""
Alert endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session
from typing import List

from bed_allocation.core.database import get_session
from bed_allocation.core.exceptions import BaseAppException
from bed_allocation.schemas.alert import AlertResponse
from bed_allocation.services.alert_service import AlertService

router = APIRouter()


@router.get("", response_model=List[AlertResponse])
def list_alerts(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=500),
    session: Session = Depends(get_session)
):
    """Lists alerts, newest first."""
    return AlertService(session).list_alerts(unread_only=unread_only, limit=limit)


@router.patch("/{alert_id}/read", response_model=AlertResponse)
def mark_alert_read(alert_id: str, session: Session = Depends(get_session)):
    try:
        return AlertService(session).mark_read(alert_id)
    except BaseAppException as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
