"""
Outbound event payloads.

Services return these dictionaries in their results; the API layer
publishes them through the WebSocket manager after the commit.
"""
from typing import Any, Dict, Optional

from bed_allocation.models.bed import Bed
from bed_allocation.models.patient import Patient
from bed_allocation.models.bed_request import BedRequest
from bed_allocation.models.alert import Alert


def _value(enum_or_str: Any) -> Any:
    return getattr(enum_or_str, "value", enum_or_str)


def bed_updated(bed: Bed) -> Dict[str, Any]:
    return {
        "type": "bed:updated",
        "bed_id": bed.id,
        "bed_number": bed.bed_number,
        "status": _value(bed.status),
        "ward_id": bed.ward_id,
    }


def patient_event(
    event_type: str,
    patient: Patient,
    bed: Optional[Bed] = None,
    **extra: Any
) -> Dict[str, Any]:
    """
    Builds a patient:* event.

    Args:
        event_type: "admitted", "discharged" or "transferred"
        patient: Affected patient
        bed: Bed the event refers to, if any
        **extra: Additional payload fields

    Returns:
        Event dictionary
    """
    event = {
        "type": f"patient:{event_type}",
        "patient_id": patient.id,
        "patient_code": patient.patient_code,
        "status": _value(patient.status),
        "bed_id": bed.id if bed else None,
        "ward_id": bed.ward_id if bed else None,
    }
    event.update(extra)
    return event


def request_event(event_type: str, request: BedRequest, **extra: Any) -> Dict[str, Any]:
    event = {
        "type": f"request:{event_type}",
        "request_id": request.id,
        "status": _value(request.status),
        "kind": _value(request.kind),
        "assigned_bed_id": request.assigned_bed_id,
    }
    event.update(extra)
    return event


def alert_new(alert: Alert) -> Dict[str, Any]:
    return {
        "type": "alert:new",
        "alert_id": alert.id,
        "alert_type": _value(alert.type),
        "severity": _value(alert.severity),
        "message": alert.message,
        "ward_id": alert.ward_id,
    }
