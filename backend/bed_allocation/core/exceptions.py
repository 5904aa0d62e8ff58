"""
Custom exceptions.
Semantic errors raised by the allocation core and mapped to HTTP codes by the API.
"""
from typing import List, Optional


class BaseAppException(Exception):
    """
    Base application exception.
    Every custom exception inherits from this one.
    """
    status_code = 500

    def __init__(self, message: str, code: str = "ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# ============================================
# VALIDATION ERRORS
# ============================================

class ValidationError(BaseAppException):
    """Missing or malformed input."""
    status_code = 400

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code)


class NoBedSelectedError(ValidationError):
    """Approval without an explicit, reserved or recommended bed."""
    def __init__(self, request_id: str):
        super().__init__(
            f"No bed selected for request '{request_id}'. Select a bed before approving.",
            "NO_BED_SELECTED"
        )
        self.request_id = request_id


# ============================================
# PERMISSION ERRORS
# ============================================

class PermissionDeniedError(BaseAppException):
    """The caller's roles do not allow the operation."""
    status_code = 403

    def __init__(self, operation: str, allowed_roles: Optional[List[str]] = None):
        roles_msg = ""
        if allowed_roles:
            roles_msg = f" Allowed roles: {', '.join(allowed_roles)}"
        super().__init__(
            f"Access denied for '{operation}'.{roles_msg}",
            "PERMISSION_DENIED"
        )
        self.operation = operation


# ============================================
# NOT FOUND ERRORS
# ============================================

class NotFoundError(BaseAppException):
    """Resource not found."""
    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} with identifier '{identifier}' not found",
            "NOT_FOUND"
        )
        self.resource = resource
        self.identifier = identifier


class BedNotFoundError(NotFoundError):
    def __init__(self, bed_id: str):
        super().__init__("Bed", bed_id)


class PatientNotFoundError(NotFoundError):
    def __init__(self, patient_id: str):
        super().__init__("Patient", patient_id)


class RequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str):
        super().__init__("Bed request", request_id)


class WardNotFoundError(NotFoundError):
    def __init__(self, ward_id: str):
        super().__init__("Ward", ward_id)


class AlertNotFoundError(NotFoundError):
    def __init__(self, alert_id: str):
        super().__init__("Alert", alert_id)


# ============================================
# CONFLICT ERRORS
# ============================================

class ConflictError(BaseAppException):
    """The current state of a record forbids the operation."""
    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, code)


class BedNotAvailableError(ConflictError):
    """Bed is not in a state that accepts the operation."""
    def __init__(self, bed_number: str, current_status: str):
        super().__init__(
            f"Bed {bed_number} is not available (status: {current_status})",
            "BED_NOT_AVAILABLE"
        )
        self.bed_number = bed_number
        self.current_status = current_status


class RequestAlreadyProcessedError(ConflictError):
    def __init__(self, request_id: str, current_status: str):
        super().__init__(
            f"Request {request_id} already processed (status: {current_status})",
            "ALREADY_PROCESSED"
        )
        self.request_id = request_id
        self.current_status = current_status


class PatientAlreadyDischargedError(ConflictError):
    def __init__(self, patient_code: str):
        super().__init__(
            f"Patient {patient_code} is already discharged",
            "ALREADY_DISCHARGED"
        )


class PatientNotAdmittedError(ConflictError):
    def __init__(self, patient_code: str, current_status: str):
        super().__init__(
            f"Patient {patient_code} is not admitted (status: {current_status})",
            "NOT_ADMITTED"
        )


class PatientAlreadyAdmittedError(ConflictError):
    def __init__(self, patient_code: str, bed_number: str):
        super().__init__(
            f"Patient {patient_code} is already admitted to bed {bed_number}. Use a transfer instead.",
            "ALREADY_ADMITTED"
        )


# ============================================
# INTERNAL ERRORS
# ============================================

class InternalFailureError(BaseAppException):
    """Store unreachable or write rejected; the transaction was rolled back."""
    status_code = 500

    def __init__(self, operation: str, detail: str = ""):
        message = f"Internal failure during {operation}"
        if detail:
            message += f": {detail}"
        super().__init__(message, "INTERNAL_FAILURE")
        self.operation = operation
