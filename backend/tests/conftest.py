"""
Pytest fixtures.
"""
import os

# Keep the application engine in memory and the sweep idle during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CLEANING_ENABLED", "false")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine
from sqlmodel.pool import StaticPool

import bed_allocation.models  # noqa: F401
from bed_allocation.core.auth_dependencies import Actor
from bed_allocation.core.database import get_session
from bed_allocation.main import app


# Test engine (in-memory SQLite)
@pytest.fixture(name="engine")
def engine_fixture():
    """Creates an in-memory test engine."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Creates a test session."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session):
    """Creates a test client with the session injected."""
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================
# ACTORS
# ============================================

@pytest.fixture
def admin():
    return Actor(user_id="admin-1", roles=["hospital_admin"])


@pytest.fixture
def nurse():
    return Actor(user_id="nurse-1", roles=["nurse"])


@pytest.fixture
def er_staff():
    return Actor(user_id="er-1", roles=["er_staff"])


# ============================================
# FACTORIES
# ============================================

@pytest.fixture
def create_ward(session):
    """Factory fixture for wards."""
    from bed_allocation.models.ward import Ward
    from bed_allocation.models.enums import WardTypeEnum

    def _create_ward(name="ICU", type=WardTypeEnum.ICU, floor=1, capacity=0):
        ward = Ward(name=name, type=type, floor=floor, capacity=capacity)
        session.add(ward)
        session.commit()
        session.refresh(ward)
        return ward

    return _create_ward


@pytest.fixture
def create_bed(session):
    """Factory fixture for beds."""
    from bed_allocation.models.bed import Bed
    from bed_allocation.models.enums import BedStatusEnum
    from bed_allocation.utils.helpers import safe_json_dumps

    def _create_bed(ward, bed_number, status=BedStatusEnum.AVAILABLE, equipment=None, **kwargs):
        bed = Bed(
            bed_number=bed_number,
            ward_id=ward.id,
            floor=ward.floor,
            status=status,
            equipment=safe_json_dumps(equipment or []),
            **kwargs
        )
        session.add(bed)
        session.commit()
        session.refresh(bed)
        return bed

    return _create_bed


@pytest.fixture
def create_patient(session):
    """
    Factory fixture for patients.
    Passing `bed` admits the patient into it, keeping both sides linked.
    """
    from datetime import datetime
    from bed_allocation.models.patient import Patient
    from bed_allocation.models.enums import BedStatusEnum, PatientStatusEnum

    def _create_patient(code="P0001", name="Test Patient", age=40, bed=None, **kwargs):
        kwargs.setdefault("reason_for_admission", "Observation")
        kwargs.setdefault(
            "status",
            PatientStatusEnum.ADMITTED if bed else PatientStatusEnum.DISCHARGED
        )
        patient = Patient(
            patient_code=code,
            name=name,
            age=age,
            assigned_bed_id=bed.id if bed else None,
            admitted_at=datetime.utcnow() if bed else None,
            **kwargs
        )
        session.add(patient)
        if bed:
            bed.status = BedStatusEnum.OCCUPIED
            bed.current_patient_id = patient.id
            session.add(bed)
        session.commit()
        session.refresh(patient)
        if bed:
            session.refresh(bed)
        return patient

    return _create_patient


@pytest.fixture
def create_request(session):
    """Factory fixture for bed requests, created through the service."""
    from bed_allocation.schemas.bed_request import BedRequestCreate
    from bed_allocation.services.request_service import RequestService

    def _create_request(actor, ward="ICU", equipment=None, **kwargs):
        kwargs.setdefault("patient_name", "Walk In")
        kwargs.setdefault("age", 50)
        data = BedRequestCreate(ward=ward, equipment=equipment or [], **kwargs)
        return RequestService(session).create_request(data, actor).request

    return _create_request


@pytest.fixture
def icu_ward_scenario(create_ward, create_bed, create_patient):
    """
    ICU with ICU-001 (available, no equipment), ICU-002 (available,
    ventilator) and ICU-003 (occupied).
    """
    ward = create_ward("ICU")
    bed1 = create_bed(ward, "ICU-001")
    bed2 = create_bed(ward, "ICU-002", equipment=["Ventilator"])
    bed3 = create_bed(ward, "ICU-003")
    occupant = create_patient(code="OCC01", bed=bed3)

    return {
        "ward": ward,
        "beds": [bed1, bed2, bed3],
        "occupant": occupant,
    }
