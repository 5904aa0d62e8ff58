"""
Initial data.

Creates the default bed pool when the database is empty:

    ICU           floor 2, 15 beds  (ICU-001 ... ICU-015)   ventilator, monitor, oxygen
    Emergency     floor 1, 20 beds  (EME-001 ... EME-020)   monitor, defibrillator, oxygen
    General Ward  floor 3, 40 beds  (GEN-001 ... GEN-040)   oxygen

ICU-001 starts in maintenance, ICU-002 in cleaning, and three demo
patients occupy ICU-003, EME-001 and GEN-001.
"""
from datetime import datetime, timedelta
from typing import List, Dict
import logging

from sqlmodel import Session, select

from bed_allocation.config import settings
from bed_allocation.models.ward import Ward
from bed_allocation.models.bed import Bed
from bed_allocation.models.patient import Patient
from bed_allocation.models.enums import (
    WardTypeEnum,
    BedStatusEnum,
    GenderEnum,
    PatientPriorityEnum,
    PatientStatusEnum,
)
from bed_allocation.utils.helpers import safe_json_dumps

logger = logging.getLogger("bed_allocation.init_data")


WARD_LAYOUT = [
    {"name": "ICU", "type": WardTypeEnum.ICU, "floor": 2, "capacity": 15,
     "equipment": ["Ventilator", "Monitor", "Oxygen"]},
    {"name": "Emergency", "type": WardTypeEnum.ER, "floor": 1, "capacity": 20,
     "equipment": ["Monitor", "Defibrillator", "Oxygen"]},
    {"name": "General Ward", "type": WardTypeEnum.GENERAL, "floor": 3, "capacity": 40,
     "equipment": ["Oxygen"]},
]

DEMO_PATIENTS = [
    {"bed_number": "ICU-003", "patient_code": "AK062", "name": "Amit Kumar", "age": 62,
     "gender": GenderEnum.MALE, "department": "ICU",
     "reason_for_admission": "Respiratory failure", "priority": PatientPriorityEnum.CRITICAL},
    {"bed_number": "EME-001", "patient_code": "RS045", "name": "Rahul Sharma", "age": 45,
     "gender": GenderEnum.MALE, "department": "Cardiology",
     "reason_for_admission": "Chest pain", "priority": PatientPriorityEnum.HIGH},
    {"bed_number": "GEN-001", "patient_code": "PP028", "name": "Priya Patel", "age": 28,
     "gender": GenderEnum.FEMALE, "department": "General",
     "reason_for_admission": "Dengue fever", "priority": PatientPriorityEnum.MEDIUM},
]


def bed_number_for(ward_name: str, index: int) -> str:
    """Bed number from the ward name prefix, e.g. ("ICU", 2) -> "ICU-002"."""
    return f"{ward_name[:3].upper()}-{index:03d}"


def initialize_data(session: Session) -> bool:
    """
    Seeds wards, beds and demo patients if no ward exists yet.

    Args:
        session: Database session

    Returns:
        True if data was created
    """
    if session.exec(select(Ward)).first():
        return False

    now = datetime.utcnow()
    beds_by_number: Dict[str, Bed] = {}

    for layout in WARD_LAYOUT:
        ward = Ward(
            name=layout["name"],
            type=layout["type"],
            floor=layout["floor"],
            capacity=layout["capacity"],
            equipment=safe_json_dumps(layout["equipment"]),
        )
        session.add(ward)
        beds: List[Bed] = [
            Bed(
                bed_number=bed_number_for(ward.name, i),
                ward_id=ward.id,
                floor=ward.floor,
                equipment=safe_json_dumps(layout["equipment"]),
            )
            for i in range(1, layout["capacity"] + 1)
        ]
        for bed in beds:
            session.add(bed)
            beds_by_number[bed.bed_number] = bed

    beds_by_number["ICU-001"].status = BedStatusEnum.MAINTENANCE
    cleaning = beds_by_number["ICU-002"]
    cleaning.status = BedStatusEnum.CLEANING
    cleaning.cleaning_started_at = now
    cleaning.estimated_available_time = now + timedelta(minutes=settings.CLEANING_DURATION_MINUTES)

    for demo in DEMO_PATIENTS:
        bed = beds_by_number[demo["bed_number"]]
        fields = {key: value for key, value in demo.items() if key != "bed_number"}
        patient = Patient(
            **fields,
            status=PatientStatusEnum.ADMITTED,
            assigned_bed_id=bed.id,
            admitted_at=now,
        )
        session.add(patient)
        bed.status = BedStatusEnum.OCCUPIED
        bed.current_patient_id = patient.id

    session.commit()
    logger.info(
        f"Seeded {len(WARD_LAYOUT)} wards, {len(beds_by_number)} beds "
        f"and {len(DEMO_PATIENTS)} patients"
    )
    return True
