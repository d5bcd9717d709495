"""
Human-readable sequential identifiers (APT0001, REP0012, PAT007, ...).

Each entity type owns a row in ``sequence_counters``. The next number is taken
with a single ``UPDATE ... SET value = value + 1`` inside the caller's
transaction, so the row lock serializes concurrent creators and a rolled back
insert gives its number back.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy.orm import Session

from ..models.admin import Admin
from ..models.appointment import Appointment
from ..models.doctor import Doctor
from ..models.medical_report import MedicalReport
from ..models.patient import Patient
from ..models.sequence import SequenceCounter

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Sequence:
    name: str
    prefix: str
    code_column: object
    width: int = 4

APPOINTMENT_SEQUENCE = Sequence("appointment", "APT", Appointment.appointment_code)
REPORT_SEQUENCE = Sequence("medical_report", "REP", MedicalReport.report_code)

# Profile codes, e.g. PAT007, DR003, ADM001
PATIENT_SEQUENCE = Sequence("patient", "PAT", Patient.patient_code, width=3)
DOCTOR_SEQUENCE = Sequence("doctor", "DR", Doctor.doctor_code, width=3)
ADMIN_SEQUENCE = Sequence("admin", "ADM", Admin.employee_id, width=3)

def format_identifier(prefix: str, number: int, width: int = 4) -> str:
    return f"{prefix}{number:0{width}d}"

def parse_identifier(prefix: str, code: Optional[str]) -> Optional[int]:
    """Numeric suffix of ``code``, or None when it is not a ``prefix`` code."""
    if not code or not code.startswith(prefix):
        return None
    suffix = code[len(prefix):]
    return int(suffix) if suffix.isdigit() else None

def _highest_existing(db: Session, sequence: Sequence) -> int:
    highest = 0
    for (code,) in db.query(sequence.code_column).all():
        number = parse_identifier(sequence.prefix, code)
        if number is not None and number > highest:
            highest = number
    return highest

def next_identifier(db: Session, sequence: Sequence) -> str:
    """Reserve and return the next identifier of ``sequence``.

    The caller commits; the reservation is undone with its transaction.
    """
    updated = db.query(SequenceCounter).filter(
        SequenceCounter.name == sequence.name
    ).update(
        {SequenceCounter.value: SequenceCounter.value + 1},
        synchronize_session=False
    )

    if not updated:
        # First use: continue after whatever codes are already stored
        start = _highest_existing(db, sequence)
        logger.info(f"Seeding sequence '{sequence.name}' at {start}")
        db.add(SequenceCounter(name=sequence.name, value=start + 1))
        db.flush()

    value = db.query(SequenceCounter.value).filter(
        SequenceCounter.name == sequence.name
    ).scalar()

    return format_identifier(sequence.prefix, value, sequence.width)
