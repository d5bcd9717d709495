from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import CamelModel
from ..models.prescription import DoseTime, FoodTiming, Prescription, PrescriptionStatus

class PrescriptionCreate(CamelModel):
    patient_id: str = Field(min_length=1)
    medicine: str = Field(min_length=1, max_length=255)
    time: DoseTime
    food: FoodTiming
    dosage: Optional[str] = None
    instructions: Optional[str] = None

class PrescriptionUpdate(CamelModel):
    medicine: Optional[str] = Field(default=None, min_length=1, max_length=255)
    time: Optional[DoseTime] = None
    food: Optional[FoodTiming] = None
    dosage: Optional[str] = None
    instructions: Optional[str] = None
    status: Optional[PrescriptionStatus] = None

class PrescriptionResponse(CamelModel):
    id: int
    patient_id: str
    patient_name: str
    doctor_id: str
    doctor_name: str
    medicine: str
    time: DoseTime
    food: FoodTiming
    dosage: str
    instructions: str
    status: PrescriptionStatus
    date_prescribed: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, prescription: Prescription) -> "PrescriptionResponse":
        return cls(
            id=prescription.id,
            patient_id=prescription.patient.patient_code,
            patient_name=prescription.patient_name,
            doctor_id=prescription.doctor.doctor_code,
            doctor_name=prescription.doctor_name,
            medicine=prescription.medicine,
            time=prescription.time,
            food=prescription.food,
            dosage=prescription.dosage or "",
            instructions=prescription.instructions or "",
            status=prescription.status,
            date_prescribed=prescription.date_prescribed,
            created_at=prescription.created_at,
            updated_at=prescription.updated_at,
        )
