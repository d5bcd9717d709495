from datetime import date as date_type, datetime
from typing import Optional

from pydantic import Field

from .common import CamelModel
from ..models.appointment import Appointment, AppointmentStatus

class AppointmentCreate(CamelModel):
    doctor_id: str = Field(min_length=1)
    date: date_type
    time: str = Field(min_length=1)
    reason: Optional[str] = None

class AppointmentStatusUpdate(CamelModel):
    status: AppointmentStatus
    notes: Optional[str] = None

class PatientSummary(CamelModel):
    patient_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None

class DoctorSummary(CamelModel):
    doctor_id: str
    name: str
    specialization: str
    department: str

class AppointmentResponse(CamelModel):
    id: int
    appointment_id: str
    patient: PatientSummary
    doctor: DoctorSummary
    date: date_type
    time: str
    reason: str
    notes: str
    status: AppointmentStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, appointment: Appointment) -> "AppointmentResponse":
        patient = appointment.patient
        doctor = appointment.doctor
        return cls(
            id=appointment.id,
            appointment_id=appointment.appointment_code,
            patient=PatientSummary(
                patient_id=patient.patient_code,
                full_name=patient.full_name,
                email=patient.user.email if patient.user else None,
                phone_number=patient.user.phone_number if patient.user else None,
            ),
            doctor=DoctorSummary(
                doctor_id=doctor.doctor_code,
                name=doctor.full_name or "Unknown Doctor",
                specialization=doctor.specialization,
                department=doctor.department,
            ),
            date=appointment.date,
            time=appointment.time,
            reason=appointment.reason or "",
            notes=appointment.notes or "",
            status=appointment.status,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )
