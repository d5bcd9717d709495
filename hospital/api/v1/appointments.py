from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.errors import ValidationError
from ...core.permissions import Principal
from ...api.deps import get_admin, get_doctor, get_patient, get_principal
from ...models.appointment import AppointmentStatus
from ...schemas.appointment import (
    AppointmentCreate, AppointmentResponse, AppointmentStatusUpdate
)
from ...schemas.common import success_response
from ...services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])

def _parse_status(value: Optional[str]) -> Optional[AppointmentStatus]:
    if not value or value == "all":
        return None
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid appointment status: {value}")

# Patient routes
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_patient)
):
    """Book an appointment with a doctor."""
    appointment = AppointmentService(db).create_appointment(principal, data)
    return success_response(appointment=AppointmentResponse.from_record(appointment))

@router.get("/patient")
async def get_patient_appointments(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_patient)
):
    """List the caller's appointments, newest first."""
    appointments = AppointmentService(db).list_for_patient(principal)
    return success_response(
        appointments=[AppointmentResponse.from_record(a) for a in appointments]
    )

@router.delete("/{appointment_id}")
async def cancel_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    """Cancel an appointment (pending ones only, for patients)."""
    AppointmentService(db).cancel_appointment(principal, appointment_id)
    return success_response(message="Appointment cancelled successfully")

# Doctor routes
@router.get("/doctor")
async def get_doctor_appointments(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_doctor)
):
    """List the doctor's approved and completed appointments."""
    appointments = AppointmentService(db).list_for_doctor(principal)
    return success_response(
        appointments=[AppointmentResponse.from_record(a) for a in appointments]
    )

@router.patch("/{appointment_id}/complete")
async def complete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_doctor)
):
    """Mark an approved appointment as completed."""
    appointment = AppointmentService(db).complete_appointment(principal, appointment_id)
    return success_response(appointment=AppointmentResponse.from_record(appointment))

# Admin routes
@router.get("/admin")
async def get_admin_appointments(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    _: Principal = Depends(get_admin)
):
    """List all appointments, optionally filtered by status."""
    appointments = AppointmentService(db).list_all(_parse_status(status_filter))
    return success_response(
        appointments=[AppointmentResponse.from_record(a) for a in appointments]
    )

@router.patch("/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(get_admin)
):
    """Approve or reject an appointment request."""
    appointment = AppointmentService(db).update_status(appointment_id, data)
    return success_response(appointment=AppointmentResponse.from_record(appointment))
