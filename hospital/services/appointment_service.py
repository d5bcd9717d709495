from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
import logging

from ..core.errors import NotFoundError
from ..core.permissions import (
    Principal, appointment_cancel_scope, require_doctor, require_patient
)
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..schemas.appointment import AppointmentCreate, AppointmentStatusUpdate
from .sequence import APPOINTMENT_SEQUENCE, next_identifier

logger = logging.getLogger(__name__)

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        """Appointments joined with patient and doctor display data."""
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient).joinedload(Patient.user),
            joinedload(Appointment.doctor).joinedload(Doctor.user),
        )

    def _get(self, appointment_id: int) -> Optional[Appointment]:
        return self._query().filter(Appointment.id == appointment_id).first()

    def create_appointment(self, principal: Principal, data: AppointmentCreate) -> Appointment:
        """Book a new appointment for the calling patient."""
        patient = require_patient(principal)

        doctor = self.db.query(Doctor).filter(
            Doctor.doctor_code == data.doctor_id
        ).first()
        if not doctor:
            raise NotFoundError("Doctor not found")

        appointment = Appointment(
            appointment_code=next_identifier(self.db, APPOINTMENT_SEQUENCE),
            patient_id=patient.id,
            doctor_id=doctor.id,
            date=data.date,
            time=data.time,
            reason=data.reason or "",
            notes="",
            status=AppointmentStatus.PENDING
        )

        self.db.add(appointment)
        self.db.commit()

        logger.info(
            f"Appointment {appointment.appointment_code} booked by patient "
            f"{patient.patient_code} with doctor {doctor.doctor_code}"
        )
        return self._get(appointment.id)

    def list_for_patient(self, principal: Principal) -> List[Appointment]:
        """All of the caller's appointments, newest first."""
        patient = require_patient(principal)
        return self._query().filter(
            Appointment.patient_id == patient.id
        ).order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()

    def list_for_doctor(self, principal: Principal) -> List[Appointment]:
        """The doctor's approved and completed schedule, earliest first."""
        doctor = require_doctor(principal)
        # time is a free-form slot label and sorts as text within a day
        return self._query().filter(
            Appointment.doctor_id == doctor.id,
            Appointment.status.in_([AppointmentStatus.APPROVED, AppointmentStatus.COMPLETED])
        ).order_by(Appointment.date.asc(), Appointment.time.asc()).all()

    def list_all(self, status: Optional[AppointmentStatus] = None) -> List[Appointment]:
        query = self._query()
        if status is not None:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()

    def update_status(self, appointment_id: int, data: AppointmentStatusUpdate) -> Appointment:
        """Admin review of an appointment request."""
        updated = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).update(
            {Appointment.status: data.status, Appointment.notes: data.notes or ""},
            synchronize_session=False
        )
        if not updated:
            raise NotFoundError("Appointment not found")

        self.db.commit()
        logger.info(f"Appointment {appointment_id} set to {data.status.value}")
        return self._get(appointment_id)

    def complete_appointment(self, principal: Principal, appointment_id: int) -> Appointment:
        """Mark an approved appointment of the calling doctor as completed."""
        doctor = require_doctor(principal)

        # Single conditional update: id, owner and current status must all match
        updated = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.doctor_id == doctor.id,
            Appointment.status == AppointmentStatus.APPROVED
        ).update(
            {Appointment.status: AppointmentStatus.COMPLETED},
            synchronize_session=False
        )
        if not updated:
            raise NotFoundError("Appointment not found or not authorized")

        self.db.commit()
        logger.info(f"Appointment {appointment_id} completed by doctor {doctor.doctor_code}")
        return self._get(appointment_id)

    def cancel_appointment(self, principal: Principal, appointment_id: int) -> None:
        """Cancel by deleting the appointment."""
        scope = appointment_cancel_scope(principal)

        deleted = self.db.query(Appointment).filter(
            Appointment.id == appointment_id, *scope
        ).delete(synchronize_session=False)
        if not deleted:
            raise NotFoundError("Appointment not found or not authorized to cancel")

        self.db.commit()
        logger.info(f"Appointment {appointment_id} cancelled by {principal.role.value}")
