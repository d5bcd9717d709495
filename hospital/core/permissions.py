"""
Role-resolved callers and per-operation authorization.

Every authenticated user is resolved to exactly one principal type carrying its
role-specific profile. The authorization functions below either raise
``AuthorizationError`` or return the filter criteria that scope the caller's
queries.
"""
from dataclasses import dataclass
from typing import List, Optional, Union

from .security import AuthorizationError, UserRole
from ..models.admin import Admin
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.medical_report import MedicalReport, ReportStatus
from ..models.patient import Patient
from ..models.prescription import Prescription
from ..models.user import User

@dataclass
class PatientPrincipal:
    user: User
    patient: Patient
    role = UserRole.PATIENT

@dataclass
class DoctorPrincipal:
    user: User
    doctor: Doctor
    role = UserRole.DOCTOR

@dataclass
class AdminPrincipal:
    user: User
    admin: Optional[Admin] = None
    role = UserRole.ADMIN

Principal = Union[PatientPrincipal, DoctorPrincipal, AdminPrincipal]

def require_patient(principal: Principal) -> Patient:
    if not isinstance(principal, PatientPrincipal):
        raise AuthorizationError("Only patients can perform this action")
    return principal.patient

def require_doctor(principal: Principal) -> Doctor:
    if not isinstance(principal, DoctorPrincipal):
        raise AuthorizationError("Only doctors can perform this action")
    return principal.doctor

def is_assigned_doctor(principal: Principal, report: MedicalReport) -> bool:
    return (
        isinstance(principal, DoctorPrincipal)
        and report.doctor_id is not None
        and report.doctor_id == principal.doctor.id
    )

# Appointments

def appointment_cancel_scope(principal: Principal) -> List:
    """Criteria an appointment must match to be cancelled by the caller."""
    if isinstance(principal, PatientPrincipal):
        # Patients may only withdraw requests that are still pending
        return [
            Appointment.patient_id == principal.patient.id,
            Appointment.status == AppointmentStatus.PENDING,
        ]
    if isinstance(principal, AdminPrincipal):
        return []
    raise AuthorizationError("Not authorized to cancel appointments")

# Medical reports

def report_read_scope(principal: Principal) -> List:
    """Criteria limiting which reports the caller may list, view or download."""
    if isinstance(principal, PatientPrincipal):
        return [
            MedicalReport.patient_id == principal.patient.id,
            MedicalReport.status == ReportStatus.APPROVED,
        ]
    if isinstance(principal, DoctorPrincipal):
        return [MedicalReport.doctor_id == principal.doctor.id]
    return []

def report_stats_scope(principal: Principal) -> List:
    if isinstance(principal, DoctorPrincipal):
        return [MedicalReport.doctor_id == principal.doctor.id]
    if isinstance(principal, AdminPrincipal):
        return []
    raise AuthorizationError("Not authorized to view report statistics")

def authorize_report_review(principal: Principal, report: MedicalReport) -> Doctor:
    """Only the doctor assigned to a report may approve or reject it."""
    if not isinstance(principal, DoctorPrincipal):
        raise AuthorizationError("Only doctors can approve medical reports")
    if not is_assigned_doctor(principal, report):
        raise AuthorizationError("Not authorized to approve this report")
    return principal.doctor

def authorize_report_update(principal: Principal, report: MedicalReport) -> None:
    if isinstance(principal, AdminPrincipal):
        return
    if not is_assigned_doctor(principal, report):
        raise AuthorizationError("Not authorized to update this report")

def authorize_report_delete(principal: Principal) -> None:
    if isinstance(principal, PatientPrincipal):
        raise AuthorizationError("Not authorized to delete medical reports")

# Prescriptions

def authorize_prescription_read(principal: Principal, patient: Patient) -> None:
    """Patients see only their own prescriptions; staff see any patient's."""
    if isinstance(principal, PatientPrincipal) and principal.patient.id != patient.id:
        raise AuthorizationError("Not authorized to view these prescriptions")

def authorize_prescription_update(principal: Principal, prescription: Prescription) -> Doctor:
    if not isinstance(principal, DoctorPrincipal):
        raise AuthorizationError("Only doctors can update prescriptions")
    if prescription.doctor_id != principal.doctor.id:
        raise AuthorizationError("Not authorized to update this prescription")
    return principal.doctor
