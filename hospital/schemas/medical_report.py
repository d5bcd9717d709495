from datetime import datetime
from typing import List, Optional

from .common import CamelModel
from ..core.security import UserRole
from ..models.medical_report import MedicalReport, ReportStatus

class ReportApproval(CamelModel):
    approved: bool
    comments: Optional[str] = None

class ReportUpdate(CamelModel):
    comments: Optional[str] = None
    status: Optional[ReportStatus] = None

class ReportSummary(CamelModel):
    """Returned by upload; never includes file content."""
    id: int
    report_id: str
    patient_name: str
    patient_identifier: str
    doctor_name: Optional[str] = None
    title: str
    status: ReportStatus
    file_name: str
    file_size: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, report: MedicalReport) -> "ReportSummary":
        return cls(
            id=report.id,
            report_id=report.report_code,
            patient_name=report.patient_name,
            patient_identifier=report.patient_identifier,
            doctor_name=report.doctor_name,
            title=report.title,
            status=report.status,
            file_name=report.file_name,
            file_size=report.file_size,
            created_at=report.created_at,
        )

class MedicalReportResponse(CamelModel):
    id: int
    report_id: str
    patient_id: str
    patient_name: str
    patient_identifier: str
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    admin_id: Optional[str] = None
    admin_name: Optional[str] = None
    appointment_id: Optional[str] = None
    title: str
    description: str
    file_name: str
    file_url: str
    file_size: int
    file_type: str
    comments: str
    status: ReportStatus
    uploaded_by: UserRole
    approved_by_doctor: bool
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, report: MedicalReport) -> "MedicalReportResponse":
        return cls(
            id=report.id,
            report_id=report.report_code,
            patient_id=report.patient.patient_code,
            patient_name=report.patient_name,
            patient_identifier=report.patient_identifier,
            doctor_id=report.doctor.doctor_code if report.doctor else None,
            doctor_name=report.doctor_name,
            admin_id=report.admin.employee_id if report.admin else None,
            admin_name=report.admin_name,
            appointment_id=report.appointment.appointment_code if report.appointment else None,
            title=report.title,
            description=report.description or "",
            file_name=report.file_name,
            file_url=report.file_url,
            file_size=report.file_size,
            file_type=report.file_type,
            comments=report.comments or "",
            status=report.status,
            uploaded_by=report.uploaded_by,
            approved_by_doctor=bool(report.approved_by_doctor),
            approved_at=report.approved_at,
            approved_by=report.approved_by.doctor_code if report.approved_by else None,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )

class Pagination(CamelModel):
    current: int
    pages: int
    total: int
    limit: int

class ReportPage(CamelModel):
    medical_reports: List[MedicalReportResponse]
    pagination: Pagination

class PatientLookup(CamelModel):
    id: int
    patient_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None

class ReportStats(CamelModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    archived: int = 0
