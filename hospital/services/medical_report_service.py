"""
Medical report upload and approval workflow.

A report uploaded for a patient is assigned to the doctor of that patient's
most recent appointment and waits in ``pending`` until that doctor approves or
rejects it. A patient without any appointment gets an unassigned report that
is approved immediately.
"""
from dataclasses import dataclass
from datetime import datetime
from math import ceil
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple
import logging

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..core.config import settings
from ..core.errors import NotFoundError, UnexpectedError, ValidationError
from ..core.security import AuthorizationError
from ..core.permissions import (
    AdminPrincipal, DoctorPrincipal, Principal,
    authorize_report_delete, authorize_report_review, authorize_report_update,
    report_read_scope, report_stats_scope, require_doctor
)
from ..models.appointment import Appointment
from ..models.doctor import Doctor
from ..models.medical_report import MedicalReport, ReportStatus
from ..models.patient import Patient
from ..schemas.medical_report import ReportApproval, ReportStats, ReportUpdate
from .sequence import REPORT_SEQUENCE, next_identifier
from .storage import ReportStorage

logger = logging.getLogger(__name__)

UNASSIGNED_DOCTOR = "Not Assigned"

@dataclass
class ReportUpload:
    """An uploaded file still held in temporary storage."""
    file: Optional[BinaryIO]
    filename: Optional[str]
    content_type: Optional[str]
    patient_identifier: Optional[str]
    title: Optional[str]
    description: Optional[str] = None
    comments: Optional[str] = None

    def discard(self):
        """Release the temporary file."""
        if self.file is not None and not self.file.closed:
            self.file.close()

    def size(self) -> int:
        self.file.seek(0, 2)
        size = self.file.tell()
        self.file.seek(0)
        return size

class MedicalReportService:
    def __init__(self, db: Session, storage: ReportStorage):
        self.db = db
        self.storage = storage

    def _query(self):
        return self.db.query(MedicalReport).options(
            joinedload(MedicalReport.patient),
            joinedload(MedicalReport.doctor),
            joinedload(MedicalReport.admin),
            joinedload(MedicalReport.appointment),
            joinedload(MedicalReport.approved_by),
        )

    def _find_patient(self, patient_identifier: str) -> Optional[Patient]:
        return self.db.query(Patient).options(
            joinedload(Patient.user)
        ).filter(Patient.patient_code == patient_identifier).first()

    def _get_report(self, report_id: int) -> MedicalReport:
        report = self._query().filter(MedicalReport.id == report_id).first()
        if not report:
            raise NotFoundError("Medical report not found")
        return report

    def _validate_upload(self, upload: ReportUpload) -> Tuple[str, str, int]:
        if upload.file is None or not upload.filename:
            raise ValidationError("Please upload a file")

        patient_identifier = (upload.patient_identifier or "").strip()
        title = (upload.title or "").strip()
        if not patient_identifier or not title:
            raise ValidationError("Patient ID and title are required")

        if upload.content_type not in settings.ALLOWED_REPORT_TYPES:
            raise ValidationError(
                "Invalid file type. Only PDF, JPEG, PNG, and Word documents are allowed."
            )

        size = upload.size()
        if size > settings.MAX_REPORT_SIZE:
            raise ValidationError("File size must be less than 10MB")

        return patient_identifier, title, size

    def find_assigned_doctor(self, patient: Patient) -> Tuple[Optional[Appointment], Optional[Doctor]]:
        """Doctor of the patient's most recently created appointment, if any."""
        appointment = self.db.query(Appointment).options(
            joinedload(Appointment.doctor).joinedload(Doctor.user)
        ).filter(
            Appointment.patient_id == patient.id
        ).order_by(Appointment.created_at.desc(), Appointment.id.desc()).first()

        if appointment is None:
            return None, None
        return appointment, appointment.doctor

    def upload_report(self, principal: Principal, upload: ReportUpload) -> MedicalReport:
        """Validate, store and register an uploaded report."""
        stored = None
        try:
            if not isinstance(principal, (AdminPrincipal, DoctorPrincipal)):
                raise AuthorizationError("Only admins and doctors can upload medical reports")

            patient_identifier, title, size = self._validate_upload(upload)

            patient = self._find_patient(patient_identifier)
            if not patient:
                raise NotFoundError(f"Patient not found with ID: {patient_identifier}")

            appointment, doctor = self.find_assigned_doctor(patient)
            if doctor is None:
                logger.info(f"No appointment or doctor found for patient {patient_identifier}")

            admin = principal.admin if isinstance(principal, AdminPrincipal) else None

            stored = self.storage.save(upload.file, upload.filename)

            report = MedicalReport(
                report_code=next_identifier(self.db, REPORT_SEQUENCE),
                patient_id=patient.id,
                patient_name=patient.full_name,
                patient_identifier=patient_identifier,
                doctor_id=doctor.id if doctor else None,
                doctor_name=doctor.full_name if doctor else UNASSIGNED_DOCTOR,
                admin_id=admin.id if admin else None,
                admin_name=principal.user.full_name if isinstance(principal, AdminPrincipal) else None,
                appointment_id=appointment.id if appointment else None,
                title=title,
                description=(upload.description or "").strip(),
                file_name=upload.filename,
                file_url=stored.url,
                file_size=size,
                file_type=upload.content_type,
                comments=(upload.comments or "").strip(),
                uploaded_by=principal.role,
                # Nobody to sign off an unassigned report
                status=ReportStatus.PENDING if doctor else ReportStatus.APPROVED
            )
            self.db.add(report)
            self.db.commit()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to upload medical report: {str(e)}")
            self.db.rollback()
            if stored is not None:
                self.storage.delete(stored.url)
            raise UnexpectedError("Failed to upload medical report")
        finally:
            upload.discard()

        logger.info(
            f"Medical report {report.report_code} uploaded for {patient_identifier} "
            f"by {principal.role.value}, status {report.status.value}"
        )
        return self._get_report(report.id)

    def list_reports(
        self,
        principal: Principal,
        patient_identifier: Optional[str] = None,
        status: Optional[ReportStatus] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[MedicalReport], int, int]:
        """Role-scoped page of reports; returns (items, total, pages)."""
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive integers")

        criteria = report_read_scope(principal)
        if isinstance(principal, (AdminPrincipal, DoctorPrincipal)) and status is not None:
            criteria.append(MedicalReport.status == status)
        if isinstance(principal, AdminPrincipal) and patient_identifier:
            criteria.append(MedicalReport.patient_identifier == patient_identifier)

        query = self._query().filter(*criteria)
        total = self.db.query(func.count(MedicalReport.id)).filter(*criteria).scalar()
        items = query.order_by(
            MedicalReport.created_at.desc(), MedicalReport.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return items, total, ceil(total / limit)

    def get_report(self, principal: Principal, report_id: int) -> MedicalReport:
        report = self._query().filter(
            MedicalReport.id == report_id, *report_read_scope(principal)
        ).first()
        if not report:
            raise NotFoundError("Medical report not found")
        return report

    def get_download(self, principal: Principal, report_id: int) -> Tuple[MedicalReport, Path]:
        """Report and the path of its stored file."""
        report = self.get_report(principal, report_id)
        if not self.storage.exists(report.file_url):
            logger.warning(f"File for report {report.report_code} missing from storage")
            raise NotFoundError("File not found")
        return report, self.storage.path_for(report.file_url)

    def review_report(self, principal: Principal, report_id: int, data: ReportApproval) -> MedicalReport:
        """Approve or reject a report as its assigned doctor."""
        report = self._get_report(report_id)
        doctor = authorize_report_review(principal, report)

        report.status = ReportStatus.APPROVED if data.approved else ReportStatus.REJECTED
        report.approved_by_doctor = data.approved
        report.approved_at = datetime.utcnow()
        report.approved_by_id = doctor.id
        if data.comments:
            report.comments = data.comments

        self.db.commit()
        logger.info(f"Medical report {report.report_code} {report.status.value} by {doctor.doctor_code}")
        return self._get_report(report_id)

    def update_report(self, principal: Principal, report_id: int, data: ReportUpdate) -> MedicalReport:
        report = self._get_report(report_id)
        authorize_report_update(principal, report)

        if data.comments is not None:
            report.comments = data.comments
        if data.status is not None:
            report.status = data.status

        self.db.commit()
        logger.info(f"Medical report {report.report_code} updated by {principal.role.value}")
        return self._get_report(report_id)

    def delete_report(self, principal: Principal, report_id: int) -> None:
        """Delete the stored file, then the record."""
        authorize_report_delete(principal)
        report = self._get_report(report_id)
        report_code = report.report_code

        if self.storage.delete(report.file_url):
            logger.info(f"Deleted file for report {report_code}")

        self.db.delete(report)
        self.db.commit()
        logger.info(f"Medical report {report_code} deleted")

    def pending_for_doctor(self, principal: Principal) -> List[MedicalReport]:
        doctor = require_doctor(principal)
        return self._query().filter(
            MedicalReport.doctor_id == doctor.id,
            MedicalReport.status == ReportStatus.PENDING
        ).order_by(MedicalReport.created_at.desc(), MedicalReport.id.desc()).all()

    def search_patient(self, patient_identifier: str) -> Patient:
        patient = self._find_patient(patient_identifier)
        if not patient:
            raise NotFoundError("Patient not found with the provided ID")
        return patient

    def stats(self, principal: Principal) -> ReportStats:
        criteria = report_stats_scope(principal)
        rows = self.db.query(
            MedicalReport.status, func.count(MedicalReport.id)
        ).filter(*criteria).group_by(MedicalReport.status).all()

        counts = {status.value: count for status, count in rows}
        return ReportStats(total=sum(counts.values()), **counts)
