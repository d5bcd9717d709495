from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.errors import ValidationError
from ...core.permissions import Principal
from ...api.deps import get_doctor, get_principal, get_staff
from ...models.medical_report import ReportStatus
from ...schemas.common import success_response
from ...schemas.medical_report import (
    MedicalReportResponse, Pagination, PatientLookup, ReportApproval,
    ReportPage, ReportSummary, ReportUpdate
)
from ...services.medical_report_service import MedicalReportService, ReportUpload
from ...services.storage import ReportStorage, get_report_storage

router = APIRouter(prefix="/medical-reports", tags=["Medical Reports"])

def get_report_service(
    db: Session = Depends(get_db),
    storage: ReportStorage = Depends(get_report_storage)
) -> MedicalReportService:
    return MedicalReportService(db, storage)

def _parse_status(value: Optional[str]) -> Optional[ReportStatus]:
    if not value:
        return None
    try:
        return ReportStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid report status: {value}")

@router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_medical_report(
    file: Optional[UploadFile] = File(None),
    patient_identifier: Optional[str] = Form(None, alias="patientIdentifier"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    comments: Optional[str] = Form(None),
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_staff)
):
    """Upload a report file for a patient."""
    upload = ReportUpload(
        file=file.file if file else None,
        filename=file.filename if file else None,
        content_type=file.content_type if file else None,
        patient_identifier=patient_identifier,
        title=title,
        description=description,
        comments=comments,
    )
    report = service.upload_report(principal, upload)

    if report.doctor_id:
        message = "Medical report uploaded successfully and sent to doctor for approval"
    else:
        message = "Medical report uploaded successfully and approved (no doctor assignment needed)"

    return success_response(message=message, medicalReport=ReportSummary.from_record(report))

@router.get("")
async def get_medical_reports(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1),
    limit: int = Query(10),
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_principal)
):
    """Role-scoped, paginated report listing."""
    reports, total, pages = service.list_reports(
        principal,
        patient_identifier=patient_id,
        status=_parse_status(status_filter),
        page=page,
        limit=limit
    )
    result = ReportPage(
        medical_reports=[MedicalReportResponse.from_record(r) for r in reports],
        pagination=Pagination(current=page, pages=pages, total=total, limit=limit)
    )
    return success_response(**result.model_dump(by_alias=True))

@router.get("/doctor/pending")
async def get_pending_reports_for_doctor(
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_doctor)
):
    """Reports waiting for the calling doctor's decision."""
    reports = service.pending_for_doctor(principal)
    return success_response(
        pendingReports=[MedicalReportResponse.from_record(r) for r in reports]
    )

@router.get("/patient/search/{patient_id}")
async def search_patient_by_id(
    patient_id: str,
    service: MedicalReportService = Depends(get_report_service),
    _: Principal = Depends(get_staff)
):
    """Look up a patient by public identifier before uploading."""
    patient = service.search_patient(patient_id)
    return success_response(patient=PatientLookup(
        id=patient.id,
        patient_id=patient.patient_code,
        full_name=patient.full_name,
        email=patient.user.email if patient.user else None,
        phone_number=patient.user.phone_number if patient.user else None,
    ))

@router.get("/stats/overview")
async def get_medical_report_stats(
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_staff)
):
    """Report counts by status."""
    return success_response(stats=service.stats(principal))

@router.get("/{report_id}")
async def get_medical_report(
    report_id: int,
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_principal)
):
    report = service.get_report(principal, report_id)
    return success_response(medicalReport=MedicalReportResponse.from_record(report))

@router.put("/{report_id}")
async def update_medical_report(
    report_id: int,
    data: ReportUpdate,
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_principal)
):
    """Update comments and/or status."""
    report = service.update_report(principal, report_id, data)
    return success_response(
        message="Medical report updated successfully",
        medicalReport=MedicalReportResponse.from_record(report)
    )

@router.put("/{report_id}/approve")
async def approve_medical_report(
    report_id: int,
    data: ReportApproval,
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_principal)
):
    """Approve or reject a report as its assigned doctor."""
    report = service.review_report(principal, report_id, data)
    outcome = "approved" if data.approved else "rejected"
    return success_response(
        message=f"Medical report {outcome} successfully",
        medicalReport=MedicalReportResponse.from_record(report)
    )

@router.delete("/{report_id}")
async def delete_medical_report(
    report_id: int,
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_principal)
):
    service.delete_report(principal, report_id)
    return success_response(message="Medical report deleted successfully")

@router.get("/{report_id}/download")
async def download_medical_report(
    report_id: int,
    service: MedicalReportService = Depends(get_report_service),
    principal: Principal = Depends(get_principal)
):
    """Stream the stored file as an attachment."""
    report, path = service.get_download(principal, report_id)
    return FileResponse(
        path,
        media_type=report.file_type,
        filename=report.file_name,
    )
