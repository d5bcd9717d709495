from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.permissions import Principal
from ...api.deps import get_doctor, get_principal
from ...schemas.common import success_response
from ...schemas.prescription import (
    PrescriptionCreate, PrescriptionResponse, PrescriptionUpdate
)
from ...services.prescription_service import PrescriptionService

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_prescription(
    data: PrescriptionCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_doctor)
):
    """Prescribe a medicine to a patient."""
    prescription = PrescriptionService(db).create_prescription(principal, data)
    return success_response(
        message="Prescription created successfully",
        prescription=PrescriptionResponse.from_record(prescription)
    )

@router.get("/patient/{patient_id}")
async def get_prescriptions_by_patient(
    patient_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    """A patient's prescriptions, newest first."""
    prescriptions = PrescriptionService(db).list_for_patient(principal, patient_id)
    return success_response(
        prescriptions=[PrescriptionResponse.from_record(p) for p in prescriptions]
    )

@router.get("/doctor")
async def get_prescriptions_by_doctor(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_doctor)
):
    prescriptions = PrescriptionService(db).list_for_doctor(principal)
    return success_response(
        prescriptions=[PrescriptionResponse.from_record(p) for p in prescriptions]
    )

@router.put("/{prescription_id}")
async def update_prescription(
    prescription_id: int,
    data: PrescriptionUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal)
):
    prescription = PrescriptionService(db).update_prescription(principal, prescription_id, data)
    return success_response(
        message="Prescription updated successfully",
        prescription=PrescriptionResponse.from_record(prescription)
    )
