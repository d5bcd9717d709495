from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...schemas.common import success_response
from ...schemas.doctor import DoctorProfile
from ...services.doctor_service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("")
async def get_all_doctors(db: Session = Depends(get_db)):
    """Public doctor directory."""
    doctors = DoctorService(db).list_doctors()
    return success_response(doctors=[DoctorProfile.from_record(d) for d in doctors])

@router.get("/specialization/{specialization}")
async def get_doctors_by_specialization(
    specialization: str,
    db: Session = Depends(get_db)
):
    """Doctors whose specialization contains the given text."""
    doctors = DoctorService(db).list_doctors(specialization)
    return success_response(doctors=[DoctorProfile.from_record(d) for d in doctors])

@router.get("/specializations/all")
async def get_specializations(db: Session = Depends(get_db)):
    return success_response(specializations=DoctorService(db).specializations())
