from typing import Optional

from .common import CamelModel
from ..models.doctor import Doctor

class DoctorProfile(CamelModel):
    id: int
    doctor_id: str
    name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    specialization: str
    department: str
    years_of_experience: Optional[int] = None

    @classmethod
    def from_record(cls, doctor: Doctor) -> "DoctorProfile":
        return cls(
            id=doctor.id,
            doctor_id=doctor.doctor_code,
            name=doctor.full_name or "Unknown Doctor",
            email=doctor.user.email if doctor.user else None,
            phone_number=doctor.user.phone_number if doctor.user else None,
            specialization=doctor.specialization,
            department=doctor.department,
            years_of_experience=doctor.years_of_experience,
        )
