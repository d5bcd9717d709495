from sqlalchemy.orm import Session, joinedload
from typing import List, Optional

from ..models.doctor import Doctor
from ..models.user import User

class DoctorService:
    """Read-only doctor directory used to pick a doctor before booking."""

    def __init__(self, db: Session):
        self.db = db

    def list_doctors(self, specialization: Optional[str] = None) -> List[Doctor]:
        """Active doctors, optionally matching part of a specialization (any case)."""
        query = self.db.query(Doctor).join(Doctor.user).options(
            joinedload(Doctor.user)
        ).filter(User.is_active.is_(True))

        if specialization:
            term = specialization.strip()
            query = query.filter(Doctor.specialization.ilike(f"%{term}%"))

        return query.order_by(Doctor.doctor_code.asc()).all()

    def specializations(self) -> List[str]:
        """Distinct non-empty specializations, alphabetically."""
        rows = self.db.query(Doctor.specialization).distinct().all()
        return sorted({value.strip() for (value,) in rows if value and value.strip()})
