from sqlalchemy.orm import Session, joinedload
from typing import List
import logging

from ..core.errors import NotFoundError
from ..core.permissions import (
    Principal, authorize_prescription_read, authorize_prescription_update, require_doctor
)
from ..models.patient import Patient
from ..models.prescription import Prescription, PrescriptionStatus
from ..schemas.prescription import PrescriptionCreate, PrescriptionUpdate

logger = logging.getLogger(__name__)

class PrescriptionService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Prescription).options(
            joinedload(Prescription.patient),
            joinedload(Prescription.doctor),
        )

    def _newest_first(self, query):
        return query.order_by(Prescription.created_at.desc(), Prescription.id.desc())

    def _find_patient(self, patient_code: str) -> Patient:
        patient = self.db.query(Patient).filter(
            Patient.patient_code == patient_code.strip()
        ).first()
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def create_prescription(self, principal: Principal, data: PrescriptionCreate) -> Prescription:
        """Write a prescription for a patient as the calling doctor."""
        doctor = require_doctor(principal)
        patient = self._find_patient(data.patient_id)

        prescription = Prescription(
            patient_id=patient.id,
            doctor_id=doctor.id,
            patient_name=patient.full_name or "",
            doctor_name=doctor.full_name or "",
            medicine=data.medicine.strip(),
            time=data.time,
            food=data.food,
            dosage=(data.dosage or "").strip(),
            instructions=(data.instructions or "").strip(),
            status=PrescriptionStatus.ACTIVE
        )
        self.db.add(prescription)
        self.db.commit()

        logger.info(
            f"Prescription {prescription.id} written by doctor {doctor.doctor_code} "
            f"for patient {patient.patient_code}"
        )
        return self._query().filter(Prescription.id == prescription.id).first()

    def list_for_patient(self, principal: Principal, patient_code: str) -> List[Prescription]:
        patient = self._find_patient(patient_code)
        authorize_prescription_read(principal, patient)
        return self._newest_first(
            self._query().filter(Prescription.patient_id == patient.id)
        ).all()

    def list_for_doctor(self, principal: Principal) -> List[Prescription]:
        doctor = require_doctor(principal)
        return self._newest_first(
            self._query().filter(Prescription.doctor_id == doctor.id)
        ).all()

    def update_prescription(
        self, principal: Principal, prescription_id: int, data: PrescriptionUpdate
    ) -> Prescription:
        """Apply the fields present in ``data``; only the prescribing doctor may edit."""
        prescription = self._query().filter(Prescription.id == prescription_id).first()
        if not prescription:
            raise NotFoundError("Prescription not found")

        authorize_prescription_update(principal, prescription)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        for field in ("medicine", "dosage", "instructions"):
            if field in changes:
                changes[field] = changes[field].strip()
        for field, value in changes.items():
            setattr(prescription, field, value)

        self.db.commit()
        self.db.refresh(prescription)
        logger.info(f"Prescription {prescription_id} updated: {sorted(changes)}")
        return prescription
