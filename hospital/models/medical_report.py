from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base
from ..core.security import UserRole

class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"

class MedicalReport(Base):
    __tablename__ = "medical_reports"

    id = Column(Integer, primary_key=True, index=True)

    # Sequential identifier, e.g. REP0012
    report_code = Column(String(20), unique=True, index=True, nullable=False)

    # Patient, with display data copied at upload time
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    patient_name = Column(String(200), nullable=False)
    patient_identifier = Column(String(20), nullable=False, index=True)

    # Approving doctor, assigned from the patient's latest appointment
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=True, index=True)
    doctor_name = Column(String(200), nullable=True)

    # Uploading admin
    admin_id = Column(Integer, ForeignKey("admins.id"), nullable=True)
    admin_name = Column(String(200), nullable=True)

    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    # File metadata, fixed at upload
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(512), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String(100), nullable=False)

    comments = Column(Text, nullable=False, default="")
    status = Column(SQLEnum(ReportStatus), nullable=False, default=ReportStatus.PENDING, index=True)
    uploaded_by = Column(SQLEnum(UserRole), nullable=False)

    # Doctor sign-off
    approved_by_doctor = Column(Boolean, nullable=False, default=False)
    approved_at = Column(DateTime, nullable=True)
    approved_by_id = Column(Integer, ForeignKey("doctors.id"), nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient")
    doctor = relationship("Doctor", foreign_keys=[doctor_id])
    admin = relationship("Admin")
    appointment = relationship("Appointment")
    approved_by = relationship("Doctor", foreign_keys=[approved_by_id])

    def __repr__(self):
        return f"<MedicalReport(id={self.id}, code='{self.report_code}', status='{self.status}')>"
