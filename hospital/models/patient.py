from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Public identifier, e.g. PAT007
    patient_code = Column(String(20), unique=True, index=True, nullable=False)

    # Personal information
    date_of_birth = Column(DateTime, nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(String(255), nullable=True)

    # Medical information
    blood_group = Column(String(10), nullable=True)
    allergies = Column(String(255), nullable=True)
    medical_history = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient")

    @property
    def full_name(self):
        return self.user.full_name if self.user else None

    def __repr__(self):
        return f"<Patient(id={self.id}, code='{self.patient_code}')>"
