from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class DoseTime(str, enum.Enum):
    FN = "FN"
    AN = "AN"
    NIGHT = "night"
    MORNING = "morning"
    EVENING = "evening"

class FoodTiming(str, enum.Enum):
    BEFORE_FOOD = "before_food"
    AFTER_FOOD = "after_food"

class PrescriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)

    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Display names copied when the prescription is written
    patient_name = Column(String(200), nullable=False)
    doctor_name = Column(String(200), nullable=False)

    medicine = Column(String(255), nullable=False)
    time = Column(SQLEnum(DoseTime), nullable=False)
    food = Column(SQLEnum(FoodTiming), nullable=False)
    dosage = Column(String(100), nullable=False, default="")
    instructions = Column(Text, nullable=False, default="")
    status = Column(SQLEnum(PrescriptionStatus), nullable=False, default=PrescriptionStatus.ACTIVE)

    date_prescribed = Column(DateTime, server_default=func.now())
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient")
    doctor = relationship("Doctor")

    def __repr__(self):
        return f"<Prescription(id={self.id}, medicine='{self.medicine}', status='{self.status}')>"
