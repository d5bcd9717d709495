from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Public identifier, e.g. DR003
    doctor_code = Column(String(20), unique=True, index=True, nullable=False)

    # Professional information
    specialization = Column(String(100), nullable=False)
    license_number = Column(String(50), nullable=False, unique=True)
    department = Column(String(100), nullable=False)
    years_of_experience = Column(Integer, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor")
    appointments = relationship("Appointment", back_populates="doctor")

    @property
    def full_name(self):
        return self.user.full_name if self.user else None

    def __repr__(self):
        return f"<Doctor(id={self.id}, code='{self.doctor_code}', specialization='{self.specialization}')>"
