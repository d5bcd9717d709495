from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    employee_id = Column(String(20), unique=True, index=True, nullable=False)
    department = Column(String(100), default="Administration")

    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="admin")

    @property
    def full_name(self):
        return self.user.full_name if self.user else None

    def __repr__(self):
        return f"<Admin(id={self.id}, employee_id='{self.employee_id}')>"
