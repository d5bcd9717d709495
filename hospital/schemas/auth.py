from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from .common import CamelModel
from ..core.security import UserRole

class UserLogin(BaseModel):
    email: str
    password: str

class UserRegister(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=200)
    phone_number: Optional[str] = None
    role: UserRole = UserRole.PATIENT

    # Patient profile
    date_of_birth: Optional[datetime] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    blood_group: Optional[str] = None
    allergies: Optional[str] = None
    medical_history: Optional[str] = None

    # Doctor profile
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    department: Optional[str] = None
    years_of_experience: Optional[int] = Field(default=None, ge=0)

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    phone_number: Optional[str] = None
    role: UserRole
    is_active: bool
    last_login: Optional[datetime] = None

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
