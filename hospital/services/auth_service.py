from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional, Tuple
import logging

from ..models.admin import Admin
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User
from ..core.errors import ValidationError
from ..core.security import (
    AuthenticationError, AuthorizationError, UserRole,
    create_user_token, get_password_hash, verify_password
)
from ..schemas.auth import UserLogin, UserRegister, TokenResponse, UserResponse
from .sequence import ADMIN_SEQUENCE, DOCTOR_SEQUENCE, PATIENT_SEQUENCE, next_identifier

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserRegister, caller: Optional[User] = None) -> Tuple[User, str]:
        """Register a new user together with its role profile.

        Anyone may sign up as a patient. Doctor and admin accounts are
        created by an authenticated admin. Returns the user and the public
        code of its profile.
        """
        if user_data.role != UserRole.PATIENT and (caller is None or caller.role != UserRole.ADMIN):
            raise AuthorizationError("Only administrators can register doctors and admins")

        # Check if user already exists
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()
        if existing_user:
            raise ValidationError("User already exists with this email")

        if user_data.role == UserRole.DOCTOR:
            if not (user_data.specialization and user_data.license_number and user_data.department):
                raise ValidationError(
                    "Specialization, license number and department are required for doctors"
                )
            if self.db.query(Doctor).filter(Doctor.license_number == user_data.license_number).first():
                raise ValidationError("License number already registered")

        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            full_name=user_data.full_name.strip(),
            phone_number=user_data.phone_number,
            role=user_data.role,
            is_active=True
        )
        self.db.add(new_user)

        try:
            self.db.flush()
            profile_code = self._create_profile(new_user, user_data)
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            self.db.rollback()
            raise ValidationError("Account conflicts with an existing registration")

        self.db.refresh(new_user)
        logger.info(f"Registered {new_user.role.value} {profile_code} ({new_user.email})")
        return new_user, profile_code

    def _create_profile(self, user: User, user_data: UserRegister) -> str:
        if user_data.role == UserRole.PATIENT:
            profile = Patient(
                user_id=user.id,
                patient_code=next_identifier(self.db, PATIENT_SEQUENCE),
                date_of_birth=user_data.date_of_birth,
                gender=user_data.gender,
                address=user_data.address,
                blood_group=user_data.blood_group,
                allergies=user_data.allergies,
                medical_history=user_data.medical_history
            )
            code = profile.patient_code
        elif user_data.role == UserRole.DOCTOR:
            profile = Doctor(
                user_id=user.id,
                doctor_code=next_identifier(self.db, DOCTOR_SEQUENCE),
                specialization=user_data.specialization.strip(),
                license_number=user_data.license_number.strip(),
                department=user_data.department.strip(),
                years_of_experience=user_data.years_of_experience
            )
            code = profile.doctor_code
        else:
            profile = Admin(
                user_id=user.id,
                employee_id=next_identifier(self.db, ADMIN_SEQUENCE),
                department=user_data.department or "Administration"
            )
            code = profile.employee_id

        self.db.add(profile)
        self.db.flush()
        return code

    def issue_token(self, user: User) -> TokenResponse:
        token = create_user_token(user.id, user.email, user.role)
        return TokenResponse(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
            user=UserResponse.model_validate(user)
        )

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return an access token."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user or not verify_password(login_data.password, user.password_hash):
            logger.info(f"Failed login for {login_data.email}")
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        user.last_login = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)

        return self.issue_token(user)
