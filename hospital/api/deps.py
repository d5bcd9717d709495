from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from ..core.database import get_db, get_redis
from ..core.config import settings
from ..core.errors import NotFoundError
from ..core.permissions import (
    AdminPrincipal, DoctorPrincipal, PatientPrincipal, Principal
)
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload
)
from ..models.admin import Admin
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User

async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    # Check if token is access token
    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub or not token_payload.sub.isdigit():
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == int(token_payload.sub)).first()
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user

async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Current user when a bearer token is sent, otherwise None."""
    if credentials is None:
        return None
    token_payload = await get_current_user_token(credentials)
    return await get_current_user(token_payload, db)

async def get_principal(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Principal:
    """Resolve the current user to its role-specific profile."""
    if current_user.role == UserRole.PATIENT:
        patient = db.query(Patient).filter(Patient.user_id == current_user.id).first()
        if not patient:
            raise NotFoundError("Patient not found")
        return PatientPrincipal(user=current_user, patient=patient)

    if current_user.role == UserRole.DOCTOR:
        doctor = db.query(Doctor).filter(Doctor.user_id == current_user.id).first()
        if not doctor:
            raise NotFoundError("Doctor profile not found")
        return DoctorPrincipal(user=current_user, doctor=doctor)

    admin = db.query(Admin).filter(Admin.user_id == current_user.id).first()
    return AdminPrincipal(user=current_user, admin=admin)

# Role-based access control dependencies
def require_role(*allowed_roles: UserRole):
    """Create a dependency that requires one of the given roles."""
    async def role_checker(
        principal: Principal = Depends(get_principal)
    ) -> Principal:
        if principal.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return principal

    return role_checker

get_patient = require_role(UserRole.PATIENT)
get_doctor = require_role(UserRole.DOCTOR)
get_admin = require_role(UserRole.ADMIN)
get_staff = require_role(UserRole.ADMIN, UserRole.DOCTOR)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)  # 1 hour window
    else:
        if int(current_requests) >= settings.LOGIN_RATE_LIMIT:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
