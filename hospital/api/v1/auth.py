from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...api.deps import get_current_user, get_optional_user, rate_limit_check
from ...services.auth_service import AuthService
from ...schemas.auth import UserLogin, UserRegister, UserResponse
from ...schemas.common import success_response
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    caller: Optional[User] = Depends(get_optional_user),
    _: None = Depends(rate_limit_check)
):
    """Register a new user with its patient, doctor or admin profile."""
    auth_service = AuthService(db)
    user, profile_id = auth_service.register_user(user_data, caller)
    return success_response(
        message="Registration successful",
        token=auth_service.issue_token(user),
        profileId=profile_id
    )

@router.post("/login")
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return an access token."""
    auth_service = AuthService(db)
    return success_response(token=auth_service.authenticate_user(login_data))

@router.get("/me")
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return success_response(user=UserResponse.model_validate(current_user))
