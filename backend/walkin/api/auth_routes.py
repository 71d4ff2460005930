from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from walkin.api.deps import get_app_settings, get_current_user, get_request_id
from walkin.core.config import Settings
from walkin.core.db import User, get_db_session
from walkin.core.logger import get_logger
from walkin.core.security import create_access_token
from walkin.schemas.auth import (
    PasswordChangeRequest,
    ProfileUpdateRequest,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
    UserResponse,
)
from walkin.schemas.common import StatusResponse
from walkin.services import users

logger = get_logger("auth_routes")
router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_token(user: User, config: Settings, weak_password: bool = False) -> TokenResponse:
    token = create_access_token(user.uid, {"role": user.role}, secret_key=config.SECRET_KEY)
    return TokenResponse(
        access_token=token,
        expires_in=config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
        weak_password=weak_password,
    )


@router.post("/signup", response_model=TokenResponse, status_code=201)
async def sign_up(
    req: SignUpRequest,
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
    request_id: str = Depends(get_request_id),
) -> TokenResponse:
    """
    Create an employee account and sign it in

    - **email**: must be a valid, unused address
    - **password**: 8+ characters with a letter and a digit, not a common password
    - **name**: at least 2 characters
    """
    logger.info(f"[{request_id}] Signup request")
    user = users.sign_up(db, req.email, req.password, req.name, config)
    return _issue_token(user, config)


@router.post("/signin", response_model=TokenResponse)
async def sign_in(
    req: SignInRequest,
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
    request_id: str = Depends(get_request_id),
) -> TokenResponse:
    """
    Sign in with email and password

    ``weak_password`` is set when the password no longer meets the current
    rules so the client can prompt a change.
    """
    logger.info(f"[{request_id}] Signin request")
    result = users.sign_in(db, req.email, req.password)
    return _issue_token(result.user, config, weak_password=result.weak_password)


@router.post("/signout", response_model=StatusResponse)
async def sign_out(
    user: User = Depends(get_current_user),
    request_id: str = Depends(get_request_id),
) -> StatusResponse:
    """Tokens are stateless; the client discards its copy."""
    logger.info(f"[{request_id}] User signed out: {user.uid}")
    return StatusResponse(status="signed_out", id=user.uid)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> User:
    return user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    req: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
) -> User:
    return users.update_user_profile(db, user.uid, name=req.name, profile_image=req.profile_image)


@router.post("/password", response_model=StatusResponse)
async def change_password(
    req: PasswordChangeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    request_id: str = Depends(get_request_id),
) -> StatusResponse:
    logger.info(f"[{request_id}] Password change request: {user.uid}")
    users.change_password(
        db, user.uid, req.current_password, req.new_password, req.confirm_password
    )
    return StatusResponse(status="password_changed", id=user.uid)
