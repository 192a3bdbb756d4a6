"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.rate_limit import limiter
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
)
from app.services.auth import AuthResult, ErrorKind, get_auth_service
from app.services.email import EmailService, get_email_service
from app.services.jwt import get_jwt_service

logger = logging.getLogger("authgate")

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH: 401,
    ErrorKind.SERVER: 500,
}


def _raise_for_result(result: AuthResult) -> None:
    if not result.success:
        status_code = STATUS_BY_KIND.get(result.error_kind, 400)  # type: ignore[arg-type]
        raise HTTPException(status_code=status_code, detail=result.error)


def _issue_token(result: AuthResult) -> TokenResponse:
    token = get_jwt_service().create_token(
        user_id=result.user_id,  # type: ignore[arg-type]
        email=result.email,  # type: ignore[arg-type]
        name=result.name,  # type: ignore[arg-type]
    )
    return TokenResponse(token=token)


@router.get("/test")
def auth_test() -> dict:
    """Liveness probe for the auth routes."""
    return {"message": "Auth routes are working"}


@router.post("/register", response_model=TokenResponse)
@limiter.limit("5/minute")
def register(request: Request, body: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Register a new user account and receive a session token."""
    result = get_auth_service().register(db, body.name, body.email, body.password)
    _raise_for_result(result)
    return _issue_token(result)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Authenticate and receive a session token."""
    result = get_auth_service().authenticate(db, body.email, body.password)
    _raise_for_result(result)
    return _issue_token(result)


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("3/minute")
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> MessageResponse:
    """Email password reset instructions."""
    result = get_auth_service().request_password_reset(db, body.email, email_service)
    _raise_for_result(result)
    return MessageResponse(msg="Email sent")


@router.post("/reset-password", response_model=TokenResponse)
@limiter.limit("5/minute")
def reset_password(request: Request, body: ResetPasswordRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """Set a new password using a reset token. Returns a session token for auto-login."""
    result = get_auth_service().reset_password(db, body.token, body.password)
    _raise_for_result(result)
    return _issue_token(result)


@router.get("/me", response_model=UserResponse)
def me(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> UserResponse:
    """Return the profile of the token's owner."""
    account = get_auth_service().get_user(db, user.user_id)
    if not account:
        raise HTTPException(status_code=401, detail="Token is not valid")
    return UserResponse(id=account.id, name=account.name, email=account.email, created_at=account.created_at)
