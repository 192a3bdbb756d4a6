"""Authentication service."""

import enum
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import bcrypt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.user import User
from app.services.email import EmailDeliveryError, EmailService

logger = logging.getLogger("authgate")

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
MIN_PASSWORD_LENGTH = 6


class ErrorKind(str, enum.Enum):
    """Failure category, mapped to an HTTP status by the routers."""

    VALIDATION = "validation"
    AUTH = "auth"
    SERVER = "server"


@dataclass
class AuthResult:
    """Result of an authentication operation."""

    success: bool
    error: str | None = None
    error_kind: ErrorKind | None = None
    user_id: int | None = None
    email: str | None = None
    name: str | None = None

    @classmethod
    def failure(cls, kind: ErrorKind, error: str) -> "AuthResult":
        return cls(success=False, error=error, error_kind=kind)

    @classmethod
    def for_user(cls, user: User) -> "AuthResult":
        return cls(success=True, user_id=user.id, email=user.email, name=user.name)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    """Basic shape check: something@something.something, no whitespace."""
    return EMAIL_PATTERN.fullmatch(email.strip()) is not None


def hash_password(password: str) -> str:
    # bcrypt only considers the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        return False


class AuthService:
    """Handles registration, login and the password reset flow."""

    def _find_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    def register(self, db: Session, name: str, email: str, password: str) -> AuthResult:
        """Register a new user. Returns AuthResult with success/error."""
        if not name.strip():
            return AuthResult.failure(ErrorKind.VALIDATION, "Name is required")
        if not is_valid_email(email):
            return AuthResult.failure(ErrorKind.VALIDATION, "Please provide a valid email")
        if len(password) < MIN_PASSWORD_LENGTH:
            return AuthResult.failure(
                ErrorKind.VALIDATION, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        if self._find_by_email(db, email):
            return AuthResult.failure(ErrorKind.VALIDATION, "User already exists")

        user = User(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=hash_password(password),
        )
        try:
            db.add(user)
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same address
            db.rollback()
            return AuthResult.failure(ErrorKind.VALIDATION, "User already exists")
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to persist new user %s", user.email)
            return AuthResult.failure(ErrorKind.SERVER, "Server error")
        db.refresh(user)

        logger.info("Registered user %s", user.id)
        return AuthResult.for_user(user)

    def authenticate(self, db: Session, email: str, password: str) -> AuthResult:
        """Authenticate a user by email and password."""
        if not email.strip() or not password:
            return AuthResult.failure(ErrorKind.VALIDATION, "Email and password are required")
        if not is_valid_email(email):
            return AuthResult.failure(ErrorKind.VALIDATION, "Please provide a valid email")

        user = self._find_by_email(db, email)
        if not user or not verify_password(password, user.password_hash):
            return AuthResult.failure(ErrorKind.AUTH, "Invalid credentials")

        return AuthResult.for_user(user)

    def request_password_reset(self, db: Session, email: str, email_service: EmailService) -> AuthResult:
        """Email reset instructions to any well-formed address.

        Registered users get a link with a fresh single-use token; unknown
        addresses get a notice instead, so the response never reveals whether
        an account exists.
        """
        if not is_valid_email(email):
            return AuthResult.failure(ErrorKind.VALIDATION, "Please provide a valid email")

        settings = get_settings()
        user = self._find_by_email(db, email)
        if not user:
            try:
                email_service.send_unknown_account_notice(normalize_email(email))
            except EmailDeliveryError:
                return AuthResult.failure(ErrorKind.SERVER, "Email could not be sent")
            return AuthResult(success=True)

        token = secrets.token_urlsafe(32)
        user.password_reset_token = token
        user.password_reset_expires_at = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to store reset token for user %s", user.id)
            return AuthResult.failure(ErrorKind.SERVER, "Server error")

        reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}"
        try:
            email_service.send_password_reset(user.email, reset_url, settings.PASSWORD_RESET_EXPIRE_MINUTES)
        except EmailDeliveryError:
            user.password_reset_token = None
            user.password_reset_expires_at = None
            db.commit()
            return AuthResult.failure(ErrorKind.SERVER, "Email could not be sent")

        return AuthResult.for_user(user)

    def reset_password(self, db: Session, token: str, new_password: str) -> AuthResult:
        """Reset a user's password using a valid reset token."""
        user = db.query(User).filter(User.password_reset_token == token).first() if token else None
        if not user:
            return AuthResult.failure(ErrorKind.VALIDATION, "Invalid or expired reset link")

        if not user.password_reset_expires_at or user.password_reset_expires_at < datetime.utcnow():
            user.password_reset_token = None
            user.password_reset_expires_at = None
            db.commit()
            return AuthResult.failure(ErrorKind.VALIDATION, "Reset link has expired. Please request a new one.")

        if len(new_password) < MIN_PASSWORD_LENGTH:
            return AuthResult.failure(
                ErrorKind.VALIDATION, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        user.password_hash = hash_password(new_password)
        user.password_reset_token = None
        user.password_reset_expires_at = None
        db.commit()

        return AuthResult.for_user(user)

    def get_user(self, db: Session, user_id: int) -> User | None:
        return db.get(User, user_id)


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
