"""Authentication dependencies for FastAPI routes."""

from dataclasses import dataclass

from fastapi import HTTPException, Request

from app.services.jwt import get_jwt_service


@dataclass
class CurrentUser:
    """Claims carried by a valid bearer token."""

    user_id: int
    email: str
    name: str


def get_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def get_current_user(request: Request) -> CurrentUser:
    """Extract and validate the user from the Bearer token. Raises 401 if invalid."""
    token = get_bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="No token, authorization denied")

    payload = get_jwt_service().decode_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Token is not valid")

    return CurrentUser(
        user_id=int(payload["sub"]),
        email=payload.get("email", ""),
        name=payload.get("name", ""),
    )
