"""Dashboard view for the signed-in user."""

import logging
from dataclasses import dataclass
from datetime import datetime

from authpanel.api import ApiError, AuthApiClient, ErrorKind
from authpanel.session import SessionStore

logger = logging.getLogger("authgate.panel")


@dataclass
class UserProfile:
    id: int
    name: str
    email: str
    created_at: datetime | None

    @classmethod
    def from_api(cls, data: dict) -> "UserProfile":
        created = data.get("createdAt")
        try:
            created_at = datetime.fromisoformat(created) if isinstance(created, str) else None
        except ValueError:
            created_at = None
        return cls(id=int(data["id"]), name=data.get("name", ""), email=data.get("email", ""), created_at=created_at)

    @property
    def member_since(self) -> str:
        return self.created_at.strftime("%Y-%m-%d") if self.created_at else "unknown"


@dataclass
class DashboardView:
    """Outcome of loading the dashboard; ``user`` is None when signed out or on error."""

    authenticated: bool
    user: UserProfile | None = None
    error: str = ""


class Dashboard:
    """Loads the profile behind the stored token; no token means back to the panel."""

    def __init__(self, api: AuthApiClient, session: SessionStore) -> None:
        self.api = api
        self.session = session

    def load(self) -> DashboardView:
        token = self.session.get_token()
        if not token:
            return DashboardView(authenticated=False)

        try:
            data = self.api.me(token)
        except ApiError as e:
            if e.kind is ErrorKind.AUTH:
                logger.info("Stored token rejected, signing out")
                self.session.clear()
                return DashboardView(authenticated=False, error=e.message)
            return DashboardView(authenticated=True, error=e.message)

        try:
            user = UserProfile.from_api(data)
        except (KeyError, TypeError, ValueError):
            return DashboardView(authenticated=True, error="Server error occurred.")
        return DashboardView(authenticated=True, user=user)

    def logout(self) -> None:
        self.session.clear()
