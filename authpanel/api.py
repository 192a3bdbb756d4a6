"""HTTP client for the Authgate auth service."""

import enum
import logging
from typing import Any

import httpx

logger = logging.getLogger("authgate.panel")

DEFAULT_API_URL = "http://localhost:5000"
REQUEST_TIMEOUT = 10.0

UNREACHABLE_MESSAGE = "Unable to connect to the server. Please make sure the backend is running."
TIMEOUT_MESSAGE = "Request timed out. Please try again."
SERVER_FALLBACK_MESSAGE = "Server error occurred."
NO_RESPONSE_MESSAGE = "No response from server. Please check your network connection."
GENERIC_MESSAGE = "An error occurred while processing your request."


class ErrorKind(str, enum.Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    VALIDATION = "validation"
    AUTH = "auth"
    SERVER = "server"
    UNKNOWN = "unknown"


class ApiError(Exception):
    """A failed call, carrying the message to show the user."""

    def __init__(self, kind: ErrorKind, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code


def _kind_for_status(status_code: int) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.AUTH
    if status_code in (400, 422):
        return ErrorKind.VALIDATION
    return ErrorKind.SERVER


def error_from_response(response: httpx.Response) -> ApiError:
    """Prefer the server's own ``msg``; fall back to a generic server error."""
    msg = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("msg"), str) and body["msg"]:
        msg = body["msg"]
    return ApiError(_kind_for_status(response.status_code), msg or SERVER_FALLBACK_MESSAGE, response.status_code)


def error_from_exception(exc: Exception) -> ApiError:
    """Classify a transport failure: unreachable, then timeout, then no response."""
    if isinstance(exc, httpx.ConnectError):
        return ApiError(ErrorKind.NETWORK, UNREACHABLE_MESSAGE)
    if isinstance(exc, httpx.TimeoutException):
        return ApiError(ErrorKind.TIMEOUT, TIMEOUT_MESSAGE)
    if isinstance(exc, httpx.TransportError):
        return ApiError(ErrorKind.NETWORK, NO_RESPONSE_MESSAGE)
    return ApiError(ErrorKind.UNKNOWN, GENERIC_MESSAGE)


class AuthApiClient:
    """Thin JSON client over ``httpx.Client`` with user-facing error messages.

    A pre-built ``client`` (for example FastAPI's ``TestClient``) can be
    injected; it is then owned by the caller and not closed here.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def __enter__(self) -> "AuthApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _request(self, method: str, path: str, json: dict | None = None, token: str | None = None) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        logger.debug("API request: %s %s", method, path)
        try:
            response = self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.debug("API error: %s %s: %r", method, path, e)
            raise error_from_exception(e) from e

        logger.debug("API response: %s %s -> %d", method, path, response.status_code)
        if not response.is_success:
            raise error_from_response(response)
        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(ErrorKind.UNKNOWN, GENERIC_MESSAGE, response.status_code) from e
        return data if isinstance(data, dict) else {}

    def register(self, name: str, email: str, password: str) -> str:
        """Create an account; returns the issued token."""
        data = self._request("POST", "/api/auth/register", {"name": name, "email": email, "password": password})
        return self._token_from(data)

    def login(self, email: str, password: str) -> str:
        """Returns the issued token."""
        data = self._request("POST", "/api/auth/login", {"email": email, "password": password})
        return self._token_from(data)

    def forgot_password(self, email: str) -> dict[str, Any]:
        return self._request("POST", "/api/auth/forgot-password", {"email": email})

    def reset_password(self, token: str, password: str) -> str:
        data = self._request("POST", "/api/auth/reset-password", {"token": token, "password": password})
        return self._token_from(data)

    def me(self, token: str) -> dict[str, Any]:
        """Profile of the token's owner."""
        return self._request("GET", "/api/auth/me", token=token)

    def ping(self) -> str:
        return str(self._request("GET", "/api/test").get("message", ""))

    @staticmethod
    def _token_from(data: dict[str, Any]) -> str:
        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise ApiError(ErrorKind.SERVER, SERVER_FALLBACK_MESSAGE)
        return token
