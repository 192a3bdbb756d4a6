"""Auth panel form state machine.

The panel is always in exactly one mode::

    LOGIN <-> SIGNUP           (tab toggle)
    LOGIN -> FORGOT_PASSWORD   (forgot-password action)
    FORGOT_PASSWORD -> RESET_SUCCESS   (reset email accepted)
    FORGOT_PASSWORD | RESET_SUCCESS -> LOGIN   (back action)

Submissions are validated locally first; a form with errors never reaches
the network. Only one submission can be in flight at a time.
"""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from authpanel.api import ApiError, AuthApiClient
from authpanel.session import SessionStore
from authpanel.validation import validate_login, validate_reset, validate_signup

logger = logging.getLogger("authgate.panel")

FIELD_NAMES = ("name", "email", "password", "confirmPassword", "resetEmail")


class Mode(str, enum.Enum):
    LOGIN = "login"
    SIGNUP = "signup"
    FORGOT_PASSWORD = "forgot_password"
    RESET_SUCCESS = "reset_success"


class SubmitOutcome(str, enum.Enum):
    IGNORED = "ignored"  # a request was already in flight
    INVALID = "invalid"
    AUTHENTICATED = "authenticated"
    RESET_SENT = "reset_sent"
    FAILED = "failed"


@dataclass
class FormState:
    mode: Mode = Mode.LOGIN
    fields: dict[str, str] = field(default_factory=lambda: dict.fromkeys(FIELD_NAMES, ""))
    errors: dict[str, str] = field(default_factory=dict)
    is_loading: bool = False
    auth_error: str = ""

    @property
    def active_tab(self) -> str:
        """Tab highlighted in the header; the forgot-password flow sits on the login tab."""
        return "signup" if self.mode is Mode.SIGNUP else "login"

    @property
    def forgot_password_mode(self) -> bool:
        return self.mode is Mode.FORGOT_PASSWORD

    @property
    def reset_success(self) -> bool:
        return self.mode is Mode.RESET_SUCCESS


class AuthPanel:
    """Collects credentials, validates them and calls the auth service.

    ``on_authenticated`` is invoked with the token after a successful login
    or signup, once the token is stored; the caller uses it to move on to
    the dashboard.
    """

    def __init__(
        self,
        api: AuthApiClient,
        session: SessionStore,
        on_authenticated: Callable[[str], None] | None = None,
    ) -> None:
        self.api = api
        self.session = session
        self.on_authenticated = on_authenticated
        self.state = FormState()

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def can_submit(self) -> bool:
        return not self.state.is_loading and self.state.mode is not Mode.RESET_SUCCESS

    # --- input ---

    def set_field(self, name: str, value: str) -> None:
        """Update one field and drop any error reported for it."""
        if name not in self.state.fields:
            raise KeyError(name)
        self.state.fields[name] = value
        self.state.errors.pop(name, None)

    def fill(self, **values: str) -> None:
        for name, value in values.items():
            self.set_field(name, value)

    # --- transitions ---

    def switch_tab(self, tab: Mode) -> None:
        """Select the login or signup tab. Tabs are only shown on those two modes."""
        if tab not in (Mode.LOGIN, Mode.SIGNUP):
            raise ValueError(f"not a tab: {tab}")
        if self.state.mode in (Mode.LOGIN, Mode.SIGNUP):
            self.state.mode = tab

    def toggle_tab(self) -> None:
        self.switch_tab(Mode.SIGNUP if self.state.mode is Mode.LOGIN else Mode.LOGIN)

    def show_forgot_password(self) -> None:
        if self.state.mode is not Mode.LOGIN:
            return
        self._enter(Mode.FORGOT_PASSWORD)

    def back_to_login(self) -> None:
        if self.state.mode not in (Mode.FORGOT_PASSWORD, Mode.RESET_SUCCESS):
            return
        self._enter(Mode.LOGIN)

    def _enter(self, mode: Mode) -> None:
        self.state.mode = mode
        self.state.errors = {}
        self.state.auth_error = ""

    # --- submission ---

    def validate(self) -> bool:
        """Populate the error map for the current mode; True when the form is clean."""
        fields = self.state.fields
        if self.state.mode is Mode.FORGOT_PASSWORD:
            errors = validate_reset(fields)
        elif self.state.mode is Mode.SIGNUP:
            errors = validate_signup(fields)
        else:
            errors = validate_login(fields)
        self.state.errors = errors
        return not errors

    def submit(self) -> SubmitOutcome:
        """Validate and send one request for the current mode."""
        if not self.can_submit:
            return SubmitOutcome.IGNORED

        self.state.auth_error = ""
        if not self.validate():
            return SubmitOutcome.INVALID

        self.state.is_loading = True
        try:
            if self.state.mode is Mode.FORGOT_PASSWORD:
                return self._submit_reset()
            return self._submit_credentials()
        except ApiError as e:
            logger.info("%s failed: %s", self.state.mode.value, e.message)
            self.state.auth_error = e.message
            return SubmitOutcome.FAILED
        finally:
            self.state.is_loading = False

    def _submit_reset(self) -> SubmitOutcome:
        email = self.state.fields["resetEmail"]
        self.api.forgot_password(email)
        self.state.mode = Mode.RESET_SUCCESS
        logger.info("Password reset email requested for %s", email)
        return SubmitOutcome.RESET_SENT

    def _submit_credentials(self) -> SubmitOutcome:
        fields = self.state.fields
        if self.state.mode is Mode.LOGIN:
            token = self.api.login(fields["email"], fields["password"])
        else:
            token = self.api.register(fields["name"], fields["email"], fields["password"])

        self.session.set_token(token)
        logger.info("%s successful", self.state.mode.value)
        if self.on_authenticated:
            self.on_authenticated(token)
        return SubmitOutcome.AUTHENTICATED
