"""Client-side form validation, run before any request is sent."""

import re

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
MIN_PASSWORD_LENGTH = 6


def validate_email(value: str) -> str | None:
    if not value.strip():
        return "Email is required"
    if not EMAIL_PATTERN.search(value):
        return "Email is invalid"
    return None


def validate_password(value: str) -> str | None:
    if not value:
        return "Password is required"
    if len(value) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def validate_login(fields: dict[str, str]) -> dict[str, str]:
    """Return a field-keyed map of problems with a login form."""
    errors: dict[str, str] = {}
    if error := validate_email(fields.get("email", "")):
        errors["email"] = error
    if error := validate_password(fields.get("password", "")):
        errors["password"] = error
    return errors


def validate_signup(fields: dict[str, str]) -> dict[str, str]:
    """Login rules plus a required name and a matching confirmation."""
    errors: dict[str, str] = {}
    if not fields.get("name", "").strip():
        errors["name"] = "Name is required"
    if fields.get("password", "") != fields.get("confirmPassword", ""):
        errors["confirmPassword"] = "Passwords do not match"
    errors.update(validate_login(fields))
    return errors


def validate_reset(fields: dict[str, str]) -> dict[str, str]:
    """Only the reset email is checked in forgot-password mode."""
    if error := validate_email(fields.get("resetEmail", "")):
        return {"resetEmail": error}
    return {}


def validate_new_password(fields: dict[str, str]) -> dict[str, str]:
    """Checks for completing a reset from the emailed token."""
    errors: dict[str, str] = {}
    if not fields.get("token", "").strip():
        errors["token"] = "Reset token is required"
    if error := validate_password(fields.get("password", "")):
        errors["password"] = error
    if fields.get("password", "") != fields.get("confirmPassword", ""):
        errors["confirmPassword"] = "Passwords do not match"
    return errors
