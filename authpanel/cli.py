"""Authgate CLI - sign in, register and reset passwords from a terminal.

Usage:
    authgate login                      # Prompted email/password, stores the token
    authgate register                   # Create an account
    authgate forgot-password            # Email reset instructions
    authgate reset-password             # Set a new password from the emailed token
    authgate dashboard                  # Show the signed-in user
    authgate logout                     # Forget the stored token
    authgate ping                       # Check the service is reachable
"""

import logging
import sys
from urllib.parse import parse_qs, urlsplit

import click

from authpanel.api import DEFAULT_API_URL, UNREACHABLE_MESSAGE, ApiError, AuthApiClient
from authpanel.dashboard import Dashboard
from authpanel.form import AuthPanel, Mode, SubmitOutcome
from authpanel.session import FileSessionStore
from authpanel.validation import validate_new_password

FIELD_LABELS = {
    "name": "Full name",
    "email": "Email",
    "password": "Password",
    "confirmPassword": "Confirm password",
    "resetEmail": "Email",
    "token": "Reset token",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _report_failure(panel: AuthPanel, outcome: SubmitOutcome, api_url: str) -> None:
    """Print field errors or the auth error and exit non-zero."""
    if outcome is SubmitOutcome.INVALID:
        for name, message in panel.state.errors.items():
            click.secho(f"{FIELD_LABELS.get(name, name)}: {message}", fg="red", err=True)
    elif outcome is SubmitOutcome.FAILED:
        click.secho(panel.state.auth_error, fg="red", err=True)
        if panel.state.auth_error == UNREACHABLE_MESSAGE:
            click.echo(f"Make sure your backend server is running at {api_url}.", err=True)
    sys.exit(1)


def _print_dashboard(ctx: click.Context) -> bool:
    """Print the signed-in user's profile; False if it could not be shown."""
    view = Dashboard(ctx.obj["api"], ctx.obj["session"]).load()
    if not view.authenticated:
        if view.error:
            click.secho(view.error, fg="red", err=True)
        click.secho("Not signed in. Run `authgate login` first.", fg="yellow", err=True)
        return False
    if view.user is None:
        click.secho(view.error, fg="red", err=True)
        return False

    user = view.user
    click.secho(f"Welcome, {user.name}", bold=True)
    click.echo(f"  Full name:      {user.name}")
    click.echo(f"  Email address:  {user.email}")
    click.echo(f"  Member since:   {user.member_since}")
    click.echo("  Account status: " + click.style("Active", fg="green"))
    return True


def _show_signed_in(ctx: click.Context) -> None:
    """Show the dashboard after a successful sign-in; a failure here is only a warning."""
    if not _print_dashboard(ctx):
        click.secho("Signed in, but your profile could not be loaded. Run `authgate dashboard` to retry.",
                    fg="yellow", err=True)


def _reset_token_from(value: str) -> str:
    """Accept either the bare token or the whole emailed link."""
    value = value.strip()
    if "token=" in value:
        return parse_qs(urlsplit(value).query).get("token", [value])[0]
    return value


def _panel(ctx: click.Context) -> AuthPanel:
    return AuthPanel(ctx.obj["api"], ctx.obj["session"])


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="authgate")
@click.option("--api-url", envvar="AUTHGATE_API_URL", default=DEFAULT_API_URL, show_default=True,
              help="Base URL of the auth service")
@click.option("--session-file", envvar="AUTHGATE_SESSION_FILE", type=click.Path(dir_okay=False),
              help="Where the session token is kept (default ~/.authgate/session.json)")
@click.option("--verbose", "-v", is_flag=True, help="Log requests and responses")
@click.pass_context
def main(ctx: click.Context, api_url: str, session_file: str | None, verbose: bool):
    """Authgate - sign in to the auth service from the terminal."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url
    if "api" not in ctx.obj:
        api = AuthApiClient(base_url=api_url)
        ctx.obj["api"] = api
        ctx.call_on_close(api.close)
    if "session" not in ctx.obj:
        ctx.obj["session"] = FileSessionStore(session_file)
    ctx.obj["session"].load()


@main.command()
@click.option("--email", prompt="Email address")
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
def login(ctx: click.Context, email: str, password: str):
    """Sign in and store the session token."""
    panel = _panel(ctx)
    panel.fill(email=email, password=password)
    outcome = panel.submit()
    if outcome is not SubmitOutcome.AUTHENTICATED:
        _report_failure(panel, outcome, ctx.obj["api_url"])
    _show_signed_in(ctx)


@main.command()
@click.option("--name", prompt="Full name")
@click.option("--email", prompt="Email address")
@click.option("--password", prompt=True, hide_input=True)
@click.option("--confirm-password", prompt="Confirm password", hide_input=True)
@click.pass_context
def register(ctx: click.Context, name: str, email: str, password: str, confirm_password: str):
    """Create an account and sign in."""
    panel = _panel(ctx)
    panel.switch_tab(Mode.SIGNUP)
    panel.fill(name=name, email=email, password=password, confirmPassword=confirm_password)
    outcome = panel.submit()
    if outcome is not SubmitOutcome.AUTHENTICATED:
        _report_failure(panel, outcome, ctx.obj["api_url"])
    _show_signed_in(ctx)


@main.command("forgot-password")
@click.option("--email", prompt="Email address")
@click.pass_context
def forgot_password(ctx: click.Context, email: str):
    """Email password reset instructions."""
    panel = _panel(ctx)
    panel.show_forgot_password()
    panel.set_field("resetEmail", email)
    outcome = panel.submit()
    if outcome is not SubmitOutcome.RESET_SENT:
        _report_failure(panel, outcome, ctx.obj["api_url"])
    click.secho("Email sent! Check your inbox for password reset instructions.", fg="green")


@main.command("reset-password")
@click.option("--token", prompt="Reset token (or the link from the email)")
@click.option("--password", prompt="New password", hide_input=True)
@click.option("--confirm-password", prompt="Confirm password", hide_input=True)
@click.pass_context
def reset_password(ctx: click.Context, token: str, password: str, confirm_password: str):
    """Set a new password with the emailed reset token and sign in."""
    token = _reset_token_from(token)
    errors = validate_new_password({"token": token, "password": password, "confirmPassword": confirm_password})
    if errors:
        for name, message in errors.items():
            click.secho(f"{FIELD_LABELS.get(name, name)}: {message}", fg="red", err=True)
        sys.exit(1)

    try:
        session_token = ctx.obj["api"].reset_password(token, password)
    except ApiError as e:
        click.secho(e.message, fg="red", err=True)
        if e.message == UNREACHABLE_MESSAGE:
            click.echo(f"Make sure your backend server is running at {ctx.obj['api_url']}.", err=True)
        sys.exit(1)

    ctx.obj["session"].set_token(session_token)
    click.secho("Password updated.", fg="green")
    _show_signed_in(ctx)


@main.command()
@click.pass_context
def dashboard(ctx: click.Context):
    """Show the signed-in user's profile."""
    if not _print_dashboard(ctx):
        sys.exit(1)


@main.command()
@click.pass_context
def logout(ctx: click.Context):
    """Forget the stored session token."""
    Dashboard(ctx.obj["api"], ctx.obj["session"]).logout()
    click.echo("Signed out.")


@main.command()
@click.pass_context
def ping(ctx: click.Context):
    """Check that the auth service answers."""
    try:
        message = ctx.obj["api"].ping()
    except ApiError as e:
        click.secho(e.message, fg="red", err=True)
        sys.exit(1)
    click.secho(message, fg="green")
