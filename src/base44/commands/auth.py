"""Auth commands -- log in, log out and inspect the current user.

Typical workflow::

    base44 auth login              # browser login, token saved locally
    base44 auth whoami             # show the current user
    base44 auth status             # exit 0 if the saved token is valid, 3 otherwise
    base44 auth logout             # forget the saved token

A browser login starts a one-shot listener on ``127.0.0.1``, opens the hosted
login page with ``from_url`` pointing at that listener and, once the page
redirects back with ``?access_token=...``, hands the redirect URL to the
client's token store, which saves the token and strips it from the URL.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from base44.auth.callback import RedirectCapture
from base44.commands import run_with_client
from base44.environment import DesktopEnvironment
from base44.exceptions import AuthRequiredError
from base44.exit_codes import EXIT_AUTH_FAILURE
from base44.factory import Base44Client
from base44.models import NavigationResult
from base44.output import error, get_output, info, success, suggest

auth_app = typer.Typer(no_args_is_help=True)


def _describe_user(user: Any) -> str:
    if isinstance(user, dict):
        return str(user.get("email") or user.get("full_name") or user.get("id") or "unknown user")
    return "unknown user"


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(
        None, "--token", "-t", help="Save this access token instead of opening a browser."
    ),
    timeout: float = typer.Option(
        120.0, "--timeout", help="Seconds to wait for the browser login to complete."
    ),
) -> None:
    """Log in and save the access token for later commands.

    Example::

        base44 --app-id 64f1c0 auth login
        base44 auth login --token eyJhbGciOi...
    """
    environment = DesktopEnvironment()

    if token:

        async def _verify(client: Base44Client) -> Any:
            client.set_token(token, save_to_storage=False)
            user = await client.auth.me()
            client.set_token(token)
            return user

        user = run_with_client(ctx, _verify, environment)
        success(f"Logged in as {_describe_user(user)}.")
        return

    with RedirectCapture(timeout=timeout) as capture:

        async def _start(client: Base44Client) -> NavigationResult:
            return client.auth.login(capture.callback_url)

        navigation = run_with_client(ctx, _start, environment)
        info("Opening the login page in your browser. If it does not open, visit:")
        info(f"  {navigation.url}")
        try:
            redirect_url = capture.wait()
        except AuthRequiredError as exc:
            error(str(exc))
            raise typer.Exit(code=exc.exit_code) from None

    # The new client captures the token from the redirect URL, saves it and
    # strips it from the location.
    environment.replace_url(redirect_url)
    user = run_with_client(ctx, lambda c: c.auth.me(), environment)
    success(f"Logged in as {_describe_user(user)}.")


@auth_app.command("logout")
def auth_logout(ctx: typer.Context) -> None:
    """Forget the saved access token."""

    async def _logout(client: Base44Client) -> None:
        client.auth.remove_token()

    run_with_client(ctx, _logout)
    success("Logged out.")


@auth_app.command("whoami")
def auth_whoami(ctx: typer.Context) -> None:
    """Show the authenticated user."""
    user = run_with_client(ctx, lambda c: c.auth.me())
    get_output().format_response(user)


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Check whether the saved token is accepted by the backend."""
    authenticated = run_with_client(ctx, lambda c: c.auth.is_authenticated())
    if authenticated:
        success("Authenticated.")
        return
    info("Not authenticated.")
    suggest("Log in: base44 auth login")
    raise typer.Exit(code=EXIT_AUTH_FAILURE)
