"""Authentication helpers for CLI commands."""

from typing import Any, Optional

from .credentials import Credentials
from .exceptions import EXIT_AUTH_REQUIRED
from .output import OutputFormatter


def get_token(ctx: Any) -> Optional[str]:
    """Token for API calls: ``SHAI_TOKEN`` first, then stored credentials."""
    config = ctx.obj["config"]
    credentials: Credentials = ctx.obj["credentials"]
    return config.token or credentials.token


def require_auth(ctx: Any) -> None:
    """Exit with the authentication exit code unless a session is usable.

    Args:
        ctx: Click context holding ``config``, ``credentials`` and ``out``
    """
    out: OutputFormatter = ctx.obj["out"]
    credentials: Credentials = ctx.obj["credentials"]

    if ctx.obj["config"].token:
        return

    if credentials.token and credentials.expired:
        out.error("Session expired. Run `shai login` to authenticate.")
        ctx.exit(EXIT_AUTH_REQUIRED)

    if not credentials.authenticated:
        out.error("Not logged in. Run `shai login` to authenticate.")
        ctx.exit(EXIT_AUTH_REQUIRED)
