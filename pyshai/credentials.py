"""Persistent storage of the CLI session token."""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .utils import parse_iso_timestamp

logger = logging.getLogger(__name__)


class Credentials:
    """Session credentials stored as JSON in the config directory.

    The file holds ``token``, ``expires_at`` (ISO timestamp) and ``user``
    (the user object returned at login). It is written with mode 0600.
    """

    def __init__(self, path: Path):
        """Load credentials from disk if present.

        Args:
            path: Location of the credentials file
        """
        self.path = path
        self.token: Optional[str] = None
        self.expires_at: Optional[str] = None
        self.user: Optional[dict[str, Any]] = None
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Discarding unreadable credentials file {self.path}: {e}")
            self.clear()
            return

        if not isinstance(data, dict):
            logger.warning(f"Discarding malformed credentials file {self.path}")
            self.clear()
            return

        self.token = data.get("token")
        self.expires_at = data.get("expires_at")
        self.user = data.get("user")

    @property
    def expired(self) -> bool:
        """True when there is no expiry or it lies in the past."""
        expires = parse_iso_timestamp(self.expires_at, local=False)
        if expires is None:
            return True
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires < datetime.now(timezone.utc)

    @property
    def authenticated(self) -> bool:
        return bool(self.token) and not self.expired

    @property
    def username(self) -> Optional[str]:
        return (self.user or {}).get("username")

    @property
    def display_name(self) -> Optional[str]:
        return (self.user or {}).get("display_name")

    def save(self, token: str, expires_at: Optional[str], user: dict[str, Any]) -> None:
        """Store a new session.

        Args:
            token: Bearer token
            expires_at: ISO expiry timestamp
            user: User object as returned by the login endpoint
        """
        self.token = token
        self.expires_at = expires_at
        self.user = user

        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"token": token, "expires_at": expires_at, "user": user}
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        # the mode only applies on creation
        os.chmod(self.path, 0o600)
        logger.debug(f"Saved credentials to {self.path}")

    def clear(self) -> None:
        """Forget the session and delete the credentials file."""
        self.token = None
        self.expires_at = None
        self.user = None
        if self.path.exists():
            self.path.unlink()
            logger.debug(f"Removed credentials file {self.path}")
