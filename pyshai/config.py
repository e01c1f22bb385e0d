"""Client configuration.

The configuration is built once per process (normally from environment
variables) and handed explicitly to the API client and the sync engine.
It is validated at construction and immutable afterwards.
"""

import ipaddress
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlparse

from .exceptions import ShaiConfigError

DEFAULT_API_URL = "https://shai.dev"

LOOPBACK_HOSTS = {"localhost"}


def default_config_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the platform default directory for shai state files."""
    environ = os.environ if environ is None else environ
    if sys.platform == "win32":
        return Path(environ.get("APPDATA", str(Path.home()))) / "shai"
    return Path.home() / ".config" / "shai"


def is_loopback_host(host: str) -> bool:
    """Check whether a hostname refers to the local machine.

    Args:
        host: Hostname or IP literal (IPv6 without brackets)

    Returns:
        True for ``localhost`` and loopback IP addresses
    """
    if host.lower() in LOOPBACK_HOSTS:
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


@dataclass(frozen=True)
class Config:
    """Settings shared by the client, credential store and sync engine."""

    api_url: str = DEFAULT_API_URL
    """Base URL of the shai service (no trailing slash)"""

    config_dir: Path = Path.home() / ".config" / "shai"
    """Directory holding the credentials file"""

    token: Optional[str] = None
    """Explicit API token, takes precedence over stored credentials"""

    color: bool = True
    """Whether colored output is enabled"""

    def __post_init__(self) -> None:
        api_url = self.api_url.rstrip("/")
        parsed = urlparse(api_url)

        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ShaiConfigError(f"Invalid API URL: {self.api_url!r}")

        if parsed.scheme == "http" and not is_loopback_host(parsed.hostname):
            raise ShaiConfigError(
                f"Refusing insecure API URL {self.api_url!r}: "
                "https is required except for localhost"
            )

        # frozen dataclass: normalized values must go through object.__setattr__
        object.__setattr__(self, "api_url", api_url)
        object.__setattr__(self, "config_dir", Path(self.config_dir))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build configuration from ``SHAI_*`` environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Validated Config instance

        Raises:
            ShaiConfigError: If the API URL is invalid or insecure
        """
        environ = os.environ if environ is None else environ
        config_dir = environ.get("SHAI_CONFIG_DIR")
        return cls(
            api_url=environ.get("SHAI_API_URL", DEFAULT_API_URL),
            config_dir=Path(config_dir) if config_dir else default_config_dir(environ),
            token=environ.get("SHAI_TOKEN") or None,
            color="NO_COLOR" not in environ,
        )

    @property
    def credentials_path(self) -> Path:
        """Path of the stored session credentials."""
        return self.config_dir / "credentials"

    def web_url(self, owner: Optional[str], slug: str) -> str:
        """Browser URL of a configuration."""
        if owner:
            return f"{self.api_url}/{owner}/{slug}"
        return f"{self.api_url}/{slug}"
