"""Exceptions raised by the shai client and sync engine."""

from typing import Optional

EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_AUTH_REQUIRED = 2
EXIT_PERMISSION_DENIED = 3
EXIT_NOT_FOUND = 4
EXIT_NETWORK_ERROR = 5
EXIT_INVALID_INPUT = 6
EXIT_SECURITY_VIOLATION = 7


class ShaiError(Exception):
    """Base class for all shai errors.

    Every subclass carries the process exit code the CLI uses when the
    error terminates a command.
    """

    exit_code: int = EXIT_GENERAL_ERROR


class ShaiAPIError(ShaiError):
    """The remote service rejected a request or returned an error."""


class ShaiAuthenticationError(ShaiAPIError):
    """Session is missing, invalid or expired."""

    exit_code = EXIT_AUTH_REQUIRED


class ShaiPermissionError(ShaiAPIError):
    """Authenticated, but not allowed to access the configuration."""

    exit_code = EXIT_PERMISSION_DENIED


class ShaiNotFoundError(ShaiAPIError):
    """The configuration does not exist remotely."""

    exit_code = EXIT_NOT_FOUND


class ShaiNetworkError(ShaiAPIError):
    """The service could not be reached."""

    exit_code = EXIT_NETWORK_ERROR


class ShaiInvalidResponseError(ShaiAPIError):
    """The service returned a body that could not be understood."""


class ShaiInvalidInputError(ShaiError):
    """Bad user input: malformed manifest, bad arguments, empty push."""

    exit_code = EXIT_INVALID_INPUT


class ShaiConfigError(ShaiInvalidInputError):
    """Client configuration is invalid (e.g. insecure API URL)."""


class ManifestNotFoundError(ShaiInvalidInputError):
    """No manifest file in the working directory."""


class ConfigurationAlreadyInstalledError(ShaiInvalidInputError):
    """The target directory is already bound to a configuration."""

    def __init__(self, message: str, existing_slug: Optional[str] = None):
        super().__init__(message)
        self.existing_slug = existing_slug


class ShaiSecurityError(ShaiError):
    """A remote tree contains a path that would escape the target directory."""

    exit_code = EXIT_SECURITY_VIOLATION

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
