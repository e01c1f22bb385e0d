"""shai - Manage AI agent configurations from the command line."""

from .api import ShaiClient
from .config import Config
from .exceptions import (
    ConfigurationAlreadyInstalledError,
    ManifestNotFoundError,
    ShaiAPIError,
    ShaiAuthenticationError,
    ShaiConfigError,
    ShaiError,
    ShaiInvalidInputError,
    ShaiInvalidResponseError,
    ShaiNetworkError,
    ShaiNotFoundError,
    ShaiPermissionError,
    ShaiSecurityError,
)
from .utils import parse_configuration_name

__version__ = "0.1.0"

__all__ = [
    "ShaiClient",
    "Config",
    "ShaiError",
    "ShaiAPIError",
    "ShaiAuthenticationError",
    "ShaiConfigError",
    "ShaiInvalidInputError",
    "ShaiInvalidResponseError",
    "ShaiNetworkError",
    "ShaiNotFoundError",
    "ShaiPermissionError",
    "ShaiSecurityError",
    "ManifestNotFoundError",
    "ConfigurationAlreadyInstalledError",
    "parse_configuration_name",
]
