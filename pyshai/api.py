"""API client for the shai configuration service."""

from __future__ import annotations

import logging
import socket
from typing import Any, Literal
from urllib.parse import quote

import httpx

from .config import Config
from .exceptions import (
    ShaiAPIError,
    ShaiAuthenticationError,
    ShaiInvalidInputError,
    ShaiInvalidResponseError,
    ShaiNetworkError,
    ShaiNotFoundError,
    ShaiPermissionError,
)
from .sync.tree import Tree

logger = logging.getLogger(__name__)

Visibility = Literal["private", "public"]

API_PREFIX = "/api/v1"


class ShaiClient:
    """Client for interacting with the shai API.

    Requests are sent once: there is no retry or backoff. Transport
    failures surface immediately as ``ShaiNetworkError``.
    """

    def __init__(
        self,
        config: Config,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize shai API client.

        Args:
            config: Client configuration (API URL, default token)
            token: Stored session token, used when ``config.token`` (from
                ``SHAI_TOKEN``) is not set
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.api_url = config.api_url
        self.token = config.token or token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.Client(
                base_url=self.api_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> ShaiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        """Extract the ``error`` field of a JSON error body."""
        try:
            data = response.json()
        except ValueError:
            return fallback
        if isinstance(data, dict):
            message = data.get("error") or data.get("message")
            if isinstance(message, str) and message:
                return message
        return fallback

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map HTTP error statuses to shai exceptions.

        Raises:
            ShaiAuthenticationError: 401
            ShaiPermissionError: 403
            ShaiNotFoundError: 404
            ShaiInvalidInputError: 422
            ShaiAPIError: Any other non-2xx status
        """
        status_code = response.status_code
        if 200 <= status_code < 300:
            return

        if status_code == 401:
            raise ShaiAuthenticationError(
                self._error_message(response, "Authentication failed")
            )
        elif status_code == 403:
            raise ShaiPermissionError(self._error_message(response, "Permission denied"))
        elif status_code == 404:
            raise ShaiNotFoundError(self._error_message(response, "Not found"))
        elif status_code == 422:
            raise ShaiInvalidInputError(
                self._error_message(response, "Invalid request")
            )
        raise ShaiAPIError(
            self._error_message(
                response, f"Request failed with status {status_code}"
            )
        )

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request.

        Args:
            method: HTTP method
            endpoint: API endpoint path below ``/api/v1``
            **kwargs: Additional arguments passed to httpx

        Returns:
            Decoded JSON body ({} for empty responses)

        Raises:
            ShaiAPIError: If the request fails
        """
        url = f"{API_PREFIX}/{endpoint.lstrip('/')}"
        logger.debug(f"{method} {self.api_url}{url}")

        try:
            response = self._get_client().request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.debug(f"{method} {url} failed: {e}")
            raise ShaiNetworkError(
                f"Could not connect to {self.api_url}. "
                "Check your internet connection."
            ) from e

        logger.debug(f"{method} {url} -> {response.status_code}")
        self._raise_for_status(response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ShaiInvalidResponseError(
                "Invalid JSON response from server"
            ) from e

    @staticmethod
    def encode_identifier(identifier: str) -> str:
        """URL-encode a configuration identifier (``owner/slug`` included)."""
        return quote(identifier, safe="")

    # =========================
    # Authentication Operations
    # =========================

    def login(
        self,
        identifier: str,
        password: str,
        client_name: str | None = None,
    ) -> Any:
        """Create a CLI session.

        Args:
            identifier: Email or username
            password: User password
            client_name: Name of this client (defaults to ``CLI (<hostname>)``)

        Returns:
            Response with a ``data`` key holding ``token``, ``expires_at``
            and ``user``
        """
        data = {
            "identifier": identifier,
            "password": password,
            "client_name": client_name or self.default_client_name(),
        }
        return self._request("POST", "/cli/session", json=data)

    @staticmethod
    def default_client_name() -> str:
        try:
            hostname = socket.gethostname()
        except OSError:
            hostname = "Unknown"
        return f"CLI ({hostname})"

    # =========================
    # Configuration Operations
    # =========================

    def list_configurations(self) -> Any:
        """List the configurations of the logged-in user."""
        return self._request("GET", "/configurations")

    def search_configurations(
        self, query: str | None = None, tags: list[str] | None = None
    ) -> Any:
        """Search public configurations by text and/or tags."""
        params: list[tuple[str, str]] = []
        if query:
            params.append(("q", query))
        for tag in tags or []:
            params.append(("tags[]", tag))
        return self._request("GET", "/configurations/search", params=params)

    def get_configuration(self, identifier: str) -> Any:
        return self._request(
            "GET", f"/configurations/{self.encode_identifier(identifier)}"
        )

    def create_configuration(
        self,
        name: str,
        description: str | None = None,
        visibility: Visibility = "private",
    ) -> Any:
        """Create a new, empty configuration.

        Returns:
            Response with the created ``configuration`` (including its slug)
        """
        data = {
            "configuration": {
                "name": name,
                "description": description,
                "visibility": visibility,
            }
        }
        return self._request("POST", "/configurations", json=data)

    def update_configuration(self, identifier: str, **attributes: Any) -> Any:
        """Update configuration metadata (name, description, visibility)."""
        return self._request(
            "PUT",
            f"/configurations/{self.encode_identifier(identifier)}",
            json={"configuration": attributes},
        )

    def delete_configuration(self, identifier: str) -> Any:
        return self._request(
            "DELETE", f"/configurations/{self.encode_identifier(identifier)}"
        )

    # =========================
    # Tree Operations
    # =========================

    def get_tree(self, identifier: str) -> Tree:
        """Fetch the file tree of a configuration.

        Args:
            identifier: ``slug`` or ``owner/slug``

        Returns:
            Remote tree in service order
        """
        response = self._request(
            "GET", f"/configurations/{self.encode_identifier(identifier)}/tree"
        )
        return Tree.from_api(response)

    def update_tree(self, identifier: str, tree: Tree) -> Any:
        """Replace the whole remote tree of a configuration.

        Remote files missing from ``tree`` are dropped by the service.
        """
        return self._request(
            "PUT",
            f"/configurations/{self.encode_identifier(identifier)}/tree",
            json={"tree": tree.to_api()},
        )
