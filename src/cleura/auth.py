"""Authentication providers for the Cleura SDK.

The Cleura REST API authenticates every request with two headers,
``X-AUTH-LOGIN`` (the account username) and ``X-AUTH-TOKEN``. A token is
either issued up front (``TokenAuth``) or requested on demand from
username/password credentials (``PasswordAuth``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

TOKENS_PATH = "/auth/v1/tokens"


class AuthProvider(ABC):
    """Base authentication provider interface."""

    @abstractmethod
    def get_headers(self) -> dict[str, str]:
        """Return authentication headers for requests."""
        ...

    @abstractmethod
    def needs_refresh(self) -> bool:
        """Check if credentials must be (re)acquired before the next request."""
        ...

    @abstractmethod
    def refresh(self, client: httpx.Client) -> None:
        """Acquire fresh credentials.

        Args:
            client: HTTP client to use for the token request.
        """
        ...

    @property
    @abstractmethod
    def is_authenticated(self) -> bool:
        """True if usable credentials are present."""
        ...


@dataclass
class TokenAuth(AuthProvider):
    """Pre-issued token authentication.

    Example:
        ```python
        auth = TokenAuth(username="ops@example.com", token="...")
        client = CleuraClient(auth=auth)
        ```
    """

    username: str
    token: str = field(repr=False)

    def get_headers(self) -> dict[str, str]:
        return {"X-AUTH-LOGIN": self.username, "X-AUTH-TOKEN": self.token}

    def needs_refresh(self) -> bool:
        """Issued tokens cannot be refreshed by the client.

        Returns:
            Always False.
        """
        return False

    def refresh(self, client: Any) -> None:
        """Nothing to refresh; an expired token surfaces as a 401."""
        pass

    @property
    def is_authenticated(self) -> bool:
        return bool(self.username and self.token)


@dataclass
class PasswordAuth(AuthProvider):
    """Username/password authentication.

    A token is requested on the first request and requested again when the
    API rejects the current one.

    Attributes:
        username: Cleura account login.
        password: Cleura account password.
    """

    username: str
    password: str = field(repr=False)
    _token: str | None = field(default=None, repr=False)

    def get_headers(self) -> dict[str, str]:
        if self._token:
            return {"X-AUTH-LOGIN": self.username, "X-AUTH-TOKEN": self._token}
        return {}

    def needs_refresh(self) -> bool:
        return self._token is None

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    @property
    def token(self) -> str | None:
        return self._token

    def login(self, client: Any, base_url: str | None = None) -> dict[str, Any]:
        """Request a new token.

        Args:
            client: HTTP client to use for the login request.
            base_url: Optional base URL (for a standalone httpx.Client).

        Returns:
            Token response data.

        Raises:
            httpx.HTTPStatusError: If the credentials are rejected.
        """
        url = TOKENS_PATH
        if base_url:
            url = f"{base_url.rstrip('/')}{url}"

        response = client.post(
            url,
            json={"auth": {"login": self.username, "password": self.password}},
        )
        response.raise_for_status()
        data = response.json()

        self._token = data.get("token")
        return data

    def refresh(self, client: Any, base_url: str | None = None) -> None:
        self._token = None
        self.login(client, base_url)
