"""Token resource for the Cleura SDK."""

from __future__ import annotations

from typing import Any

from cleura.auth import TOKENS_PATH
from cleura.resources._base import SyncResource


class Tokens(SyncResource):
    """Issue, validate and revoke API tokens."""

    def issue(self, username: str, password: str) -> str:
        """Request a new token for the given credentials.

        Args:
            username: Cleura account login.
            password: Cleura account password.

        Returns:
            The issued token.
        """
        data: dict[str, Any] = self._http.post(
            TOKENS_PATH,
            json={"auth": {"login": username, "password": password}},
        )
        return str(data.get("token", "")) if data else ""

    def validate(self) -> bool:
        """Check the token the client authenticates with.

        Returns:
            True if the API accepts it.

        Raises:
            AuthenticationError: If the token is rejected.
        """
        self._http.post(f"{TOKENS_PATH}/validate")
        return True

    def revoke(self) -> None:
        """Revoke the token the client authenticates with."""
        self._http.delete(TOKENS_PATH)
