"""Tests for API resources."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from cleura import CleuraClient
from cleura.exceptions import AuthenticationError
from cleura.models.cluster import ClusterRef

REF = ClusterRef(domain="public", name="demo", region="sto2", project="proj-1")
SHOOT = "/gardener/v1/public/shoot/sto2/proj-1/demo"


class TestShoots:
    """Test the shoots resource."""

    def test_generate_kubeconfig(self, client: CleuraClient, mock_api: respx.MockRouter) -> None:
        """The kubeconfig is returned as text for the requested duration."""
        route = mock_api.post(f"{SHOOT}/kubeconfig").mock(
            return_value=httpx.Response(200, text="apiVersion: v1\nkind: Config\n")
        )

        config = client.shoots.generate_kubeconfig(REF, duration=7200)

        assert config.startswith("apiVersion: v1")
        assert json.loads(route.calls.last.request.content) == {"duration": 7200}

    def test_get_tolerates_null_lists(
        self, client: CleuraClient, mock_api: respx.MockRouter
    ) -> None:
        """Null worker and condition lists are read as empty."""
        mock_api.get(SHOOT).mock(
            return_value=httpx.Response(
                200,
                json={
                    "metadata": {"name": "demo", "uid": "u"},
                    "spec": {"provider": {"workers": None}},
                    "status": {"conditions": None},
                },
            )
        )

        shoot = client.shoots.get(REF)

        assert shoot.spec.provider.workers == []
        assert shoot.status.conditions == []


class TestTokens:
    """Test the tokens resource."""

    def test_issue(self, client: CleuraClient, mock_api: respx.MockRouter) -> None:
        """Issuing posts the credentials and returns the token."""
        route = mock_api.post("/auth/v1/tokens").mock(
            return_value=httpx.Response(200, json={"result": "login_ok", "token": "new-token"})
        )

        token = client.tokens.issue("ops@example.com", "pw")

        assert token == "new-token"
        assert json.loads(route.calls.last.request.content) == {
            "auth": {"login": "ops@example.com", "password": "pw"}
        }

    def test_validate(self, client: CleuraClient, mock_api: respx.MockRouter) -> None:
        """An accepted token validates."""
        mock_api.post("/auth/v1/tokens/validate").mock(
            return_value=httpx.Response(200, json={"result": "ok"})
        )

        assert client.tokens.validate() is True

    def test_validate_rejected(self, client: CleuraClient, mock_api: respx.MockRouter) -> None:
        """A rejected token raises AuthenticationError."""
        mock_api.post("/auth/v1/tokens/validate").mock(
            return_value=httpx.Response(401, json={"message": "invalid token"})
        )

        with pytest.raises(AuthenticationError):
            client.tokens.validate()

    def test_revoke(self, client: CleuraClient, mock_api: respx.MockRouter) -> None:
        """Revoking deletes the current token."""
        route = mock_api.delete("/auth/v1/tokens").mock(return_value=httpx.Response(200))

        client.tokens.revoke()

        assert route.called
