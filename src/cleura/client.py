"""Cleura SDK Client.

Main entry point for interacting with the Cleura REST API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cleura._config import CleuraConfig
from cleura._http import HttpClient
from cleura.auth import AuthProvider, PasswordAuth, TokenAuth
from cleura.exceptions import AuthenticationError
from cleura.mapper import (
    build_create_request,
    build_update_request,
    build_worker_group_request,
    observed_from_create_response,
    observed_from_response,
)
from cleura.resources.cloud_profiles import CloudProfiles
from cleura.resources.shoots import Shoots
from cleura.resources.tokens import Tokens

if TYPE_CHECKING:
    from cleura.models.cloud_profile import CloudProfile
    from cleura.models.cluster import (
        ClusterObserved,
        ClusterRef,
        ClusterSpec,
        ClusterUpdate,
        WorkerGroupSpec,
    )
    from cleura.reconcile.orchestrator import ShootReconciler


class CleuraClient:
    """Client for the Cleura REST API.

    Supports two authentication methods:
    - Token: a token issued beforehand, sent as is
    - Username/password: a token is requested on first use and renewed
      once when the API rejects it

    Example:
        ```python
        from cleura import CleuraClient, ClusterRef

        # Using a pre-issued token
        client = CleuraClient(username="ops@example.com", token="...")

        # Using credentials
        client = CleuraClient(username="ops@example.com", password="secret")

        shoot = client.fetch_cluster(ClusterRef.parse("public,demo,sto2,0123abcd"))
        print(shoot.kubernetes_version)
        ```

    Environment variables:
        CLEURA_API_HOST: API host (default: https://rest.cleura.cloud)
        CLEURA_API_USERNAME: Account login
        CLEURA_API_TOKEN: Pre-issued token
        CLEURA_API_PASSWORD: Password, used when no token is set
        CLEURA_TIMEOUT: Request timeout in seconds (default: 10)
        CLEURA_MAX_RETRIES: Max retries for read requests (default: 3)

    Auth priority (highest to lowest):
        1. Explicit `auth` parameter
        2. Explicit username with token or password
        3. Environment variables and config file
    """

    def __init__(
        self,
        username: str | None = None,
        *,
        token: str | None = None,
        password: str | None = None,
        auth: AuthProvider | None = None,
        host: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        verify_ssl: bool | None = None,
        config: CleuraConfig | None = None,
    ) -> None:
        """Initialize the Cleura client.

        Args:
            username: Account login.
            token: Pre-issued API token.
            password: Account password, used to request a token.
            auth: Explicit AuthProvider instance to use.
            host: API host. Falls back to CLEURA_API_HOST.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of retries for read requests.
            verify_ssl: Whether to verify SSL certificates.
            config: Configuration to use instead of loading it.
        """
        self.config = config or CleuraConfig.load()

        self._host = host or self.config.host
        self._timeout = timeout if timeout is not None else self.config.timeout
        self._max_retries = max_retries if max_retries is not None else self.config.max_retries
        self._verify_ssl = verify_ssl if verify_ssl is not None else self.config.verify_ssl

        self._auth = self._resolve_auth(
            username=username, token=token, password=password, auth=auth
        )

        self._http = HttpClient(
            base_url=self._host,
            auth=self._auth,
            timeout=self._timeout,
            max_retries=self._max_retries,
            verify_ssl=self._verify_ssl,
        )

        self.shoots = Shoots(self._http)
        self.cloud_profiles = CloudProfiles(self._http)
        self.tokens = Tokens(self._http)

    def _resolve_auth(
        self,
        username: str | None = None,
        token: str | None = None,
        password: str | None = None,
        auth: AuthProvider | None = None,
    ) -> AuthProvider:
        """Resolve the authentication provider.

        Raises:
            AuthenticationError: If no usable credentials are found.
        """
        if auth is not None:
            return auth

        username = username or self.config.username
        if username and token:
            return TokenAuth(username=username, token=token)
        if username and password:
            return PasswordAuth(username=username, password=password)

        if username and self.config.token:
            return TokenAuth(username=username, token=self.config.token)
        if username and self.config.password:
            return PasswordAuth(username=username, password=self.config.password)

        raise AuthenticationError(
            "No authentication credentials provided. "
            "Set CLEURA_API_USERNAME together with CLEURA_API_TOKEN or CLEURA_API_PASSWORD.",
            status_code=401,
        )

    @property
    def host(self) -> str:
        return self._http.base_url

    # Gateway operations used by the reconciler

    def fetch_cluster(self, ref: ClusterRef) -> ClusterObserved:
        """Fetch the current remote state of a cluster.

        Raises:
            NotFoundError: If the cluster does not exist.
        """
        return observed_from_response(self.shoots.get(ref), ref)

    def create_cluster(self, spec: ClusterSpec) -> ClusterObserved:
        """Submit a resolved spec for creation."""
        ref = spec.ref
        response = self.shoots.create(
            spec.domain, spec.region, spec.project, build_create_request(spec)
        )
        return observed_from_create_response(response, ref)

    def update_cluster(self, ref: ClusterRef, update: ClusterUpdate) -> ClusterObserved:
        """Submit the changed cluster-level fields."""
        return observed_from_response(self.shoots.update(ref, build_update_request(update)), ref)

    def delete_cluster(self, ref: ClusterRef) -> None:
        self.shoots.delete(ref)

    def create_worker_group(self, ref: ClusterRef, group: WorkerGroupSpec) -> ClusterObserved:
        response = self.shoots.add_worker_group(ref, build_worker_group_request(group))
        return observed_from_response(response, ref)

    def update_worker_group(self, ref: ClusterRef, group: WorkerGroupSpec) -> ClusterObserved:
        response = self.shoots.update_worker_group(
            ref, group.name, build_worker_group_request(group)
        )
        return observed_from_response(response, ref)

    def delete_worker_group(self, ref: ClusterRef, name: str) -> ClusterObserved:
        return observed_from_response(self.shoots.delete_worker_group(ref, name), ref)

    def resolve_cloud_profile(self, domain: str) -> CloudProfile:
        return self.cloud_profiles.get(domain)

    def reconciler(self, **kwargs: Any) -> ShootReconciler:
        """Build a reconciler that talks to the API through this client.

        Timeouts default to the ``[reconcile]`` section of the configuration.
        """
        from cleura.reconcile.orchestrator import ShootReconciler

        kwargs.setdefault("create_timeout", self.config.reconcile.create_timeout)
        kwargs.setdefault("update_timeout", self.config.reconcile.update_timeout)
        kwargs.setdefault("delete_timeout", self.config.reconcile.delete_timeout)
        return ShootReconciler(self, **kwargs)

    def close(self) -> None:
        """Close the client and release resources."""
        self._http.close()

    def __enter__(self) -> CleuraClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
