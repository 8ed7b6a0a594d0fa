"""HTTP client infrastructure for the Cleura SDK.

Handles:
- Authentication via AuthProvider
- Retries with exponential backoff for read-only requests
- Rate limit handling
- Error mapping
"""

from __future__ import annotations

import contextlib
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from cleura._version import __version__
from cleura.auth import PasswordAuth
from cleura.exceptions import (
    ApiError,
    AuthenticationError,
    CleuraError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
    TimeoutError,
)

if TYPE_CHECKING:
    from cleura.auth import AuthProvider

logger = logging.getLogger("cleura.http")

DEFAULT_HEADERS = {
    "User-Agent": f"cleura-sdk-python/{__version__}",
    "Accept": "application/json",
    "Content-Type": "application/json",
}

# Only these are retried. Mutating calls start asynchronous backend
# operations and are sent exactly once.
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})


class HttpClient:
    """Synchronous HTTP client for the Cleura API."""

    def __init__(
        self,
        base_url: str,
        auth: AuthProvider | None = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        verify_ssl: bool = True,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout = timeout
        self._max_retries = max_retries

        self._client = httpx.Client(
            base_url=self._base_url,
            headers=DEFAULT_HEADERS.copy(),
            timeout=timeout,
            verify=verify_ssl,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        """Perform GET request."""
        return self._request("GET", path, params=params)

    def post(self, path: str, *, json: dict[str, Any] | None = None) -> Any:
        """Perform POST request."""
        return self._request("POST", path, json=json)

    def put(self, path: str, *, json: dict[str, Any] | None = None) -> Any:
        """Perform PUT request."""
        return self._request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        """Perform DELETE request."""
        return self._request("DELETE", path)

    def get_text(self, path: str) -> str:
        """Perform GET request and return the raw body."""
        return self._request("GET", path, raw=True)

    def post_text(self, path: str, *, json: dict[str, Any] | None = None) -> str:
        """Perform POST request and return the raw body."""
        return self._request("POST", path, json=json, raw=True)

    def _get_auth_headers(self) -> dict[str, str]:
        """Get authentication headers from auth provider."""
        if self._auth is None:
            return {}
        return self._auth.get_headers()

    def _ensure_auth(self) -> None:
        """Ensure auth is valid, acquiring a token if needed."""
        if self._auth is None:
            return
        if self._auth.needs_refresh():
            self._refresh_auth()

    def _refresh_auth(self) -> None:
        """Refresh credentials, mapping a rejected login to AuthenticationError."""
        if self._auth is None:
            return
        try:
            self._auth.refresh(self._client)
        except httpx.HTTPStatusError as e:
            raise AuthenticationError(
                "Could not obtain an API token",
                status_code=e.response.status_code,
                body=e.response.text,
                response=e.response,
            ) from e
        except httpx.TransportError as e:
            raise ConnectionError(f"Could not reach the token endpoint: {e}") from e

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        raw: bool = False,
        _auth_retry: bool = False,
    ) -> Any:
        """Perform HTTP request with error handling.

        Read-only requests are retried on transport errors, rate limits and
        server errors. Mutating requests are attempted once.
        """
        max_retries = self._max_retries if method in IDEMPOTENT_METHODS else 0
        last_exception: Exception | None = None
        retry_count = 0

        self._ensure_auth()

        while retry_count <= max_retries:
            try:
                auth_headers = self._get_auth_headers()

                logger.debug("%s %s", method, path)
                response = self._client.request(
                    method,
                    path,
                    params=_filter_none(params) if params else None,
                    json=json,
                    headers=auth_headers,
                )
                return self._handle_response(response, raw=raw)

            except httpx.TimeoutException as e:
                last_exception = TimeoutError(f"Request timed out: {e}")
                retry_count += 1

            except httpx.ConnectError as e:
                last_exception = ConnectionError(f"Failed to connect: {e}")
                retry_count += 1

            except httpx.TransportError as e:
                last_exception = ConnectionError(f"Connection failed during request: {e}")
                retry_count += 1

            except RateLimitError as e:
                last_exception = e
                retry_count += 1
                if retry_count <= max_retries:
                    time.sleep(e.retry_after or (2**retry_count))
                continue

            except AuthenticationError:
                # Providers holding credentials get one chance at a new token
                if not _auth_retry and isinstance(self._auth, PasswordAuth):
                    self._refresh_auth()
                    return self._request(
                        method, path, params=params, json=json, raw=raw, _auth_retry=True
                    )
                raise

            except NotFoundError:
                raise

            except ApiError as e:
                if e.status_code < 500:
                    raise
                last_exception = e
                retry_count += 1

            if retry_count <= max_retries:
                logger.debug("Retrying %s %s (attempt %d)", method, path, retry_count + 1)
                time.sleep(2**retry_count * 0.1)

        if last_exception:
            raise last_exception
        raise CleuraError("Request failed after retries")

    def _handle_response(self, response: httpx.Response, *, raw: bool = False) -> Any:
        """Handle HTTP response and map errors."""
        if response.is_success:
            if raw:
                return response.text
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                return response.text

        try:
            data = response.json()
        except ValueError:
            data = None

        message = self._extract_error_message(data, response)
        body = response.text
        status = response.status_code

        if status == 401:
            raise AuthenticationError(message, status_code=status, body=body, response=response)

        if status == 404:
            raise NotFoundError(message, status_code=status, body=body, response=response)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            retry_after_int: int | None = None
            if retry_after:
                with contextlib.suppress(ValueError):
                    retry_after_int = int(retry_after)
            raise RateLimitError(
                message,
                status_code=status,
                body=body,
                retry_after=retry_after_int,
                response=response,
            )

        if status >= 500:
            raise ApiError(
                f"Server error: {message}", status_code=status, body=body, response=response
            )

        raise ApiError(message, status_code=status, body=body, response=response)

    def _extract_error_message(self, data: Any, response: httpx.Response) -> str:
        """Extract error message from response."""
        if isinstance(data, dict):
            if "message" in data:
                return str(data["message"])
            if "error" in data:
                error = data["error"]
                if isinstance(error, str):
                    return error
                if isinstance(error, dict) and "message" in error:
                    return str(error["message"])
            if "detail" in data:
                return str(data["detail"])

        return f"HTTP {response.status_code}: {response.reason_phrase}"


def _filter_none(params: dict[str, Any]) -> dict[str, Any]:
    """Remove None values from params dict."""
    return {k: v for k, v in params.items() if v is not None}
