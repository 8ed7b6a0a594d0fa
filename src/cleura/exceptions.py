"""Cleura SDK exceptions.

All exceptions inherit from CleuraError for easy catching.
"""

from __future__ import annotations

from typing import Any


class CleuraError(Exception):
    """Base exception for all Cleura SDK errors."""

    def __init__(self, message: str, *, response: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.response = response

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class ValidationError(CleuraError):
    """Desired state is malformed.

    Raised before any request is sent. Check errors for the individual
    field failures.
    """

    def __init__(
        self, message: str, *, errors: list[dict[str, Any]] | None = None, response: Any = None
    ) -> None:
        super().__init__(message, response=response)
        self.errors = errors or []


class ApiError(CleuraError):
    """The API answered with an unexpected status code."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: str = "",
        response: Any = None,
    ) -> None:
        super().__init__(message, response=response)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.body and self.body not in self.message:
            return f"status: {self.status_code}, {self.message}, body: {self.body}"
        return f"status: {self.status_code}, {self.message}"


class AuthenticationError(ApiError):
    """Invalid or missing credentials.

    Check that CLEURA_API_USERNAME and CLEURA_API_TOKEN are set.
    """


class NotFoundError(ApiError):
    """Resource not found.

    The requested shoot cluster, worker group or profile does not exist.
    """


class RateLimitError(ApiError):
    """Rate limit exceeded.

    Check retry_after for when to retry.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 429,
        body: str = "",
        retry_after: int | None = None,
        response: Any = None,
    ) -> None:
        super().__init__(message, status_code=status_code, body=body, response=response)
        self.retry_after = retry_after


class ConnectionError(CleuraError):
    """Failed to connect to the Cleura API.

    Check network connectivity and the configured host.
    """


class TimeoutError(CleuraError):
    """Request timed out."""


class ResponseError(CleuraError):
    """The API answered with a body that does not have the expected shape."""


class NotReadyError(CleuraError):
    """Remote operation has not reached its target condition yet.

    Only used inside waiters to keep polling.
    """


class DeadlineExceededError(CleuraError):
    """A waiter ran out of time before the target condition held."""

    def __init__(self, message: str, *, elapsed: float = 0.0, polls: int = 0) -> None:
        super().__init__(message)
        self.elapsed = elapsed
        self.polls = polls


class WaitCancelledError(CleuraError):
    """A waiter was cancelled before the target condition held."""


class ReconcileError(CleuraError):
    """A lifecycle step failed after validation.

    Carries which operation and step failed, the worker group involved (if
    any) and the underlying error. Steps that ran before the failure stay
    applied; re-running reconcile picks up from the remote state.
    """

    def __init__(
        self,
        operation: str,
        step: str,
        cause: Exception,
        *,
        cluster: str = "",
        worker_group: str | None = None,
    ) -> None:
        target = f" worker group '{worker_group}'" if worker_group else ""
        where = f" for cluster '{cluster}'" if cluster else ""
        message = f"{operation} failed at {step}{target}{where}: {cause}"
        super().__init__(message, response=getattr(cause, "response", None))
        self.operation = operation
        self.step = step
        self.cluster = cluster
        self.worker_group = worker_group
        self.cause = cause
