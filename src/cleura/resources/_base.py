"""Base resource class."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from cleura.exceptions import ResponseError

if TYPE_CHECKING:
    from cleura._http import HttpClient

M = TypeVar("M", bound=BaseModel)


class SyncResource:
    """Base class for API resources."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    def _parse(self, model: type[M], data: Any) -> M:
        """Validate a response body against ``model``.

        Raises:
            ResponseError: If the body does not match the model.
        """
        try:
            return model.model_validate(data or {})
        except ValidationError as e:
            raise ResponseError(f"Unexpected {model.__name__} in response: {e}") from e
