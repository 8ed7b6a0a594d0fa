"""Common models shared across resources."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CleuraModel(BaseModel):
    """Base model for all Cleura domain models."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
    )


class WireModel(BaseModel):
    """Base model for request and response bodies.

    Field names are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize for a request body, leaving out unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class KeyValue(WireModel):
    """Annotation or label entry as sent to the API."""

    key: str
    value: str = ""
