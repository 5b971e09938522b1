"""Change-event definitions using Pydantic.

A ChangeEvent is one insert/update/delete notification for a remote table.
Events are accepted either with the canonical field names or with the
remote feed's payload names (eventType, new, old).
"""

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ChangeType(str, Enum):
    """Kinds of remote row changes."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


_PAYLOAD_ALIASES = {
    "eventType": "type",
    "event_type": "type",
    "new": "new_row",
    "old": "old_row",
}


class ChangeEvent(BaseModel):
    """A single remote change notification."""

    table: str = Field(..., min_length=1, description="Remote table the change belongs to")
    type: ChangeType = Field(..., description="Kind of change")
    new_row: Optional[dict[str, Any]] = Field(default=None, description="Row after the change")
    old_row: Optional[dict[str, Any]] = Field(default=None, description="Row before the change")

    @model_validator(mode="before")
    @classmethod
    def normalize_payload(cls, data: Any) -> Any:
        """Map remote payload names onto field names."""
        if not isinstance(data, Mapping):
            return data
        normalized = {}
        for key, value in data.items():
            normalized[_PAYLOAD_ALIASES.get(key, key)] = value
        for key in ("new_row", "old_row"):
            if normalized.get(key) == {}:
                normalized[key] = None
        return normalized

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ChangeEvent":
        """Parse a raw payload.

        Raises:
            pydantic.ValidationError: If the payload is malformed
        """
        return cls.model_validate(payload)
