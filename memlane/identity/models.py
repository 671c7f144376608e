"""Identity domain models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from memlane.timestamps import Timestamp, utc_now


class IdentityFact(BaseModel):
    """A versioned, optionally immutable attribute of a user.

    Keyed by (user_id, key). Version 1 is assigned on first write and bumped
    by one on every later write; an immutable fact can no longer be
    overwritten.
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    user_id: str = Field(..., description="Owning user")
    key: str = Field(..., description="Attribute name, e.g. name, birthdate")
    value: Any = Field(default=None, description="Opaque typed payload")
    version: int = Field(default=0, ge=0, description="Write counter")
    immutable: bool = Field(default=False, description="Freezes the fact")
    updated_at: Timestamp = Field(
        default_factory=utc_now, description="Last write time"
    )
