"""Identity service configuration."""

from pydantic import BaseModel, Field


class IdentityConfig(BaseModel):
    """Identity versioning settings."""

    max_retries: int = Field(
        default=3,
        ge=1,
        description="Compare-and-swap attempts before a version conflict is reported",
    )
