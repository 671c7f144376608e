"""Identity request and response models."""

from typing import Any

from pydantic import BaseModel

from memlane.identity.models import IdentityFact


class IdentityGetRequest(BaseModel):
    """Body of POST /identity/get."""

    user_id: str = ""
    key: str = ""


class IdentitySetRequest(BaseModel):
    """Body of POST /identity/set."""

    user_id: str = ""
    key: str = ""
    value: Any = None
    immutable: bool = False


class IdentityResponse(BaseModel):
    """A fact, or null when it was never set."""

    success: bool = True
    fact: IdentityFact | None = None
