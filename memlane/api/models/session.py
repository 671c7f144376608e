"""Session processing request and response models."""

from pydantic import BaseModel, Field

from memlane.session.models import TranscriptLine


class SessionProcessRequest(BaseModel):
    """Body of POST /session/process."""

    user_id: str = ""
    messages: list[TranscriptLine] = Field(default_factory=list)


class SessionProcessResponse(BaseModel):
    success: bool = True
    session_id: str
