"""Session processing endpoint."""

from fastapi import APIRouter, status

from memlane.api.deadline import within_deadline
from memlane.api.dependencies import SessionProcessorDep, SettingsDep
from memlane.api.models.session import SessionProcessRequest, SessionProcessResponse

router = APIRouter(prefix="/session")


@router.post(
    "/process",
    response_model=SessionProcessResponse,
    status_code=status.HTTP_201_CREATED,
)
async def process_session(
    body: SessionProcessRequest,
    processor: SessionProcessorDep,
    settings: SettingsDep,
) -> SessionProcessResponse:
    """Extract proposals from a transcript into a pending review."""
    session_id = await within_deadline(
        processor.process(body.user_id, body.messages),
        settings.api.request_timeout_seconds,
    )
    return SessionProcessResponse(session_id=session_id)
