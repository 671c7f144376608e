"""Identity fact endpoints."""

from fastapi import APIRouter

from memlane.api.deadline import within_deadline
from memlane.api.dependencies import IdentityServiceDep, SettingsDep
from memlane.api.models.identity import (
    IdentityGetRequest,
    IdentityResponse,
    IdentitySetRequest,
)

router = APIRouter(prefix="/identity")


@router.post("/get", response_model=IdentityResponse)
async def get_identity(
    body: IdentityGetRequest,
    service: IdentityServiceDep,
    settings: SettingsDep,
) -> IdentityResponse:
    """Get a fact; fact is null when it was never set."""
    fact = await within_deadline(
        service.get(body.user_id, body.key),
        settings.api.request_timeout_seconds,
    )
    return IdentityResponse(fact=fact)


@router.post("/set", response_model=IdentityResponse)
async def set_identity(
    body: IdentitySetRequest,
    service: IdentityServiceDep,
    settings: SettingsDep,
) -> IdentityResponse:
    """Write the next version of a fact."""
    fact = await within_deadline(
        service.set(body.user_id, body.key, body.value, immutable=body.immutable),
        settings.api.request_timeout_seconds,
    )
    return IdentityResponse(fact=fact)
