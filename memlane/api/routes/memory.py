"""Memory store and search endpoints."""

from fastapi import APIRouter, status

from memlane.api.deadline import within_deadline
from memlane.api.dependencies import MemoryServiceDep, SettingsDep
from memlane.api.models.memory import (
    MemorySearchRequest,
    MemorySearchResponse,
    MemoryStoreRequest,
    MemoryStoreResponse,
)

router = APIRouter(prefix="/memory")


@router.post("/search", response_model=MemorySearchResponse)
async def search_memory(
    body: MemorySearchRequest,
    service: MemoryServiceDep,
    settings: SettingsDep,
) -> MemorySearchResponse:
    """Rank the user's chunks against a query."""
    results = await within_deadline(
        service.search(body.user_id, body.query, body.top_k, replica_id=body.replica_id),
        settings.api.request_timeout_seconds,
    )
    return MemorySearchResponse(results=results)


@router.post(
    "/store",
    response_model=MemoryStoreResponse,
    status_code=status.HTTP_201_CREATED,
)
async def store_memory(
    body: MemoryStoreRequest,
    service: MemoryServiceDep,
    settings: SettingsDep,
) -> MemoryStoreResponse:
    """Store and index a chunk."""
    chunk = await within_deadline(
        service.store(
            body.user_id,
            body.content,
            importance=body.importance,
            source=body.source,
            session_id=body.session_id,
            replica_id=body.replica_id,
        ),
        settings.api.request_timeout_seconds,
    )
    return MemoryStoreResponse(chunk_id=chunk.chunk_id)
