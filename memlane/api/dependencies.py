"""Dependency injection for API routes.

The storage backend is process-wide: the app lifespan creates and
connects it once, keeps it on app.state, and closes it at shutdown.
Services are cheap wrappers built per request around that backend.
Every dependency can be overridden in tests via app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends, Request

from memlane.config.settings import Settings
from memlane.identity.service import IdentityService
from memlane.memory.service import ChunkIdGenerator, MemoryService
from memlane.review.service import ReviewQueue
from memlane.session.extraction import Extractor
from memlane.session.processor import SessionProcessor
from memlane.storage.store import Storage


def get_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    """The shared storage backend."""
    return request.app.state.storage


def get_chunk_ids(request: Request) -> ChunkIdGenerator:
    """The process-wide chunk ID generator."""
    return request.app.state.chunk_ids


def get_extractor(request: Request) -> Extractor:
    """The configured transcript extractor."""
    return request.app.state.extractor


SettingsDep = Annotated[Settings, Depends(get_settings)]
StorageDep = Annotated[Storage, Depends(get_storage)]


def get_identity_service(storage: StorageDep, settings: SettingsDep) -> IdentityService:
    return IdentityService(storage, max_retries=settings.identity.max_retries)


def get_memory_service(
    storage: StorageDep,
    chunk_ids: Annotated[ChunkIdGenerator, Depends(get_chunk_ids)],
) -> MemoryService:
    return MemoryService(storage, id_generator=chunk_ids)


def get_review_queue(storage: StorageDep) -> ReviewQueue:
    return ReviewQueue(storage)


def get_session_processor(
    review_queue: Annotated[ReviewQueue, Depends(get_review_queue)],
    extractor: Annotated[Extractor, Depends(get_extractor)],
) -> SessionProcessor:
    return SessionProcessor(review_queue, extractor=extractor)


IdentityServiceDep = Annotated[IdentityService, Depends(get_identity_service)]
MemoryServiceDep = Annotated[MemoryService, Depends(get_memory_service)]
ReviewQueueDep = Annotated[ReviewQueue, Depends(get_review_queue)]
SessionProcessorDep = Annotated[SessionProcessor, Depends(get_session_processor)]
