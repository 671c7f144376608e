"""Fixtures for API tests: the real app over in-memory storage."""

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from memlane.api.app import create_app
from memlane.config.settings import Settings, set_toml_config
from memlane.storage.stores.inmemory import InMemoryStorage


@pytest.fixture
def settings() -> Settings:
    """Default settings with no TOML values applied."""
    set_toml_config({})
    return Settings()


@pytest.fixture
def app(settings: Settings, storage: InMemoryStorage) -> FastAPI:
    """Create test FastAPI app."""
    return create_app(settings=settings, storage=storage)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client with the app lifespan running."""
    with TestClient(app) as client:
        yield client
