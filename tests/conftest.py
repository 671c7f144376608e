"""Shared test fixtures for the memlane test suite."""

import os
import socket
from collections.abc import AsyncIterator, Callable, Generator
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import pytest
import pytest_asyncio

from memlane.storage.errors import StoreError
from memlane.storage.stores.inmemory import InMemoryStorage

if TYPE_CHECKING:
    from memlane.storage.stores.dynamodb import DynamoDBStorage
    from memlane.storage.stores.mongodb import MongoDBStorage


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "[api]\nport = 9000",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables.

    A value of None removes the variable for the duration.
    """

    def __init__(self, overrides: dict[str, str | None]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str | None]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"MEMLANE_DEBUG": "true"}):
                ...
    """

    def _env_override(overrides: dict[str, str | None]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test."""
    from memlane.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def storage() -> InMemoryStorage:
    """Fresh in-memory storage backend."""
    return InMemoryStorage()


# Backend fixtures. Integration backends skip when unavailable.


@pytest.fixture(scope="session")
def mongodb_url() -> str:
    """MongoDB URL for integration tests; skips when TEST_MONGODB_URL is unset."""
    url = os.environ.get("TEST_MONGODB_URL")
    if not url:
        pytest.skip("TEST_MONGODB_URL not set")
    return url


@pytest.fixture(scope="session")
def dynamodb_endpoint() -> Generator[str, None, None]:
    """Local DynamoDB endpoint served by moto for the whole session."""
    pytest.importorskip("moto.server")
    from moto.server import ThreadedMotoServer

    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()

    server = ThreadedMotoServer(ip_address="127.0.0.1", port=port)
    server.start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        server.stop()


@pytest_asyncio.fixture
async def mongodb_storage(mongodb_url: str) -> AsyncIterator["MongoDBStorage"]:
    """MongoDBStorage on a throwaway database."""
    from memlane.storage.stores.mongodb import MongoDBStorage

    database = f"memlane_test_{uuid4().hex[:12]}"
    store = MongoDBStorage(
        mongodb_url,
        database=database,
        server_selection_timeout_ms=2_000,
    )
    try:
        await store.connect()
    except StoreError as e:
        await store.close()
        pytest.skip(f"MongoDB not reachable: {e}")

    yield store

    await store._client.drop_database(database)
    await store.close()


@pytest_asyncio.fixture
async def dynamodb_storage(dynamodb_endpoint: str) -> AsyncIterator["DynamoDBStorage"]:
    """DynamoDBStorage on freshly created tables in the moto server."""
    from memlane.storage.stores.dynamodb import DynamoDBStorage

    prefix = f"t{uuid4().hex[:10]}"
    store = DynamoDBStorage(
        region="us-east-1",
        endpoint_url=dynamodb_endpoint,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        identity_table=f"{prefix}-IdentityCore",
        memory_table=f"{prefix}-MemoryChunks",
        token_table=f"{prefix}-TokenIndex",
        review_table=f"{prefix}-ReviewQueue",
        create_tables=True,
    )
    await store.connect()

    yield store

    await store.close()
