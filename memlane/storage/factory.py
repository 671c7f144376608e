"""Storage factory for creating backend instances.

Backend choice and table/collection names come from configuration.
Connection secrets are read from environment variables:
- MONGODB_URL: MongoDB connection string
  (defaults to mongodb://localhost:27017/memlane)
- AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_REGION: DynamoDB credentials
- DYNAMODB_ENDPOINT: custom DynamoDB endpoint, e.g. DynamoDB Local
"""

import os

from memlane.config.models.storage import StorageConfig
from memlane.observability.logging import get_logger
from memlane.storage.store import Storage
from memlane.storage.stores.dynamodb import DynamoDBStorage
from memlane.storage.stores.inmemory import InMemoryStorage
from memlane.storage.stores.mongodb import MongoDBStorage

logger = get_logger(__name__)

DEFAULT_MONGODB_URL = "mongodb://localhost:27017/memlane"
DEFAULT_AWS_REGION = "us-east-1"

AWS_CREDENTIAL_VARS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_REGION")


def has_aws_credentials() -> bool:
    """True when all AWS credential variables are set and non-empty."""
    return all(os.environ.get(name) for name in AWS_CREDENTIAL_VARS)


def resolve_backend(config: StorageConfig) -> str:
    """Resolve "auto" to a concrete backend name."""
    if config.backend != "auto":
        return config.backend
    return "dynamodb" if has_aws_credentials() else "mongodb"


def create_storage(config: StorageConfig) -> Storage:
    """Create a Storage instance based on configuration.

    The returned backend is not yet connected; call connect() before use.

    Args:
        config: Storage configuration from settings

    Returns:
        Configured Storage instance

    Raises:
        ValueError: If backend type is not supported
    """
    backend = resolve_backend(config)

    if backend == "inmemory":
        logger.info("creating_storage", backend="inmemory")
        return InMemoryStorage()

    elif backend == "mongodb":
        mongo = config.mongodb
        url = mongo.url or os.environ.get("MONGODB_URL") or DEFAULT_MONGODB_URL

        logger.info(
            "creating_storage",
            backend="mongodb",
            # Log without credentials
            host=url.split("@")[-1],
            database=mongo.database,
        )

        return MongoDBStorage(
            url,
            database=mongo.database,
            connect_timeout_ms=mongo.connect_timeout_ms,
            server_selection_timeout_ms=mongo.server_selection_timeout_ms,
            identity_collection=mongo.identity_collection,
            memory_collection=mongo.memory_collection,
            token_collection=mongo.token_collection,
            review_collection=mongo.review_collection,
        )

    elif backend == "dynamodb":
        dynamo = config.dynamodb
        region = dynamo.region or os.environ.get("AWS_REGION") or DEFAULT_AWS_REGION
        endpoint_url = dynamo.endpoint_url or os.environ.get("DYNAMODB_ENDPOINT") or None

        logger.info(
            "creating_storage",
            backend="dynamodb",
            region=region,
            endpoint=endpoint_url,
        )

        return DynamoDBStorage(
            region=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID") or None,
            aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY") or None,
            identity_table=dynamo.identity_table,
            memory_table=dynamo.memory_table,
            token_table=dynamo.token_table,
            review_table=dynamo.review_table,
            create_tables=dynamo.create_tables,
        )

    else:
        raise ValueError(f"Unsupported storage backend: {backend}")
