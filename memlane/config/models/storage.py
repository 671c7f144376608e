"""Storage configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

BackendType = Literal["auto", "inmemory", "mongodb", "dynamodb"]


class MongoDBConfig(BaseModel):
    """Document-store backend settings.

    The connection string is a secret and may also come from MONGODB_URL.
    """

    url: str | None = Field(default=None, description="Connection string")
    database: str | None = Field(
        default=None,
        description="Database name; defaults to the URL path, then 'memlane'",
    )
    connect_timeout_ms: int = Field(default=10_000, gt=0)
    server_selection_timeout_ms: int = Field(default=10_000, gt=0)
    identity_collection: str = Field(default="identity_core")
    memory_collection: str = Field(default="memory_chunks")
    token_collection: str = Field(default="token_index")
    review_collection: str = Field(default="review_queue")


class DynamoDBConfig(BaseModel):
    """Key-value backend settings.

    Credentials come from the AWS credential chain (AWS_ACCESS_KEY_ID,
    AWS_SECRET_ACCESS_KEY), never from TOML.
    """

    region: str | None = Field(
        default=None, description="AWS region; defaults to AWS_REGION"
    )
    endpoint_url: str | None = Field(
        default=None,
        description="Custom endpoint (DynamoDB Local); defaults to DYNAMODB_ENDPOINT",
    )
    identity_table: str = Field(default="IdentityCore")
    memory_table: str = Field(default="MemoryChunks")
    token_table: str = Field(default="TokenIndex")
    review_table: str = Field(default="ReviewQueue")
    create_tables: bool = Field(
        default=False, description="Create missing tables on startup"
    )


class StorageConfig(BaseModel):
    """Storage backend selection."""

    backend: BackendType = Field(
        default="auto",
        description="auto picks dynamodb when AWS credentials are set, else mongodb",
    )
    mongodb: MongoDBConfig = Field(default_factory=MongoDBConfig)
    dynamodb: DynamoDBConfig = Field(default_factory=DynamoDBConfig)
