"""Configuration model exports.

    from memlane.config.models import APIConfig, StorageConfig
"""

from memlane.config.models.api import APIConfig
from memlane.config.models.extraction import ExtractionConfig
from memlane.config.models.identity import IdentityConfig
from memlane.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
    TracingConfig,
)
from memlane.config.models.storage import DynamoDBConfig, MongoDBConfig, StorageConfig

__all__ = [
    "APIConfig",
    "DynamoDBConfig",
    "ExtractionConfig",
    "IdentityConfig",
    "LoggingConfig",
    "MetricsConfig",
    "MongoDBConfig",
    "ObservabilityConfig",
    "StorageConfig",
    "TracingConfig",
]
