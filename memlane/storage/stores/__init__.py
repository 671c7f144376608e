"""Storage backends."""

from memlane.storage.stores.dynamodb import DynamoDBStorage
from memlane.storage.stores.inmemory import InMemoryStorage
from memlane.storage.stores.mongodb import MongoDBStorage

__all__ = [
    "DynamoDBStorage",
    "InMemoryStorage",
    "MongoDBStorage",
]
