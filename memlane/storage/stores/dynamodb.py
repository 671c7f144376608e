"""DynamoDB implementation of Storage.

Uses an aioboto3 client. Candidates are located with key-range queries:
each token is its own partition in the token table, and chunks are then
fetched by primary key with BatchGetItem.

Key structure (table names configurable):
- IdentityCore: pk=user#{user_id}, sk=identity#{key}
- MemoryChunks: pk=user#{user_id}, sk=memory#{chunk_id}
- TokenIndex:   pk=user#{user_id}#replica#{replica_id}#token#{token}, sk=chunk#{chunk_id}
- ReviewQueue:  pk=review#{session_id}

Token-table key parts are escaped ("%" and "#" percent-encoded) so that
ids containing the separator cannot address another user's partition.
Opaque identity values are stored as JSON text, since DynamoDB numbers do
not keep the difference between 70 and 70.0.
"""

import asyncio
import json
from collections.abc import Iterator
from contextlib import AsyncExitStack, contextmanager
from decimal import Decimal, DecimalException
from typing import Any

import aioboto3
import pydantic
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from memlane.identity.models import IdentityFact
from memlane.memory.models import DEFAULT_REPLICA, MemoryChunk, TokenEntry
from memlane.observability.logging import get_logger
from memlane.observability.metrics import STORAGE_ERRORS
from memlane.review.enums import ReviewStatus
from memlane.review.models import ReviewItem
from memlane.storage.errors import ConflictError, ConnectionError, SerializationError
from memlane.storage.store import Storage
from memlane.timestamps import utc_now

logger = get_logger(__name__)

BATCH_GET_LIMIT = 100
BATCH_WRITE_LIMIT = 25
MAX_BATCH_RETRIES = 5

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_attribute_values(data: dict[str, Any]) -> dict[str, Any]:
    """Serialize a JSON-compatible dict into DynamoDB attribute values."""
    return {key: _serializer.serialize(_to_dynamo(value)) for key, value in data.items()}


def _from_attribute_values(item: dict[str, Any]) -> dict[str, Any]:
    """Deserialize DynamoDB attribute values into plain Python values."""
    return {
        key: _from_dynamo(_deserializer.deserialize(value))
        for key, value in item.items()
        if key not in ("pk", "sk")
    }


def _to_dynamo(value: Any) -> Any:
    # DynamoDB numbers must be Decimal
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_dynamo(v) for v in value]
    return value


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, set)):
        return [_from_dynamo(v) for v in value]
    return value


def _key_part(value: str) -> str:
    return value.replace("%", "%25").replace("#", "%23")


def _identity_to_item(fact: IdentityFact) -> dict[str, Any]:
    data = fact.model_dump(mode="json")
    data["value"] = json.dumps(data["value"])
    return _to_attribute_values(data)


def _identity_from_item(item: dict[str, Any]) -> IdentityFact:
    data = _from_attribute_values(item)
    data["value"] = json.loads(data["value"])
    return IdentityFact.model_validate(data)


def _review_to_item(review: ReviewItem) -> dict[str, Any]:
    data = review.model_dump(mode="json")
    for proposal in data["proposed_identity_updates"]:
        proposal["value"] = json.dumps(proposal["value"])
    return _to_attribute_values(data)


def _review_from_item(item: dict[str, Any]) -> ReviewItem:
    data = _from_attribute_values(item)
    for proposal in data.get("proposed_identity_updates", []):
        proposal["value"] = json.loads(proposal["value"])
    return ReviewItem.model_validate(data)


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class DynamoDBStorage(Storage):
    """DynamoDB-backed storage.

    The client is opened by connect() (or on first use) and released by
    close(). With create_tables=True, missing tables are created on
    connect, which is meant for DynamoDB Local and tests.
    """

    def __init__(
        self,
        *,
        region: str,
        endpoint_url: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        identity_table: str = "IdentityCore",
        memory_table: str = "MemoryChunks",
        token_table: str = "TokenIndex",
        review_table: str = "ReviewQueue",
        create_tables: bool = False,
    ) -> None:
        """Initialize client settings.

        Args:
            region: AWS region
            endpoint_url: Custom endpoint, e.g. http://localhost:8000 for DynamoDB Local
            aws_access_key_id: Explicit key; defaults to the AWS credential chain
            aws_secret_access_key: Explicit secret
            identity_table: Identity facts table
            memory_table: Memory chunks table
            token_table: Token index table
            review_table: Review queue table
            create_tables: Create missing tables on connect
        """
        self._session = aioboto3.Session(
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            region_name=region,
        )
        self._endpoint_url = endpoint_url
        self._identity_table = identity_table
        self._memory_table = memory_table
        self._token_table = token_table
        self._review_table = review_table
        self._create_tables = create_tables
        self._exit_stack: AsyncExitStack | None = None
        self._client: Any = None
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> Any:
        """Open the shared client on first use."""
        if self._client is not None:
            return self._client
        async with self._client_lock:
            if self._client is None:
                stack = AsyncExitStack()
                self._client = await stack.enter_async_context(
                    self._session.client("dynamodb", endpoint_url=self._endpoint_url)
                )
                self._exit_stack = stack
        return self._client

    @contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        """Translate botocore errors into StoreError subclasses."""
        try:
            yield
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                raise ConflictError(f"{operation}: condition failed", cause=e) from e
            STORAGE_ERRORS.labels(backend="dynamodb", operation=operation).inc()
            logger.error("dynamodb_operation_failed", operation=operation, error=str(e))
            raise ConnectionError(f"{operation}: {e}", cause=e) from e
        except BotoCoreError as e:
            STORAGE_ERRORS.labels(backend="dynamodb", operation=operation).inc()
            logger.error("dynamodb_operation_failed", operation=operation, error=str(e))
            raise ConnectionError(f"{operation}: {e}", cause=e) from e
        except (pydantic.ValidationError, json.JSONDecodeError) as e:
            raise SerializationError(f"{operation}: {e}", cause=e) from e
        except (TypeError, DecimalException) as e:
            # boto3 refuses Infinity and NaN with a TypeError
            raise SerializationError(f"{operation}: {e}", cause=e) from e

    # Keys
    @staticmethod
    def _user_pk(user_id: str) -> str:
        return f"user#{user_id}"

    @staticmethod
    def _token_pk(user_id: str, replica_id: str, token: str) -> str:
        return (
            f"user#{_key_part(user_id)}#replica#{_key_part(replica_id)}"
            f"#token#{_key_part(token)}"
        )

    @staticmethod
    def _review_pk(session_id: str) -> str:
        return f"review#{session_id}"

    def _identity_key(self, user_id: str, key: str) -> dict[str, Any]:
        return {"pk": {"S": self._user_pk(user_id)}, "sk": {"S": f"identity#{key}"}}

    def _chunk_key(self, user_id: str, chunk_id: str) -> dict[str, Any]:
        return {"pk": {"S": self._user_pk(user_id)}, "sk": {"S": f"memory#{chunk_id}"}}

    async def connect(self) -> None:
        """Open the client and, when configured, create missing tables."""
        client = await self._get_client()
        if self._create_tables:
            with self._errors("create tables"):
                await self._ensure_table(client, self._identity_table, range_key=True)
                await self._ensure_table(client, self._memory_table, range_key=True)
                await self._ensure_table(client, self._token_table, range_key=True)
                await self._ensure_table(client, self._review_table, range_key=False)
        logger.info("dynamodb_connected", endpoint=self._endpoint_url)

    async def _ensure_table(self, client: Any, name: str, *, range_key: bool) -> None:
        try:
            await client.describe_table(TableName=name)
            return
        except ClientError as e:
            if _error_code(e) != "ResourceNotFoundException":
                raise

        key_schema = [{"AttributeName": "pk", "KeyType": "HASH"}]
        attributes = [{"AttributeName": "pk", "AttributeType": "S"}]
        if range_key:
            key_schema.append({"AttributeName": "sk", "KeyType": "RANGE"})
            attributes.append({"AttributeName": "sk", "AttributeType": "S"})

        await client.create_table(
            TableName=name,
            KeySchema=key_schema,
            AttributeDefinitions=attributes,
            BillingMode="PAY_PER_REQUEST",
        )
        waiter = client.get_waiter("table_exists")
        await waiter.wait(TableName=name)
        logger.info("dynamodb_table_created", table=name)

    # Identity operations
    async def get_identity(self, user_id: str, key: str) -> IdentityFact | None:
        """Get an identity fact by (user_id, key)."""
        client = await self._get_client()
        with self._errors("get identity"):
            out = await client.get_item(
                TableName=self._identity_table,
                Key=self._identity_key(user_id, key),
                ConsistentRead=True,
            )
            item = out.get("Item")
            if not item:
                return None
            return _identity_from_item(item)

    async def set_identity(
        self, fact: IdentityFact, *, expected_version: int | None = None
    ) -> None:
        """Upsert an identity fact, optionally compare-and-swap on version."""
        request: dict[str, Any] = {"TableName": self._identity_table}
        if expected_version == 0:
            request["ConditionExpression"] = "attribute_not_exists(pk)"
        elif expected_version is not None:
            request["ConditionExpression"] = "#v = :expected"
            request["ExpressionAttributeNames"] = {"#v": "version"}
            request["ExpressionAttributeValues"] = {
                ":expected": {"N": str(expected_version)}
            }

        client = await self._get_client()
        with self._errors("set identity"):
            item = _identity_to_item(fact)
            item.update(self._identity_key(fact.user_id, fact.key))
            await client.put_item(Item=item, **request)

    # Memory operations
    async def store_memory(self, chunk: MemoryChunk) -> None:
        """Insert a chunk."""
        client = await self._get_client()
        with self._errors("store memory"):
            item = _to_attribute_values(chunk.model_dump(mode="json"))
            item.update(self._chunk_key(chunk.user_id, chunk.chunk_id))
            await client.put_item(
                TableName=self._memory_table,
                Item=item,
                ConditionExpression="attribute_not_exists(pk)",
            )

    async def search_memory_by_tokens(
        self,
        user_id: str,
        tokens: list[str],
        *,
        replica_id: str = DEFAULT_REPLICA,
    ) -> list[MemoryChunk]:
        """Get the chunks indexed under any of the tokens."""
        chunk_ids = await self.lookup_tokens(user_id, tokens, replica_id=replica_id)
        if not chunk_ids:
            return []

        client = await self._get_client()
        chunks: list[MemoryChunk] = []
        with self._errors("search memory"):
            for start in range(0, len(chunk_ids), BATCH_GET_LIMIT):
                keys = [
                    self._chunk_key(user_id, chunk_id)
                    for chunk_id in chunk_ids[start:start + BATCH_GET_LIMIT]
                ]
                for item in await self._batch_get(client, keys):
                    chunk = MemoryChunk.model_validate(_from_attribute_values(item))
                    if chunk.user_id == user_id and chunk.replica_id == replica_id:
                        chunks.append(chunk)

        chunks.sort(key=lambda c: (c.created_at, c.chunk_id))
        return chunks

    async def _batch_get(self, client: Any, keys: list[dict[str, Any]]) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        request = {self._memory_table: {"Keys": keys, "ConsistentRead": True}}
        for attempt in range(MAX_BATCH_RETRIES):
            out = await client.batch_get_item(RequestItems=request)
            items.extend(out.get("Responses", {}).get(self._memory_table, []))
            request = out.get("UnprocessedKeys") or {}
            if not request:
                return items
            await asyncio.sleep(0.05 * 2**attempt)
        raise ConnectionError("search memory: unprocessed keys after retries")

    # Token index operations
    async def index_tokens(self, entries: list[TokenEntry]) -> None:
        """Append inverted-index rows."""
        if not entries:
            return

        client = await self._get_client()
        with self._errors("index tokens"):
            puts: dict[tuple[str, str], dict[str, Any]] = {}
            for entry in entries:
                item = _to_attribute_values(entry.model_dump(mode="json"))
                pk = self._token_pk(entry.user_id, entry.replica_id, entry.token)
                sk = f"chunk#{entry.chunk_id}"
                item["pk"] = {"S": pk}
                item["sk"] = {"S": sk}
                # One request may not touch the same key twice
                puts[(pk, sk)] = {"PutRequest": {"Item": item}}

            requests = list(puts.values())
            for start in range(0, len(requests), BATCH_WRITE_LIMIT):
                await self._batch_write(client, requests[start:start + BATCH_WRITE_LIMIT])

    async def _batch_write(self, client: Any, requests: list[dict[str, Any]]) -> None:
        pending = {self._token_table: requests}
        for attempt in range(MAX_BATCH_RETRIES):
            out = await client.batch_write_item(RequestItems=pending)
            pending = out.get("UnprocessedItems") or {}
            if not pending:
                return
            await asyncio.sleep(0.05 * 2**attempt)
        raise ConnectionError("index tokens: unprocessed items after retries")

    async def lookup_tokens(
        self,
        user_id: str,
        tokens: list[str],
        *,
        replica_id: str = DEFAULT_REPLICA,
    ) -> list[str]:
        """Get the distinct chunk IDs indexed under any of the tokens."""
        if not tokens:
            return []

        client = await self._get_client()
        try:
            # The first failed query cancels the others
            async with asyncio.TaskGroup() as group:
                queries = [
                    group.create_task(self._query_token(client, user_id, replica_id, token))
                    for token in dict.fromkeys(tokens)
                ]
        except ExceptionGroup as errors:
            raise errors.exceptions[0] from errors
        return sorted({chunk_id for query in queries for chunk_id in query.result()})

    async def _query_token(
        self, client: Any, user_id: str, replica_id: str, token: str
    ) -> list[str]:
        chunk_ids: list[str] = []
        request: dict[str, Any] = {
            "TableName": self._token_table,
            "KeyConditionExpression": "pk = :pk",
            "FilterExpression": "#u = :uid AND #r = :rid",
            "ExpressionAttributeNames": {"#u": "user_id", "#r": "replica_id"},
            "ExpressionAttributeValues": {
                ":pk": {"S": self._token_pk(user_id, replica_id, token)},
                ":uid": {"S": user_id},
                ":rid": {"S": replica_id},
            },
            "ProjectionExpression": "chunk_id",
        }
        with self._errors("lookup tokens"):
            while True:
                out = await client.query(**request)
                chunk_ids.extend(item["chunk_id"]["S"] for item in out.get("Items", []))
                last_key = out.get("LastEvaluatedKey")
                if not last_key:
                    return chunk_ids
                request["ExclusiveStartKey"] = last_key

    # Review queue operations
    async def store_review(self, item: ReviewItem) -> None:
        """Insert a review item."""
        client = await self._get_client()
        with self._errors("store review"):
            av = _review_to_item(item)
            av["pk"] = {"S": self._review_pk(item.session_id)}
            await client.put_item(
                TableName=self._review_table,
                Item=av,
                ConditionExpression="attribute_not_exists(pk)",
            )

    async def get_review(self, session_id: str) -> ReviewItem | None:
        """Get a review item by session ID."""
        client = await self._get_client()
        with self._errors("get review"):
            out = await client.get_item(
                TableName=self._review_table,
                Key={"pk": {"S": self._review_pk(session_id)}},
                ConsistentRead=True,
            )
            item = out.get("Item")
            if not item:
                return None
            return _review_from_item(item)

    async def list_pending_reviews(self, user_id: str) -> list[ReviewItem]:
        """List pending review items for a user, oldest first.

        Scans with a filter, which is acceptable for review queue sizes.
        """
        request: dict[str, Any] = {
            "TableName": self._review_table,
            "FilterExpression": "user_id = :uid AND #s = :status",
            "ExpressionAttributeNames": {"#s": "status"},
            "ExpressionAttributeValues": {
                ":uid": {"S": user_id},
                ":status": {"S": ReviewStatus.PENDING.value},
            },
            "ConsistentRead": True,
        }

        client = await self._get_client()
        items: list[ReviewItem] = []
        with self._errors("list pending reviews"):
            while True:
                out = await client.scan(**request)
                items.extend(
                    _review_from_item(item)
                    for item in out.get("Items", [])
                )
                last_key = out.get("LastEvaluatedKey")
                if not last_key:
                    break
                request["ExclusiveStartKey"] = last_key

        items.sort(key=lambda x: x.created_at)
        return items

    async def update_review_status(
        self,
        session_id: str,
        status: ReviewStatus,
        *,
        expected_status: ReviewStatus | None = None,
    ) -> bool:
        """Set the status and stamp reviewed_at."""
        condition = "attribute_exists(pk)"
        values: dict[str, Any] = {
            ":status": {"S": status.value},
            ":rat": {"S": utc_now().isoformat()},
        }
        if expected_status is not None:
            condition += " AND #s = :expected"
            values[":expected"] = {"S": expected_status.value}

        client = await self._get_client()
        try:
            with self._errors("update review status"):
                await client.update_item(
                    TableName=self._review_table,
                    Key={"pk": {"S": self._review_pk(session_id)}},
                    UpdateExpression="SET #s = :status, reviewed_at = :rat",
                    ConditionExpression=condition,
                    ExpressionAttributeNames={"#s": "status"},
                    ExpressionAttributeValues=values,
                )
        except ConflictError:
            return False
        return True

    # Health and lifecycle
    async def ping(self) -> None:
        """List one table to prove the endpoint answers."""
        client = await self._get_client()
        with self._errors("ping"):
            await client.list_tables(Limit=1)

    def backend_name(self) -> str:
        """Backend identifier."""
        return "dynamodb"

    async def close(self) -> None:
        """Close the client."""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None
            self._client = None
            logger.info("dynamodb_closed")
