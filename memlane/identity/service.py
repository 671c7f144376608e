"""Identity facts with versioning and immutability."""

from typing import Any

from memlane.errors import ImmutableFactError, ValidationError, VersionConflictError
from memlane.identity.models import IdentityFact, utc_now
from memlane.observability.logging import get_logger
from memlane.observability.metrics import IDENTITY_CONFLICTS, IDENTITY_WRITES
from memlane.storage.errors import ConflictError
from memlane.storage.store import Storage

logger = get_logger(__name__)

DEFAULT_MAX_RETRIES = 3


class IdentityService:
    """Versioned, optionally immutable key/value facts per user.

    Each (user_id, key) moves absent -> v1 -> v2 -> ...; once a fact is
    written with immutable=True the chain is frozen.

    Writes are compare-and-swap on the stored version: the fact is read,
    the next version computed, and the write only lands if nobody else
    wrote in between. A lost race re-reads and tries again, up to
    max_retries attempts.
    """

    def __init__(self, storage: Storage, max_retries: int = DEFAULT_MAX_RETRIES) -> None:
        self._storage = storage
        self._max_retries = max(1, max_retries)

    async def get(self, user_id: str, key: str) -> IdentityFact | None:
        """Get a fact, or None if it was never set."""
        if not user_id or not key:
            raise ValidationError("user_id and key are required")
        return await self._storage.get_identity(user_id, key)

    async def set(
        self,
        user_id: str,
        key: str,
        value: Any,
        *,
        immutable: bool = False,
    ) -> IdentityFact:
        """Write a new version of a fact.

        Returns:
            The fact as persisted, with its new version

        Raises:
            ValidationError: user_id or key is empty
            ImmutableFactError: the stored fact is immutable
            VersionConflictError: every attempt lost a concurrent write race
        """
        if not user_id or not key:
            raise ValidationError("user_id and key are required")

        for attempt in range(1, self._max_retries + 1):
            current = await self._storage.get_identity(user_id, key)
            if current is not None and current.immutable:
                IDENTITY_WRITES.labels(outcome="immutable").inc()
                logger.warning("identity_immutable", user_id=user_id, key=key)
                raise ImmutableFactError(user_id, key)

            expected_version = current.version if current else 0
            fact = IdentityFact(
                user_id=user_id,
                key=key,
                value=value,
                version=expected_version + 1,
                immutable=immutable,
                updated_at=utc_now(),
            )

            try:
                await self._storage.set_identity(fact, expected_version=expected_version)
            except ConflictError:
                IDENTITY_CONFLICTS.inc()
                logger.info(
                    "identity_version_conflict",
                    user_id=user_id,
                    key=key,
                    attempt=attempt,
                )
                continue

            IDENTITY_WRITES.labels(outcome="success").inc()
            logger.info(
                "identity_set",
                user_id=user_id,
                key=key,
                version=fact.version,
                immutable=fact.immutable,
            )
            return fact

        IDENTITY_WRITES.labels(outcome="conflict").inc()
        raise VersionConflictError(user_id, key, self._max_retries)
