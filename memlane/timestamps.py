"""Timestamp type shared by the stored models.

MongoDB keeps datetimes to the millisecond, so every stored timestamp is
truncated to milliseconds on validation and all backends return the same
values.
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


Timestamp = Annotated[datetime, AfterValidator(truncate_to_millis)]


def utc_now() -> datetime:
    """Return current UTC time, truncated to milliseconds."""
    return truncate_to_millis(datetime.now(UTC))
