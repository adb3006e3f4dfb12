"""Display block hash for stages.

The hash is a presentation artifact, not a digest: the trailing eight
characters of ``str(id) + timestamp``, uppercased. Mobile clients derive the
same string from the ``id`` and ``timestamp`` fields they receive, so both
sides must agree on the timestamp rendering below.
"""

from datetime import datetime, timezone
from typing import Union

BLOCK_HASH_LENGTH = 8


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def block_hash(stage_id: int, timestamp: Union[datetime, str]) -> str:
    """Derive the short display hash for a stage.

    String timestamps are used verbatim; datetimes are rendered with
    :func:`format_timestamp` first.
    """
    stamp = timestamp if isinstance(timestamp, str) else format_timestamp(timestamp)
    return f"{stage_id}{stamp}"[-BLOCK_HASH_LENGTH:].upper()
