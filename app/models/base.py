"""Shared table metadata and column defaults."""

from datetime import UTC, datetime

from sqlalchemy import MetaData

# Single metadata so cross-table foreign keys resolve
metadata = MetaData()


def utcnow() -> datetime:
    """Timezone-aware current time used for audit column defaults."""
    return datetime.now(UTC)
