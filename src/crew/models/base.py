"""Shared pieces of the entity models."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Current time in UTC, without tzinfo.

    Timestamp columns are TIMESTAMP WITHOUT TIME ZONE and always hold UTC.
    """
    return datetime.now(UTC).replace(tzinfo=None)


class EntityBase(SQLModel):
    """Primary key shared by every table. Ids are generated client side."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)
