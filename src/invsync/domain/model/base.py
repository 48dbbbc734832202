"""Identity and scope building blocks for inventory records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


def new_id() -> UUID:
    return uuid4()


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Entity:
    """Internal identity exists as soon as the domain object does."""

    id: UUID = field(default_factory=new_id)


@dataclass(frozen=True, slots=True)
class SyncScope:
    """Company/location pair that every record and change event is scoped to."""

    company_id: str
    location_id: str
