"""Placement conflicts kept open until a later snapshot clears them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import Entity, utcnow
from .enums import ConflictStatus

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import ConflictKind, InventoryBucket


@dataclass(eq=False, kw_only=True)
class InventoryConflict(Entity):
    """A serial the ``bucket`` import could not place.

    ``kind`` BUCKET: a live row in ``conflicting_with`` (another bucket) holds the serial.
    ``kind`` LOAD: the serial is listed on ``load_number`` and on ``conflicting_with``.
    One row exists per scope, bucket, kind and serial; it is reopened when the
    conflict comes back.
    """

    company_id: str
    location_id: str
    bucket: InventoryBucket
    kind: ConflictKind
    serial: str
    conflicting_with: str
    load_number: str | None = None
    status: ConflictStatus = ConflictStatus.OPEN
    detected_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    resolved_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status is ConflictStatus.OPEN
