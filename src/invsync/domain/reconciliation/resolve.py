"""Identity resolution of external items against stored inventory.

Responsibilities of this stage:
- index the current rows a bucket import may touch
- classify each external item as NEW/MATCHED/DEFERRED/CONFLICT
- apply the ASIS ↔ STA migration rules

Out of scope for this stage:
- change detection
- building write payloads
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from invsync.domain.model import MIGRATION_ORDER, equivalence_class

from .contracts import (
    ConflictItemResolution,
    DeferredItemResolution,
    ItemResolution,
    MatchedItemResolution,
    NewItemResolution,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from invsync.domain.model import InventoryBucket, InventoryItem
    from invsync.domain.snapshot import ExternalItem

log = getLogger(__name__)


@dataclass(slots=True)
class CurrentRowIndex:
    """Serial-keyed view of the store for one target bucket.

    ``equivalent`` holds rows of the target's migration-equivalence class (the
    target bucket's own row preferred); ``foreign`` holds live rows of every other
    bucket. Rows without a serial cannot be matched and are left out.
    """

    target: InventoryBucket
    equivalent: dict[str, InventoryItem] = field(default_factory=dict)
    foreign: dict[str, InventoryItem] = field(default_factory=dict)

    @classmethod
    def build(cls, rows: Iterable[InventoryItem], target: InventoryBucket) -> CurrentRowIndex:
        index = cls(target=target)
        allowed = equivalence_class(target)
        for row in rows:
            if not row.serial:
                continue
            if row.bucket in allowed:
                index._add_equivalent(row)
            elif row.is_live:
                index.foreign.setdefault(row.serial, row)
        return index

    def _add_equivalent(self, row: InventoryItem) -> None:
        serial = row.serial or ""
        existing = self.equivalent.get(serial)
        if existing is None:
            self.equivalent[serial] = row
            return
        if existing.bucket != self.target and row.bucket == self.target:
            self.equivalent[serial] = row
            return
        if existing.bucket == row.bucket:
            log.warning(
                "Duplicate %s rows for serial %s (%s, %s); using %s",
                row.bucket.value,
                serial,
                existing.id,
                row.id,
                existing.id,
            )


def resolve_item(item: ExternalItem, index: CurrentRowIndex) -> ItemResolution:
    """Match ``item`` to at most one stored row.

    Matching policy:
    - live row in a non-equivalent bucket -> ``ConflictItemResolution``
    - row in the target bucket -> ``MatchedItemResolution``
    - row in an earlier equivalent bucket -> matched and migrated
    - live row in a later equivalent bucket -> ``DeferredItemResolution``;
      once that row is orphaned it migrates back
    - nothing -> ``NewItemResolution``
    """

    foreign = index.foreign.get(item.serial)
    if foreign is not None:
        return ConflictItemResolution(candidates=(foreign,), reason="foreign_bucket")

    row = index.equivalent.get(item.serial)
    if row is None:
        return NewItemResolution(reason="no_exact_match")
    if row.bucket == index.target:
        return MatchedItemResolution(target=row, reason="exact_match")
    if _lifecycle_rank(index.target) > _lifecycle_rank(row.bucket):
        return MatchedItemResolution(target=row, migrated=True, reason="migration")
    if row.ge_orphaned:
        return MatchedItemResolution(target=row, migrated=True, reason="orphan_migration")
    return DeferredItemResolution(holder=row, reason="held_by_later_bucket")


def _lifecycle_rank(bucket: InventoryBucket) -> int:
    return MIGRATION_ORDER.index(bucket)
