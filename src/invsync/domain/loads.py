"""Load rules: which loads are on the floor and which serial sits on which load."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from invsync.domain.snapshot import LoadInfo, Snapshot

log = getLogger(__name__)

FOR_SALE = "for sale"
SOLD = "sold"
PICKED = "picked"

_LETTER_PATTERN = re.compile(r"\bLETTER\s+([A-Z]{1,2})\b")
_TOKEN_SPLIT = re.compile(r"[\s-]+")
_SHORT_TOKEN = re.compile(r"^[A-Z]{1,2}$")
_DATE_PATTERN = re.compile(r"\b(\d{1,2}/\d{1,2})\b")
_DAY_PATTERN = re.compile(r"\b(\d{1,2}(?:ST|ND|RD|TH))\b")


def _norm(value: str | None) -> str:
    return (value or "").strip().casefold()


def is_for_sale(load: LoadInfo) -> bool:
    return _norm(load.status) == FOR_SALE


def is_picked(load: LoadInfo) -> bool:
    return _norm(load.status) == SOLD and _norm(load.cso_status) == PICKED


def is_on_floor(load: LoadInfo) -> bool:
    """A load is physically on the floor while for sale, or sold but already picked."""

    return is_for_sale(load) or is_picked(load)


def is_sold(status: str | None) -> bool:
    return _norm(status) == SOLD


@dataclass(slots=True)
class LoadAssignments:
    """Serial → load number mapping built from on-floor load detail lists.

    ``conflicting_loads`` maps a serial listed on more than one load to the first
    other load it was seen on; ``by_serial`` keeps the load that won.
    """

    by_serial: dict[str, str] = field(default_factory=dict[str, str])
    conflicting_loads: dict[str, str] = field(default_factory=dict[str, str])

    def load_for(self, serial: str) -> str | None:
        return self.by_serial.get(serial)


def expand_on_floor_loads(snapshot: Snapshot) -> LoadAssignments:
    """Assign serials to on-floor loads; the first load listing a serial wins."""

    assignments = LoadAssignments()
    if snapshot.loads is None:
        return assignments

    for load in snapshot.loads:
        if not is_on_floor(load):
            continue
        for item in snapshot.load_items.get(load.load_number, ()):
            current = assignments.by_serial.get(item.serial)
            if current is None:
                assignments.by_serial[item.serial] = load.load_number
            elif current != load.load_number:
                assignments.conflicting_loads.setdefault(item.serial, load.load_number)
                log.warning(
                    "Serial %s listed on loads %s and %s; keeping %s",
                    item.serial,
                    current,
                    load.load_number,
                    current,
                )
    return assignments


def count_loads(loads: Iterable[LoadInfo] | None) -> tuple[int, int]:
    """Return ``(for_sale_loads, picked_loads)``."""

    if loads is None:
        return 0, 0
    for_sale = 0
    picked = 0
    for load in loads:
        if is_for_sale(load):
            for_sale += 1
        elif is_picked(load):
            picked += 1
    return for_sale, picked


def derive_friendly_name(notes: str | None, status: str | None) -> str | None:
    """Short floor label from load notes ("LETTER B", "AB ...", "5/12", "5TH").

    Only loads that are for sale (or whose status is unknown) get a label.
    """

    if not notes or not notes.strip():
        return None
    if status and _norm(status) != FOR_SALE:
        return None
    normalized = notes.strip().upper()

    letter = _LETTER_PATTERN.search(normalized)
    if letter:
        return letter.group(1)

    first_token = next((token for token in _TOKEN_SPLIT.split(normalized) if token), None)
    if first_token and _SHORT_TOKEN.match(first_token):
        return first_token

    date = _DATE_PATTERN.search(normalized)
    if date:
        return date.group(1)

    day = _DAY_PATTERN.search(normalized)
    if day:
        return day.group(1)
    return None
