"""Model number → product lookup with tolerant key matching."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from invsync.domain.model import DEFAULT_PRODUCT_TYPE

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from invsync.domain.model import Product

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_BASE_SEPARATORS = re.compile(r"[\s/(\-]")


@dataclass(frozen=True, slots=True)
class ProductMatch:
    product_id: UUID | None
    product_type: str


UNKNOWN_PRODUCT = ProductMatch(product_id=None, product_type=DEFAULT_PRODUCT_TYPE)


def normalize_model_key(model: str) -> str:
    return _NON_ALNUM.sub("", model.upper())


def model_variants(model: str) -> tuple[str, ...]:
    """Candidate lookup keys for ``model``, most specific first."""

    raw = model.strip()
    if not raw:
        return ()
    upper = raw.upper()
    variants = [raw, upper]
    base = _BASE_SEPARATORS.split(upper, maxsplit=1)[0]
    if base:
        variants.append(base)
    variants.append(normalize_model_key(raw))
    if base:
        variants.append(normalize_model_key(base))
    return tuple(dict.fromkeys(key for key in variants if key))


class ProductLookup:
    """Immutable index of products keyed by every variant of their model number."""

    def __init__(self, entries: dict[str, ProductMatch] | None = None) -> None:
        self._entries: dict[str, ProductMatch] = dict(entries or {})

    @classmethod
    def from_products(cls, products: Iterable[Product]) -> ProductLookup:
        entries: dict[str, ProductMatch] = {}
        for product in products:
            match = ProductMatch(product_id=product.id, product_type=product.product_type)
            # exact keys always win over normalized ones from other models
            entries[product.model] = match
            entries.setdefault(product.model.upper(), match)
            entries.setdefault(normalize_model_key(product.model), match)
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, model: str | None) -> ProductMatch:
        if not model:
            return UNKNOWN_PRODUCT
        for key in model_variants(model):
            match = self._entries.get(key)
            if match is not None:
                return match
        return UNKNOWN_PRODUCT
