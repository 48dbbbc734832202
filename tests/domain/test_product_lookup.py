from __future__ import annotations

from invsync.domain.model import Product
from invsync.domain.products import UNKNOWN_PRODUCT, ProductLookup, model_variants


def _product(model: str, product_type: str) -> Product:
    return Product(company_id="acme", model=model, product_type=product_type)


def test_model_variants_most_specific_first() -> None:
    assert model_variants(" gtw485 ww ") == ("gtw485 ww", "GTW485 WW", "GTW485", "GTW485WW")


def test_model_variants_of_blank_model() -> None:
    assert model_variants("   ") == ()


def test_lookup_matches_exact_then_normalized_keys() -> None:
    washer = _product("GTW485ASJWW", "Washer")
    dryer = _product("GTD45EASJWS", "Dryer")
    lookup = ProductLookup.from_products([washer, dryer])

    assert lookup.find("GTW485ASJWW").product_id == washer.id
    assert lookup.find("gtd45easjws").product_type == "Dryer"
    assert lookup.find("GTW485ASJWW (floor model)").product_id == washer.id
    assert lookup.find("GTW-485-ASJ-WW").product_id == washer.id


def test_exact_model_beats_normalized_collision() -> None:
    plain = _product("AB-100", "Range")
    dashed = _product("AB100", "Oven")
    lookup = ProductLookup.from_products([plain, dashed])

    assert lookup.find("AB100").product_type == "Oven"
    assert lookup.find("AB-100").product_type == "Range"


def test_unknown_model() -> None:
    lookup = ProductLookup.from_products([_product("GTW485ASJWW", "Washer")])

    assert lookup.find("ZZZ") is UNKNOWN_PRODUCT
    assert lookup.find(None) is UNKNOWN_PRODUCT
    assert lookup.find("") is UNKNOWN_PRODUCT
