from decimal import Decimal

import pytest

from catalogsync.ingest.models import InvalidRecord, NormalizedProductRecord, VariantInput
from catalogsync.models import CatalogItem, InventoryManagement, ProductReference, StorefrontVariant


def test_product_reference_rejects_empty():
    with pytest.raises(ValueError):
        ProductReference("")


def test_product_reference_equality():
    assert ProductReference("A-1") == ProductReference("A-1")
    assert str(ProductReference("A-1")) == "A-1"
    assert len({ProductReference("A-1"), ProductReference("A-1")}) == 1


def test_catalog_item_from_payload_defaults_missing_prices():
    item = CatalogItem.from_payload({"id": "5", "reference": "R", "reference_price": "12.3"})
    assert item.id == 5
    assert item.reference_price == Decimal("12.3")
    assert item.purchase_amount == Decimal("0")


def test_storefront_variant_tracking():
    variant = StorefrontVariant.from_payload({"id": 1, "sku": "S", "price": "2.00"}, product_id=9)
    assert variant.inventory_management is InventoryManagement.UNTRACKED
    assert variant.inventory_item_id is None
    assert variant.product_id == 9


def test_record_requires_title_and_valid_price():
    with pytest.raises(InvalidRecord):
        NormalizedProductRecord.from_mapping({"price": 10})
    with pytest.raises(InvalidRecord):
        NormalizedProductRecord.from_mapping({"title": "Mug"})
    with pytest.raises(InvalidRecord):
        NormalizedProductRecord.from_mapping({"title": "Mug", "price": "-1"})
    with pytest.raises(InvalidRecord):
        NormalizedProductRecord.from_mapping({"title": "Mug", "price": "free"})


def test_record_drops_old_price_not_above_price():
    record = NormalizedProductRecord.from_mapping({"title": " Mug ", "price": 10, "oldPrice": 10})
    assert record.title == "Mug"
    assert record.old_price is None
    assert record.supplier == "Unknown"


def test_record_accepts_plain_variant_names():
    record = NormalizedProductRecord.from_mapping(
        {"title": "Mug", "price": 10, "old_price": "12", "variants": ["Red", {"name": "Blue", "sku": "MUG-B"}]}
    )
    assert record.old_price == Decimal("12")
    assert [v.name for v in record.variants] == ["Red", "Blue"]
    assert record.variants[1].sku == "MUG-B"


def test_variant_fields_are_normalized_to_strings():
    variant = VariantInput.from_mapping({"name": "One", "sku": 123, "image": "https://img/1.jpg"})
    assert variant.sku == "123"
    assert VariantInput.from_mapping({"sku": ""}).sku is None


def test_record_rejects_non_finite_amounts_and_bad_shapes():
    for extra in (
        {"discount": "NaN"},
        {"oldPrice": "-Infinity"},
        {"variants": [{"name": "X", "oldPrice": "NaN"}]},
        {"metadata": ["x"]},
        {"variants": "Red"},
        {"images": "https://img/1.jpg"},
    ):
        with pytest.raises(InvalidRecord):
            NormalizedProductRecord.from_mapping({"title": "Mug", "price": 10, **extra})
