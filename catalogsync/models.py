"""Domain models shared by both platform clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class ProductReference:
    """SKU used as the join key between the storefront and the ERP."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value:
            raise ValueError("Product reference cannot be empty")

    def __str__(self) -> str:
        return self.value


class InventoryManagement(str, Enum):
    TRACKED = "shopify"
    UNTRACKED = "untracked"

    @classmethod
    def from_payload(cls, value: Any) -> "InventoryManagement":
        return cls.TRACKED if value == cls.TRACKED.value else cls.UNTRACKED


@dataclass(frozen=True, slots=True)
class CatalogItem:
    reference: ProductReference
    reference_price: Decimal
    purchase_amount: Decimal
    id: int

    @classmethod
    def from_payload(cls, item: Mapping[str, Any]) -> "CatalogItem":
        return cls(
            reference=ProductReference(str(item.get("reference") or "")),
            reference_price=to_decimal(item.get("reference_price")) or Decimal("0"),
            purchase_amount=to_decimal(item.get("purchase_amount")) or Decimal("0"),
            id=int(item["id"]),
        )


@dataclass(frozen=True, slots=True)
class StorefrontVariant:
    sku: ProductReference
    variant_id: int
    price: Decimal
    inventory_item_id: int | None
    inventory_management: InventoryManagement
    product_id: int

    @property
    def tracked(self) -> bool:
        return self.inventory_management is InventoryManagement.TRACKED

    @classmethod
    def from_payload(cls, variant: Mapping[str, Any], product_id: int) -> "StorefrontVariant":
        inventory_item_id = variant.get("inventory_item_id")
        return cls(
            sku=ProductReference(str(variant.get("sku") or "")),
            variant_id=int(variant["id"]),
            price=to_decimal(variant.get("price")) or Decimal("0"),
            inventory_item_id=int(inventory_item_id) if inventory_item_id is not None else None,
            inventory_management=InventoryManagement.from_payload(variant.get("inventory_management")),
            product_id=int(variant.get("product_id") or product_id),
        )


@dataclass(frozen=True, slots=True)
class PriceDifference:
    reference: ProductReference
    storefront_price: Decimal
    erp_price: Decimal
    delta: Decimal
    erp_item_id: int


@dataclass(slots=True)
class ImageLinkFailure:
    sku: str
    image_url: str
    reason: str


@dataclass(slots=True)
class CreatedProduct:
    id: int | None
    handle: str | None
    title: str
    variants: list[dict[str, Any]] = field(default_factory=list)
    images: list[dict[str, Any]] = field(default_factory=list)
    link_failures: list[ImageLinkFailure] = field(default_factory=list)

    @classmethod
    def from_payload(cls, product: Mapping[str, Any]) -> "CreatedProduct":
        return cls(
            id=product.get("id"),
            handle=product.get("handle"),
            title=product.get("title", ""),
            variants=list(product.get("variants") or []),
            images=list(product.get("images") or []),
        )


def to_decimal(value: Any) -> Decimal | None:
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
