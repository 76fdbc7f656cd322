"""Inbound records produced by the scraping pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from catalogsync.models import to_decimal


class InvalidRecord(ValueError):
    pass


@dataclass(slots=True)
class VariantInput:
    name: str
    price: Decimal | None = None
    sku: str | None = None
    old_price: Decimal | None = None
    image: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VariantInput":
        sku = data.get("sku")
        image = data.get("image")
        return cls(
            name=str(data.get("name") or "Default"),
            price=_finite_amount(data.get("price"), "variant price"),
            sku=str(sku) if sku not in (None, "") else None,
            old_price=_finite_amount(data.get("oldPrice", data.get("old_price")), "variant old price"),
            image=str(image) if image else None,
        )


@dataclass(slots=True)
class NormalizedProductRecord:
    title: str
    price: Decimal
    description: str = ""
    images: list[str] = field(default_factory=list)
    old_price: Decimal | None = None
    variants: list[VariantInput] = field(default_factory=list)
    supplier: str = "Unknown"
    metadata: dict[str, Any] = field(default_factory=dict)
    discount: Decimal | None = None
    source_url: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "NormalizedProductRecord":
        """Validate a raw scraped product; title and a non-negative price are required."""
        if not isinstance(data, Mapping):
            raise InvalidRecord("A product must be an object")
        title = str(data.get("title") or "").strip()
        if not title:
            raise InvalidRecord("The 'title' field is required")
        if data.get("price") in (None, ""):
            raise InvalidRecord("The 'price' field is required")
        price = to_decimal(data.get("price"))
        if price is None or not price.is_finite() or price < 0:
            raise InvalidRecord("The price must be a non-negative number")

        old_price = _finite_amount(data.get("oldPrice", data.get("old_price")), "old price")
        if old_price is not None and old_price <= price:
            old_price = None

        variants = [
            VariantInput.from_mapping(v) if isinstance(v, Mapping) else VariantInput(name=str(v))
            for v in _list_field(data, "variants")
        ]
        raw_metadata = data.get("metadata") or {}
        if not isinstance(raw_metadata, Mapping):
            raise InvalidRecord("The 'metadata' field must be an object")
        return cls(
            title=title,
            price=price,
            description=str(data.get("description") or ""),
            images=[str(url) for url in _list_field(data, "images") if url],
            old_price=old_price,
            variants=variants,
            supplier=str(data.get("supplier") or "Unknown"),
            metadata={str(k): v for k, v in raw_metadata.items()},
            discount=_finite_amount(data.get("discount"), "discount"),
            source_url=data.get("sourceUrl", data.get("source_url")),
        )


def _finite_amount(value: Any, label: str) -> Decimal | None:
    amount = to_decimal(value)
    if amount is not None and not amount.is_finite():
        raise InvalidRecord(f"The {label} must be a finite number")
    return amount


def _list_field(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise InvalidRecord(f"The '{key}' field must be a list")
    return value
