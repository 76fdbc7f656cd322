"""Storefront Admin API client backed by a full SKU -> variant cache."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import replace
from decimal import Decimal
from typing import Any

import httpx

from catalogsync.errors import (
    CatalogSyncError,
    DependencyUnavailable,
    RateLimitExceeded,
    ResourceNotFound,
    ValidationRejected,
)
from catalogsync.ingest.models import NormalizedProductRecord
from catalogsync.models import (
    CreatedProduct,
    ImageLinkFailure,
    InventoryManagement,
    ProductReference,
    StorefrontVariant,
)
from catalogsync.utils.rate_limit import Pacer
from catalogsync.utils.retry import RateLimitedExecutor

logger = logging.getLogger(__name__)

API_VERSION = "2024-10"
PAGE_SIZE = 250
TITLE_SEARCH_LIMIT = 50
TRACKING_PACE = 0.3
DRAFT = "draft"

SkuLike = str | ProductReference


class VariantCache:
    """SKU -> variant index; rebuilt in full, patched only for tracking toggles."""

    def __init__(self) -> None:
        self._variants: dict[str, StorefrontVariant] = {}
        self.loaded = False

    def __len__(self) -> int:
        return len(self._variants)

    def __contains__(self, sku: object) -> bool:
        return str(sku) in self._variants

    def get(self, sku: SkuLike) -> StorefrontVariant | None:
        return self._variants.get(str(sku))

    def replace(self, variants: dict[str, StorefrontVariant]) -> None:
        self._variants = dict(variants)
        self.loaded = True

    def put(self, variant: StorefrontVariant) -> None:
        self._variants[variant.sku.value] = variant

    def invalidate(self) -> None:
        self._variants = {}
        self.loaded = False

    def snapshot(self) -> dict[str, StorefrontVariant]:
        return dict(self._variants)


class StorefrontClient:
    def __init__(
        self,
        shop_url: str,
        access_token: str,
        *,
        session: httpx.Client | None = None,
        executor: RateLimitedExecutor | None = None,
        cache: VariantCache | None = None,
        pacer: Pacer | None = None,
        timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.admin_url = f"{shop_url.rstrip('/')}/admin/api/{API_VERSION}"
        self._session = session or httpx.Client(
            timeout=timeout,
            headers={"X-Shopify-Access-Token": access_token.strip(), "Content-Type": "application/json"},
        )
        self._executor = executor or RateLimitedExecutor(self._session, sleep=sleep)
        self._pacer = pacer or Pacer(TRACKING_PACE, sleep=sleep)
        self.cache = cache or VariantCache()
        self._location_id: int | None = None

    def close(self) -> None:
        self._session.close()

    def _url(self, path: str) -> str:
        return f"{self.admin_url}/{path.lstrip('/')}"

    # cache

    def load_all_variants(self) -> int:
        """Rebuild the cache from every product, following since_id cursors."""
        variants: dict[str, StorefrontVariant] = {}
        since_id: int | None = None
        while True:
            params: dict[str, Any] = {"fields": "id,variants", "limit": PAGE_SIZE}
            if since_id is not None:
                params["since_id"] = since_id
            result = self._executor.execute("GET", self._url("products.json"), params=params)
            if result.rejected:
                logger.error("Product listing rejected after since_id=%s; stopping", since_id)
                break
            products = result.require().json().get("products") or []
            if not products:
                break
            for product in products:
                for raw in product.get("variants") or []:
                    if not raw.get("sku"):
                        continue
                    try:
                        variant = StorefrontVariant.from_payload(raw, product["id"])
                    except (KeyError, TypeError, ValueError) as exc:
                        logger.warning("Skipping variant %s: %s", raw.get("id"), exc)
                        continue
                    variants[variant.sku.value] = variant
            since_id = products[-1]["id"]
        self.cache.replace(variants)
        logger.info("Storefront variant cache loaded (%s SKUs)", len(variants))
        return len(variants)

    def reload(self) -> int:
        self.cache.invalidate()
        return self.load_all_variants()

    def lookup(self, sku: SkuLike) -> StorefrontVariant | None:
        # A miss means the SKU does not exist; it never triggers a reload.
        if not self.cache.loaded:
            self.load_all_variants()
        return self.cache.get(sku)

    def variant(self, sku: SkuLike) -> StorefrontVariant:
        variant = self.lookup(sku)
        if variant is None:
            raise ResourceNotFound(f"No storefront variant with SKU {sku}")
        return variant

    def variants(self) -> dict[str, StorefrontVariant]:
        if not self.cache.loaded:
            self.load_all_variants()
        return self.cache.snapshot()

    # price and stock

    def update_price(self, sku: SkuLike, price: Decimal) -> bool:
        try:
            variant = self.variant(sku)
        except ResourceNotFound:
            logger.warning("Variant %s not found on the storefront; price unchanged", sku)
            return False

        payload = {"variant": {"id": variant.variant_id, "price": _money(price)}}
        try:
            result = self._executor.execute(
                "PUT", self._url(f"variants/{variant.variant_id}.json"), json=payload
            )
        except (CatalogSyncError, httpx.HTTPError) as exc:
            logger.error("Failed to update price for %s: %s", sku, exc)
            raise
        if result.rejected:
            logger.error("Price update for %s rejected (variant %s)", sku, variant.variant_id)
            return False
        if result.exhausted:
            logger.warning("Price update for %s abandoned after rate limiting", sku)
            return False
        logger.info("Price updated for %s: %s", sku, _money(price))
        return True

    def location_id(self) -> int | None:
        if self._location_id is None:
            result = self._executor.execute("GET", self._url("locations.json"))
            if not result.ok:
                logger.warning("Could not resolve a storefront location (%s)", result.outcome.value)
                return None
            locations = result.json().get("locations") or []
            if locations:
                self._location_id = int(locations[0]["id"])
        return self._location_id

    def update_stock(self, sku: SkuLike, quantity: int) -> bool:
        try:
            variant = self.variant(sku)
        except ResourceNotFound:
            logger.warning("Variant %s not found on the storefront; stock unchanged", sku)
            return False
        if variant.inventory_item_id is None:
            logger.error("No inventory item for SKU %s", sku)
            return False

        try:
            location_id = self.location_id()
            if location_id is None:
                raise DependencyUnavailable("No location found on the storefront")
            payload = {
                "location_id": location_id,
                "inventory_item_id": variant.inventory_item_id,
                "available": int(quantity),
            }
            result = self._executor.execute("POST", self._url("inventory_levels/set.json"), json=payload)
        except (CatalogSyncError, httpx.HTTPError) as exc:
            logger.error("Failed to update stock for %s: %s", sku, exc)
            raise
        if result.rejected:
            logger.error(
                "Stock update for %s rejected (inventory item %s, location %s)",
                sku,
                variant.inventory_item_id,
                location_id,
            )
            return False
        if result.exhausted:
            logger.warning("Stock update for %s abandoned after rate limiting", sku)
            return False
        logger.info("Stock updated for %s: %s", sku, quantity)
        return True

    # reference mapping

    def map_references(self, skus: Iterable[SkuLike]) -> dict[str, StorefrontVariant]:
        """Map known SKUs to their variants, enabling inventory tracking where it is off.

        Unknown SKUs are left out of the result. So are variants whose tracking
        could not be confirmed as enabled.
        """
        if not self.cache.loaded:
            self.load_all_variants()
        mapping: dict[str, StorefrontVariant] = {}
        for sku in skus:
            variant = self.cache.get(sku)
            if variant is None:
                continue
            if not variant.tracked:
                variant = self._enable_tracking(variant)
                if variant is None:
                    continue
            mapping[str(sku)] = variant
        return mapping

    def _enable_tracking(self, variant: StorefrontVariant) -> StorefrontVariant | None:
        self._pacer.wait()
        payload = {
            "variant": {"id": variant.variant_id, "inventory_management": InventoryManagement.TRACKED.value}
        }
        try:
            result = self._executor.execute(
                "PUT", self._url(f"variants/{variant.variant_id}.json"), json=payload
            )
        except (CatalogSyncError, httpx.HTTPError) as exc:
            logger.warning("Could not enable inventory tracking for %s: %s", variant.sku, exc)
            return None
        if not result.ok:
            logger.warning("Inventory tracking for %s not enabled (%s)", variant.sku, result.outcome.value)
            return None
        confirmed = (result.json().get("variant") or {}).get("inventory_management")
        if confirmed != InventoryManagement.TRACKED.value:
            logger.warning("Storefront did not confirm inventory tracking for %s", variant.sku)
            return None
        updated = replace(variant, inventory_management=InventoryManagement.TRACKED)
        self.cache.put(updated)
        return updated

    # products

    def find_product_by_title(self, title: str) -> dict[str, Any] | None:
        result = self._executor.execute(
            "GET", self._url("products.json"), params={"title": title, "limit": TITLE_SEARCH_LIMIT}
        )
        products = result.require().json().get("products") or []
        for product in products:
            if product.get("title") == title:
                return product
        return None

    def create(self, record: NormalizedProductRecord) -> CreatedProduct:
        payload = build_product_payload(record)
        result = self._executor.execute("POST", self._url("products.json"), json=payload)
        if result.rejected:
            errors = _response_errors(result.response)
            logger.error("Storefront validation error creating %r: %s", record.title, errors)
            raise ValidationRejected(f"Storefront validation error: {errors}", body=result.response.text)
        try:
            response = result.require()
        except RateLimitExceeded:
            logger.error("Failed to create %r: still rate limited", record.title)
            raise

        product = CreatedProduct.from_payload(response.json().get("product") or {})
        logger.info("Product created: %r (id %s)", record.title, product.id)

        self.cache.invalidate()
        try:
            self.load_all_variants()
        except (CatalogSyncError, httpx.HTTPError) as exc:
            logger.warning("Cache reload after creating %r failed, deferring to next lookup: %s", record.title, exc)

        product.link_failures = self._link_variant_images(record, product)
        return product

    def _link_variant_images(
        self, record: NormalizedProductRecord, product: CreatedProduct
    ) -> list[ImageLinkFailure]:
        failures: list[ImageLinkFailure] = []
        if product.id is None:
            return failures
        for variant in record.variants:
            if not variant.image or not variant.sku:
                continue
            try:
                failure = self._link_variant_image(product, variant.sku, variant.image)
            except (CatalogSyncError, httpx.HTTPError) as exc:
                logger.warning("Failed to link image for %s on product %s: %s", variant.sku, product.id, exc)
                failure = ImageLinkFailure(variant.sku, variant.image, str(exc))
            if failure is not None:
                failures.append(failure)
        return failures

    def _link_variant_image(self, product: CreatedProduct, sku: str, image_url: str) -> ImageLinkFailure | None:
        variant_id = next(
            (cv.get("id") for cv in product.variants if cv.get("sku") and cv.get("sku") == sku), None
        )
        if variant_id is None:
            logger.warning("No created variant with SKU %s on product %s", sku, product.id)
            return ImageLinkFailure(sku, image_url, "no created variant with this SKU")

        image_id = _matching_image_id(product.images, image_url)
        if image_id is not None:
            result = self._executor.execute(
                "PUT",
                self._url(f"products/{product.id}/images/{image_id}.json"),
                json={"image": {"id": image_id, "variant_ids": [variant_id]}},
            )
            action = "association"
        else:
            result = self._executor.execute(
                "POST",
                self._url(f"products/{product.id}/images.json"),
                json={"image": {"src": image_url, "variant_ids": [variant_id]}},
            )
            action = "upload"
        if not result.ok:
            logger.warning("Image %s for %s %s", action, sku, result.outcome.value)
            return ImageLinkFailure(sku, image_url, f"image {action} {result.outcome.value}")
        logger.info("Linked image to variant %s (product %s) by %s", variant_id, product.id, action)
        return None


def build_product_payload(record: NormalizedProductRecord) -> dict[str, Any]:
    variants: list[dict[str, Any]] = []
    for variant in record.variants:
        entry: dict[str, Any] = {
            "option1": variant.name or "Default",
            "price": _money(variant.price if variant.price is not None else record.price),
            "sku": variant.sku,
            "inventory_management": InventoryManagement.TRACKED.value,
            "inventory_policy": "deny",
        }
        compare_at = variant.old_price if variant.old_price is not None else record.old_price
        if compare_at is not None:
            entry["compare_at_price"] = _money(compare_at)
        variants.append(entry)

    if not variants:
        default: dict[str, Any] = {
            "option1": "Default",
            "price": _money(record.price),
            "sku": record.metadata.get("sku") or None,
            "inventory_management": InventoryManagement.TRACKED.value,
            "inventory_policy": "deny",
        }
        if record.old_price is not None:
            default["compare_at_price"] = _money(record.old_price)
        variants.append(default)

    product: dict[str, Any] = {
        "title": record.title,
        "body_html": record.description or "",
        "vendor": record.supplier or "Unknown",
        "product_type": record.metadata.get("platform") or record.supplier,
        "tags": ", ".join(product_tags(record)),
        "variants": variants,
        "images": [{"src": url} for url in record.images],
        "status": DRAFT,
    }
    metafields = [
        {"namespace": "custom", "key": key, "value": str(value), "type": "single_line_text_field"}
        for key, value in record.metadata.items()
        if value is not None and value != ""
    ]
    if metafields:
        product["metafields"] = metafields
    return {"product": product}


def product_tags(record: NormalizedProductRecord) -> list[str]:
    tags = [record.supplier]
    if record.discount is not None and record.discount > 0:
        tags.append("Promo")
        tags.append(f"-{record.discount.normalize():f}%")
    if record.variants:
        tags.append(f"{len(record.variants)} variants")
    return tags


def _matching_image_id(images: list[dict[str, Any]], image_url: str) -> int | None:
    # CDN rewriting means either URL may contain the other.
    for image in images:
        src = image.get("src") or ""
        if src and (image_url in src or src in image_url):
            return image.get("id")
    return None


def _money(value: Decimal) -> str:
    return f"{Decimal(value):.2f}"


def _response_errors(response: httpx.Response) -> Any:
    try:
        data = response.json()
    except ValueError:
        return response.text
    return data.get("errors", "Unknown error") if isinstance(data, dict) else data
