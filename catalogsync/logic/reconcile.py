"""Price reconciliation between the storefront and the ERP."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import httpx

from catalogsync.clients.erp import ErpClient
from catalogsync.clients.storefront import StorefrontClient
from catalogsync.errors import CatalogSyncError
from catalogsync.ingest.ledger import LedgerEntry
from catalogsync.logic.prices import prices_differ, to_cents
from catalogsync.models import CatalogItem, PriceDifference, StorefrontVariant

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PriceComparison:
    differences: list[PriceDifference] = field(default_factory=list)
    storefront_only: list[str] = field(default_factory=list)
    erp_only: list[str] = field(default_factory=list)
    matched: int = 0


@dataclass(slots=True)
class PurchasePriceUpdate:
    reference: str
    item_id: int
    previous: Decimal
    price: Decimal


@dataclass(slots=True)
class WriteFailure:
    reference: str
    error: str


@dataclass(slots=True)
class SyncReport:
    comparison: PriceComparison | None = None
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[WriteFailure] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return {"updated": len(self.updated), "skipped": len(self.skipped), "failed": len(self.failed)}


def storefront_price_index(variants: Iterable[StorefrontVariant]) -> dict[str, Decimal]:
    return {variant.sku.value: variant.price for variant in variants}


def erp_item_index(items: Iterable[CatalogItem]) -> dict[str, CatalogItem]:
    return {item.reference.value: item for item in items}


def compare_prices(
    storefront_prices: Mapping[str, Any], erp_items: Mapping[str, CatalogItem]
) -> PriceComparison:
    """Diff storefront prices against ERP reference prices, SKU by SKU.

    ``delta`` is storefront minus ERP. SKUs present on one side only are
    reported and never written.
    """
    comparison = PriceComparison()
    for sku, storefront_price in storefront_prices.items():
        item = erp_items.get(sku)
        if item is None:
            logger.warning("SKU %s exists on the storefront but not in the ERP", sku)
            comparison.storefront_only.append(sku)
            continue
        if not prices_differ(storefront_price, item.reference_price):
            comparison.matched += 1
            continue
        storefront_amount = to_cents(storefront_price)
        erp_amount = to_cents(item.reference_price)
        comparison.differences.append(
            PriceDifference(
                reference=item.reference,
                storefront_price=storefront_amount,
                erp_price=erp_amount,
                delta=storefront_amount - erp_amount,
                erp_item_id=item.id,
            )
        )
    for sku in erp_items:
        if sku not in storefront_prices:
            logger.warning("Reference %s exists in the ERP but not on the storefront", sku)
            comparison.erp_only.append(sku)
    return comparison


def match_purchase_prices(
    items: Iterable[CatalogItem], ledger: Sequence[LedgerEntry]
) -> list[PurchasePriceUpdate]:
    updates = []
    for item in items:
        for entry in ledger:
            if entry.reference != item.reference.value or entry.price is None:
                continue
            if prices_differ(entry.price, item.purchase_amount):
                updates.append(
                    PurchasePriceUpdate(item.reference.value, item.id, item.purchase_amount, entry.price)
                )
                break
    return updates


def format_differences(differences: Sequence[PriceDifference]) -> str:
    lines = [f"{'Reference':<20} {'Storefront':>12} {'ERP':>12} {'Delta':>10} {'ERP id':>10}"]
    for diff in differences:
        lines.append(
            f"{diff.reference.value:<20} {diff.storefront_price:>12} {diff.erp_price:>12} "
            f"{diff.delta:>+10} {diff.erp_item_id:>10}"
        )
    return "\n".join(lines)


def apply_purchase_prices(erp: ErpClient, ledger: Sequence[LedgerEntry]) -> SyncReport:
    """Write ledger purchase prices to ERP items whose purchase amount differs."""
    report = SyncReport()
    for update in match_purchase_prices(erp.list_items(), ledger):
        logger.info(
            "Updating purchase price of %s (id %s) from %s to %s",
            update.reference,
            update.item_id,
            to_cents(update.previous),
            to_cents(update.price),
        )
        _write_back(report, update.reference, erp.update_purchase_amount, update.item_id, update.price)
    return report


class ReconciliationEngine:
    """Pull both catalogs, diff them and write corrections back to the ERP."""

    def __init__(self, storefront: StorefrontClient, erp: ErpClient) -> None:
        self.storefront = storefront
        self.erp = erp

    def compare(self) -> PriceComparison:
        storefront_prices = storefront_price_index(self.storefront.variants().values())
        erp_items = erp_item_index(self.erp.list_items())
        logger.info(
            "Comparing %s storefront SKUs with %s ERP references", len(storefront_prices), len(erp_items)
        )
        return compare_prices(storefront_prices, erp_items)

    def sync_prices(self) -> SyncReport:
        comparison = self.compare()
        report = SyncReport(comparison=comparison)
        if not comparison.differences:
            logger.info("No price differences between storefront and ERP")
            return report
        logger.warning(
            "%s reference(s) with differing prices:\n%s",
            len(comparison.differences),
            format_differences(comparison.differences),
        )
        for diff in comparison.differences:
            _write_back(
                report,
                diff.reference.value,
                self.erp.update_reference_price,
                diff.erp_item_id,
                diff.storefront_price,
            )
        return report

    def update_purchase_prices(self, ledger: Sequence[LedgerEntry]) -> SyncReport:
        return apply_purchase_prices(self.erp, ledger)


def _write_back(
    report: SyncReport,
    reference: str,
    write: Callable[[int, Decimal], bool],
    item_id: int,
    price: Decimal,
) -> None:
    try:
        written = write(item_id, price)
    except (CatalogSyncError, httpx.HTTPError) as exc:
        logger.error("Write-back for %s failed: %s", reference, exc)
        report.failed.append(WriteFailure(reference, str(exc)))
        return
    if written:
        report.updated.append(reference)
    else:
        report.skipped.append(reference)
