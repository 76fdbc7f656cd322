"""Price reconciliation and purchase-price update jobs."""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from catalogsync.clients import build_erp_client, build_storefront_client
from catalogsync.config import Settings, log_level
from catalogsync.ingest.ledger import load_ledger
from catalogsync.logic.reconcile import ReconciliationEngine, SyncReport, apply_purchase_prices

logger = logging.getLogger(__name__)


def run_price_reconciliation(settings: Settings | None = None) -> SyncReport:
    load_dotenv()
    settings = settings or Settings.from_env()
    storefront = build_storefront_client(settings)
    erp = build_erp_client(settings)
    try:
        report = ReconciliationEngine(storefront, erp).sync_prices()
    finally:
        storefront.close()
        erp.close()
    logger.info("Price reconciliation finished: %s", report.summary())
    return report


def run_purchase_price_update(ledger_path: str | None = None, settings: Settings | None = None) -> SyncReport:
    load_dotenv()
    settings = settings or Settings.from_env()
    path = ledger_path or settings.purchase_ledger_path
    if not path:
        raise ValueError("No purchase ledger given; set PURCHASE_LEDGER_PATH or pass a path")
    ledger = load_ledger(path)
    erp = build_erp_client(settings)
    try:
        report = apply_purchase_prices(erp, ledger)
    finally:
        erp.close()
    logger.info("Purchase price update finished: %s", report.summary())
    return report


def main() -> None:
    parser = argparse.ArgumentParser(description="Reconcile catalog prices between storefront and ERP")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("product-prices", help="write storefront prices back to ERP reference prices")
    purchase = sub.add_parser("purchase-prices", help="apply a CSV ledger to ERP purchase prices")
    purchase.add_argument("ledger", nargs="?", help="CSV file; defaults to PURCHASE_LEDGER_PATH")
    args = parser.parse_args()

    logging.basicConfig(level=log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if args.command == "product-prices":
        run_price_reconciliation()
    else:
        run_purchase_price_update(args.ledger)


if __name__ == "__main__":
    main()
