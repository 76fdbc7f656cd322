"""Import a batch of scraped products from a YAML or JSON file."""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from catalogsync.clients import build_storefront_client
from catalogsync.config import Settings, log_level
from catalogsync.ingest import load_records
from catalogsync.logic.importer import ProductImporter


def main() -> None:
    if len(sys.argv) != 2:
        print("usage: import_products.py PRODUCTS_FILE", file=sys.stderr)
        sys.exit(1)
    load_dotenv()
    logging.basicConfig(level=log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        settings = Settings.from_env(require_erp=False)
    except KeyError as exc:
        print(f"Missing environment variable: {exc}", file=sys.stderr)
        sys.exit(1)

    client = build_storefront_client(settings)
    try:
        report = ProductImporter(client).import_batch(load_records(sys.argv[1]))
    finally:
        client.close()
    for outcome in report.failed:
        print(f"FAILED  {outcome.title}: {outcome.error}")
    for outcome in report.skipped:
        print(f"SKIPPED {outcome.title} (id {outcome.product_id})")
    print(report.message)
    sys.exit(2 if report.failed else 0)


if __name__ == "__main__":
    main()
