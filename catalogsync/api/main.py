"""FastAPI application receiving scraped products for import."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import asdict
from typing import Any

from fastapi import Depends, FastAPI
from pydantic import BaseModel

from catalogsync.clients import build_storefront_client
from catalogsync.config import Settings
from catalogsync.logic.importer import ImportOutcome, ImportReport, ProductImporter
from catalogsync.utils.dates import format_timestamp, now_in_tz

logger = logging.getLogger(__name__)

app = FastAPI(title="Catalog Sync Import API")


class ImportRequest(BaseModel):
    products: list[dict[str, Any]]


class ImportResponse(BaseModel):
    success: bool
    imported: int
    skipped: int
    errors: int
    details: dict[str, list[dict[str, Any]]]
    message: str


def get_importer() -> Iterator[ProductImporter]:
    client = build_storefront_client(Settings.from_env(require_erp=False))
    try:
        yield ProductImporter(client)
    finally:
        client.close()


@app.post("/api/storefront/import", response_model=ImportResponse)
def import_products(payload: ImportRequest, importer: ProductImporter = Depends(get_importer)) -> ImportResponse:
    logger.info("Received %s product(s) to import", len(payload.products))
    report = importer.import_batch(payload.products)
    return _to_response(report)


@app.get("/api/storefront/health")
def health() -> dict[str, str]:
    return {
        "status": "ok",
        "service": "Storefront Import API",
        "timestamp": format_timestamp(now_in_tz()),
    }


def _to_response(report: ImportReport) -> ImportResponse:
    return ImportResponse(
        success=bool(report.created),
        imported=len(report.created),
        skipped=len(report.skipped),
        errors=len(report.failed),
        details={
            "created": [_outcome_dict(o) for o in report.created],
            "skipped": [_outcome_dict(o) for o in report.skipped],
            "failures": [_outcome_dict(o) for o in report.failed],
        },
        message=report.message,
    )


def _outcome_dict(outcome: ImportOutcome) -> dict[str, Any]:
    data = asdict(outcome)
    data["status"] = outcome.status.value
    return {key: value for key, value in data.items() if value not in (None, [])}
