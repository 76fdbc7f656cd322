"""Idempotent import of scraped products into the storefront."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from catalogsync.clients.storefront import StorefrontClient
from catalogsync.errors import CatalogSyncError
from catalogsync.ingest.models import InvalidRecord, NormalizedProductRecord
from catalogsync.models import ImageLinkFailure

logger = logging.getLogger(__name__)


class ImportStatus(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class ImportOutcome:
    status: ImportStatus
    title: str
    source_url: str | None = None
    product_id: int | None = None
    handle: str | None = None
    reason: str | None = None
    error: str | None = None
    variants_count: int = 0
    images_count: int = 0
    link_failures: list[ImageLinkFailure] = field(default_factory=list)


@dataclass(slots=True)
class ImportReport:
    created: list[ImportOutcome] = field(default_factory=list)
    skipped: list[ImportOutcome] = field(default_factory=list)
    failed: list[ImportOutcome] = field(default_factory=list)

    def add(self, outcome: ImportOutcome) -> None:
        {
            ImportStatus.CREATED: self.created,
            ImportStatus.SKIPPED: self.skipped,
            ImportStatus.FAILED: self.failed,
        }[outcome.status].append(outcome)

    @property
    def counts(self) -> dict[str, int]:
        return {"created": len(self.created), "skipped": len(self.skipped), "failed": len(self.failed)}

    @property
    def message(self) -> str:
        return (
            f"{len(self.created)} product(s) imported, {len(self.skipped)} skipped (duplicate), "
            f"{len(self.failed)} error(s)"
        )


RecordLike = NormalizedProductRecord | Mapping[str, Any]


class ProductImporter:
    def __init__(self, storefront: StorefrontClient) -> None:
        self.storefront = storefront

    def import_record(self, record: RecordLike) -> ImportOutcome:
        title = _title_of(record)
        try:
            if not isinstance(record, NormalizedProductRecord):
                record = NormalizedProductRecord.from_mapping(record)
            existing = self.storefront.find_product_by_title(record.title)
            if existing is not None:
                logger.warning("Product %r already exists (id %s), skipping", record.title, existing.get("id"))
                return ImportOutcome(
                    status=ImportStatus.SKIPPED,
                    title=record.title,
                    source_url=record.source_url,
                    product_id=existing.get("id"),
                    handle=existing.get("handle"),
                    reason="A product with this title already exists",
                )
            product = self.storefront.create(record)
        except (InvalidRecord, CatalogSyncError, httpx.HTTPError) as exc:
            logger.error("Import of %r failed: %s", title, exc)
            return ImportOutcome(
                status=ImportStatus.FAILED,
                title=title,
                source_url=_source_url_of(record),
                error=str(exc),
            )
        except Exception as exc:
            logger.exception("Unexpected error importing %r", title)
            return ImportOutcome(
                status=ImportStatus.FAILED,
                title=title,
                source_url=_source_url_of(record),
                error=f"{type(exc).__name__}: {exc}",
            )

        logger.info("Imported %r (id %s)", record.title, product.id)
        return ImportOutcome(
            status=ImportStatus.CREATED,
            title=record.title,
            source_url=record.source_url,
            product_id=product.id,
            handle=product.handle,
            variants_count=len(record.variants),
            images_count=len(record.images),
            link_failures=product.link_failures,
        )

    def import_batch(self, records: Iterable[RecordLike]) -> ImportReport:
        report = ImportReport()
        for index, record in enumerate(records):
            logger.info("Importing product %s: %r", index, _title_of(record))
            report.add(self.import_record(record))
        logger.info(report.message)
        return report


def _title_of(record: RecordLike) -> str:
    if isinstance(record, NormalizedProductRecord):
        return record.title
    if not isinstance(record, Mapping):
        return "Unknown"
    return str(record.get("title") or "Unknown")


def _source_url_of(record: RecordLike) -> str | None:
    if isinstance(record, NormalizedProductRecord):
        return record.source_url
    if not isinstance(record, Mapping):
        return None
    return record.get("sourceUrl", record.get("source_url"))
