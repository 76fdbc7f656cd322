"""Celery configuration for scheduled reconciliation."""

from __future__ import annotations

import os

from celery import Celery
from celery.schedules import crontab

from catalogsync.utils.dates import timezone_name

redis_url = os.environ.get("REDIS_URL", "redis://redis:6379/0")

celery_app = Celery("catalogsync", broker=redis_url, backend=redis_url)
celery_app.conf.timezone = timezone_name()
celery_app.conf.beat_schedule = {
    "nightly-price-reconciliation": {
        "task": "catalogsync.jobs.prices.run_price_reconciliation",
        "schedule": crontab(
            hour=int(os.environ.get("RECONCILE_HOUR", "2")),
            minute=int(os.environ.get("RECONCILE_MINUTE", "0")),
        ),
    },
}


@celery_app.task(name="catalogsync.jobs.prices.run_price_reconciliation")
def run_price_reconciliation_task() -> dict[str, int]:  # pragma: no cover - executed by worker
    from catalogsync.jobs.prices import run_price_reconciliation

    return run_price_reconciliation().summary()


@celery_app.task(name="catalogsync.jobs.prices.run_purchase_price_update")
def run_purchase_price_update_task(ledger_path: str | None = None) -> dict[str, int]:  # pragma: no cover
    from catalogsync.jobs.prices import run_purchase_price_update

    return run_purchase_price_update(ledger_path).summary()
