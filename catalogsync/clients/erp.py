"""ERP platform client: paginated item listing and price write-back."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

import httpx

from catalogsync.clients.auth import AccessTokenProvider
from catalogsync.models import CatalogItem
from catalogsync.utils.retry import RateLimitedExecutor

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
PRODUCT_KIND = "product"


class EnvelopeShape(Enum):
    RESPONSE_ITEMS = "response.items"
    ITEMS = "items"
    DATA = "data"
    UNRECOGNIZED = "unrecognized"


@dataclass(slots=True)
class ItemPage:
    shape: EnvelopeShape
    items: list[dict[str, Any]] = field(default_factory=list)


def decode_item_page(payload: Any) -> ItemPage:
    """Locate the item array in one of the listing envelopes the ERP returns."""
    if isinstance(payload, dict):
        nested = payload.get("response")
        if isinstance(nested, dict) and isinstance(nested.get("items"), list):
            return ItemPage(EnvelopeShape.RESPONSE_ITEMS, nested["items"])
        if isinstance(payload.get("items"), list):
            return ItemPage(EnvelopeShape.ITEMS, payload["items"])
        if isinstance(payload.get("data"), list):
            return ItemPage(EnvelopeShape.DATA, payload["data"])
    return ItemPage(EnvelopeShape.UNRECOGNIZED)


class ErpClient:
    def __init__(
        self,
        api_url: str,
        tokens: AccessTokenProvider,
        *,
        session: httpx.Client | None = None,
        executor: RateLimitedExecutor | None = None,
        timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.tokens = tokens
        self._session = session or httpx.Client(timeout=timeout)
        self._executor = executor or RateLimitedExecutor(self._session, sleep=sleep)

    def close(self) -> None:
        self._session.close()
        self.tokens.close()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens.token()}"}

    def list_items(self) -> list[CatalogItem]:
        """Walk the item listing and keep product-kind entries, in discovery order.

        The offset advances by the raw page length, before filtering, and the
        walk stops at the first short or empty page.
        """
        items: list[CatalogItem] = []
        offset = 0
        while True:
            result = self._executor.execute(
                "GET",
                f"{self.api_url}/items",
                params={"limit": PAGE_SIZE, "offset": offset},
                headers=self._headers(),
            )
            if result.rejected:
                logger.error("ERP listing rejected at offset %s; stopping", offset)
                break
            page = decode_item_page(result.require().json())
            if page.shape is EnvelopeShape.UNRECOGNIZED:
                logger.warning("Unrecognized ERP listing envelope at offset %s", offset)

            fetched = len(page.items)
            for raw in page.items:
                if not isinstance(raw, dict):
                    logger.warning("Skipping malformed ERP listing entry at offset %s: %r", offset, raw)
                    continue
                if raw.get("type") != PRODUCT_KIND:
                    continue
                try:
                    items.append(CatalogItem.from_payload(raw))
                except (KeyError, TypeError, ValueError) as exc:
                    logger.warning("Skipping ERP item %s: %s", raw.get("id"), exc)
            offset += fetched
            if fetched < PAGE_SIZE or fetched == 0:
                break
        logger.info("Loaded %s ERP product items", len(items))
        return items

    def update_reference_price(self, item_id: int, price: Decimal) -> bool:
        return self._update_item(item_id, {"reference_price": _format_amount(price)})

    def update_purchase_amount(self, item_id: int, price: Decimal) -> bool:
        return self._update_item(item_id, {"purchase_amount": _format_amount(price)})

    def _update_item(self, item_id: int, payload: dict[str, str]) -> bool:
        result = self._executor.execute(
            "PUT", f"{self.api_url}/items/{item_id}", json=payload, headers=self._headers()
        )
        if result.rejected:
            logger.error("ERP rejected update of item %s: %s", item_id, payload)
            return False
        if result.exhausted:
            logger.warning("ERP update of item %s abandoned after rate limiting", item_id)
            return False
        logger.info("Updated ERP item %s: %s", item_id, payload)
        return True


def _format_amount(value: Decimal) -> str:
    return f"{Decimal(value):.2f}"
