"""Purchase-price ledger ingestion."""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

from catalogsync.logic.prices import parse_price

logger = logging.getLogger(__name__)

REFERENCE_COLUMN = 0
PRICE_COLUMN = 5


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    reference: str
    price: Decimal | None
    raw_price: str = ""


def parse_ledger(rows: Iterable[tuple[str, str]]) -> list[LedgerEntry]:
    """Turn ``(reference, raw price text)`` pairs into ledger entries."""
    entries = []
    for reference, raw_price in rows:
        reference = (reference or "").strip()
        if not reference:
            continue
        entries.append(LedgerEntry(reference, parse_price(raw_price), raw_price or ""))
    return entries


def load_ledger(
    path: Path | str,
    *,
    reference_column: int = REFERENCE_COLUMN,
    price_column: int = PRICE_COLUMN,
    delimiter: str = ",",
) -> list[LedgerEntry]:
    path = Path(path)
    pairs: list[tuple[str, str]] = []
    with path.open(newline="", encoding="utf-8-sig") as handle:
        for row in csv.reader(handle, delimiter=delimiter):
            if len(row) <= reference_column:
                continue
            raw_price = row[price_column] if len(row) > price_column else ""
            pairs.append((row[reference_column], raw_price))
    entries = parse_ledger(pairs)
    logger.info("Loaded %s ledger entries from %s", len(entries), path)
    return entries
