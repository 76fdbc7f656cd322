"""Price parsing and comparison helpers."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
NON_NUMERIC_RE = re.compile(r"[^0-9,.\-]")


def parse_price(raw: str | None) -> Decimal | None:
    """Parse free-form price text such as ``"1 535,00€"`` or ``"1,234.56"``.

    When both separators appear, the last one is the decimal point and the
    other groups thousands. A lone comma is a decimal point.
    """
    if raw is None:
        return None
    text = str(raw).replace("\xa0", " ").strip()
    text = NON_NUMERIC_RE.sub("", text)
    if not text:
        return None

    has_dot = "." in text
    has_comma = "," in text
    if has_dot and has_comma:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif has_comma:
        if text.count(",") > 1:
            text = text.replace(",", "")
        else:
            text = text.replace(",", ".")
    elif text.count(".") > 1:
        text = text.replace(".", "")

    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def to_cents(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def prices_differ(left: Any, right: Any) -> bool:
    """Compare two amounts at cent precision."""
    return to_cents(left) != to_cents(right)
