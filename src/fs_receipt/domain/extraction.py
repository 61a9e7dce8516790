"""Normalise untrusted extraction output into an ExtractedReceipt.

The extraction collaborator returns loosely typed JSON (floats or strings in
currency units, missing fields). Nothing here assumes subtotal, items and
total agree with each other; only the shape is fixed.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime

from src.fs_common.errors import ReconciliationInputError
from src.fs_common.money import to_cents
from src.fs_receipt.domain.models import ExtractedItem, ExtractedReceipt

logger = logging.getLogger(__name__)

DEFAULT_MERCHANT = "Unknown Store"


def _amount(raw: Mapping[str, object], key: str) -> int:
    value = raw.get(key)
    if value is None or value == "":
        return 0
    try:
        return to_cents(value)
    except ValueError:
        raise ReconciliationInputError(f"{key} is not a monetary amount: {value!r}") from None


def _parse_date(value: object) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.info("Ignoring unparsable receipt date: %r", value)
        return None


def normalize_extraction(raw: Mapping[str, object]) -> ExtractedReceipt:
    merchant = str(raw.get("merchant") or "").strip() or DEFAULT_MERCHANT
    subtotal = _amount(raw, "subtotal")
    tax = _amount(raw, "tax")
    tip = _amount(raw, "tip")
    total = _amount(raw, "total")
    if total <= 0:
        raise ReconciliationInputError("receipt has no usable total")

    raw_items = raw.get("items") or []
    if not isinstance(raw_items, Sequence) or isinstance(raw_items, (str, bytes)):
        raise ReconciliationInputError("items must be a list")

    items: list[ExtractedItem] = []
    for index, entry in enumerate(raw_items):
        if not isinstance(entry, Mapping):
            raise ReconciliationInputError(f"item {index + 1} is not an object")
        name = str(entry.get("name") or "").strip() or f"Item {index + 1}"
        items.append(ExtractedItem(name=name, price_cents=_amount(entry, "price")))

    if not items:
        # Degraded path: one editable line carrying the whole pre-tax amount
        fallback_price = subtotal if subtotal > 0 else total
        logger.warning(
            "Extraction returned no items for %r; using a single fallback item of %d cents",
            merchant, fallback_price,
        )
        items = [ExtractedItem(name=merchant, price_cents=fallback_price)]

    return ExtractedReceipt(
        merchant=merchant,
        receipt_date=_parse_date(raw.get("date")),
        items=items,
        subtotal_cents=subtotal,
        tax_cents=tax,
        tip_cents=tip,
        total_cents=total,
    )
