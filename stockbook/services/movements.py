from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional

from stockbook.errors import NotFoundError, ValidationError
from stockbook.utils import clamp_limit, clean_text, to_int_id, to_number

logger = logging.getLogger(__name__)


def _sold_price(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    n = to_number(value, math.nan)
    if not math.isfinite(n) or n < 0:
        raise ValidationError("Sold price must be a non-negative number.")
    return n


def post_movement(store, movement: Mapping[str, Any]) -> int:
    """
    Record a stock-in (qty_change > 0) or stock-out (qty_change < 0).

    The movement row, the variant qty and the product's cached qty are written
    in one transaction so the product total never drifts from its variants.
    Returns the new movement id.
    """
    movement = movement or {}
    vid = to_int_id(movement.get("variant_id"), "variant id")

    change = to_number(movement.get("qty_change"), math.nan)
    if not math.isfinite(change) or change == 0:
        raise ValidationError("Quantity change must be a non-zero number.")

    reason = clean_text(movement.get("reason"))
    sold_price = _sold_price(movement.get("sold_price"))
    if sold_price is not None and change > 0:
        raise ValidationError("Sold price is only allowed for stock-out movements.")

    with store.transaction():
        row = store.one("SELECT product_id FROM product_variants WHERE id = ?", (vid,))
        if row is None:
            raise NotFoundError("Variant not found.")
        product_id = int(row["product_id"])

        movement_id = int(
            store.x(
                "INSERT INTO movements (variant_id, qty_change, reason, sold_price) VALUES (?, ?, ?, ?)",
                (vid, change, reason, sold_price),
            ).lastrowid
        )
        store.x("UPDATE product_variants SET qty = qty + ? WHERE id = ?", (change, vid))
        store.x("UPDATE products SET qty = qty + ? WHERE id = ?", (change, product_id))

    logger.info("Movement %s: variant %s %+g (%s)", movement_id, vid, change, reason or "no reason")
    return movement_id


def list_movements_for_variant(store, variant_id, limit: Any = 200) -> list[dict]:
    vid = to_int_id(variant_id, "variant id")
    rows = store.q(
        """
        SELECT id, variant_id, qty_change, reason, sold_price, created_at
        FROM movements
        WHERE variant_id = ?
        ORDER BY datetime(created_at) DESC, id DESC
        LIMIT ?
        """,
        (vid, clamp_limit(limit)),
    )
    return [dict(r) for r in rows]


def list_movements_for_product(store, product_id, limit: Any = 200) -> list[dict]:
    """Movements across all of a product's variants, each tagged with its size/color."""
    pid = to_int_id(product_id, "product id")
    rows = store.q(
        """
        SELECT
          m.id,
          m.qty_change,
          m.reason,
          m.sold_price,
          m.created_at,
          v.id AS variant_id,
          v.size,
          v.color
        FROM movements m
        JOIN product_variants v ON v.id = m.variant_id
        WHERE v.product_id = ?
        ORDER BY datetime(m.created_at) DESC, m.id DESC
        LIMIT ?
        """,
        (pid, clamp_limit(limit)),
    )
    return [dict(r) for r in rows]
