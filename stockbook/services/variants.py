from __future__ import annotations

import logging
from typing import Any, Mapping

from stockbook.errors import ConstraintViolation, InvariantViolation, NotFoundError
from stockbook.schema import DEFAULT_COLOR, DEFAULT_SIZE
from stockbook.services.common import duplicate_error, insert_variant, variant_input
from stockbook.utils import to_int_id

logger = logging.getLogger(__name__)


def list_variants_for_product(store, product_id) -> list[dict]:
    """Default variant first, then by size and color (case-insensitive)."""
    pid = to_int_id(product_id, "product id")
    rows = store.q(
        """
        SELECT id, product_id, size, color, qty
        FROM product_variants
        WHERE product_id = ?
        ORDER BY
          CASE WHEN size = ? AND color = ? THEN 0 ELSE 1 END,
          size COLLATE NOCASE,
          color COLLATE NOCASE
        """,
        (pid, DEFAULT_SIZE, DEFAULT_COLOR),
    )
    return [dict(r) for r in rows]


def add_variant(store, variant: Mapping[str, Any]) -> int:
    variant = variant or {}
    pid = to_int_id(variant.get("product_id"), "product id")
    v = variant_input(variant)

    try:
        with store.transaction():
            if store.one("SELECT id FROM products WHERE id=?", (pid,)) is None:
                raise NotFoundError("Product not found.")
            variant_id = insert_variant(store, pid, v)
            store.x("UPDATE products SET qty = qty + ? WHERE id = ?", (v.qty, pid))
    except ConstraintViolation as e:
        raise duplicate_error(e) from e

    logger.info("Added variant %s (%s / %s) to product %s", variant_id, v.size, v.color, pid)
    return variant_id


def delete_variant(store, variant_id) -> dict:
    """
    Delete a variant with its movements and take its qty off the product.
    A product always keeps at least one variant.
    """
    vid = to_int_id(variant_id, "variant id")

    with store.transaction():
        row = store.one("SELECT product_id, qty FROM product_variants WHERE id = ?", (vid,))
        if row is None:
            raise NotFoundError("Variant not found.")
        product_id = int(row["product_id"])

        siblings = store.one(
            "SELECT COUNT(*) AS n FROM product_variants WHERE product_id = ?", (product_id,)
        )
        if int(siblings["n"]) <= 1:
            raise InvariantViolation("Cannot delete the last variant.")

        deleted_movements = store.x("DELETE FROM movements WHERE variant_id = ?", (vid,)).rowcount
        store.x("DELETE FROM product_variants WHERE id = ?", (vid,))
        store.x("UPDATE products SET qty = qty - ? WHERE id = ?", (row["qty"], product_id))

    logger.info("Deleted variant %s of product %s", vid, product_id)
    return {"variant_id": vid, "product_id": product_id, "deleted_movements": int(deleted_movements)}
