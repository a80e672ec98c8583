from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from stockbook.errors import ConstraintViolation, ValidationError
from stockbook.schema import DEFAULT_COLOR, DEFAULT_SIZE
from stockbook.services.common import VariantInput, duplicate_error, insert_variant, variant_input
from stockbook.utils import clean_text, to_int_id, to_number

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, sku, category_id, cost_price, sell_price, qty"


@dataclass
class ProductInput:
    name: str
    sku: Optional[str]
    category_id: Optional[int]
    cost_price: float
    sell_price: float


def _product_input(product: Optional[Mapping[str, Any]]) -> ProductInput:
    product = product or {}
    name = clean_text(product.get("name"))
    if not name:
        raise ValidationError("Name is required.")

    category_id = product.get("category_id")
    if category_id is None or (isinstance(category_id, str) and not category_id.strip()):
        category_id = None
    else:
        category_id = to_int_id(category_id, "category id")

    return ProductInput(
        name=name,
        sku=clean_text(product.get("sku")),
        category_id=category_id,
        cost_price=to_number(product.get("cost_price"), 0),
        sell_price=to_number(product.get("sell_price"), 0),
    )


def list_products(store) -> list[dict]:
    rows = store.q(f"SELECT {PRODUCT_COLUMNS} FROM products ORDER BY id")
    return [dict(r) for r in rows]


def get_product_by_id(store, product_id) -> Optional[dict]:
    pid = to_int_id(product_id, "product id")
    r = store.one(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id=?", (pid,))
    return dict(r) if r else None


def _insert_product(store, p: ProductInput, variants: Iterable[VariantInput]) -> int:
    variants = list(variants)
    total_qty = sum(v.qty for v in variants)
    try:
        with store.transaction():
            product_id = int(
                store.x(
                    """
                    INSERT INTO products (name, sku, category_id, cost_price, sell_price, qty)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (p.name, p.sku, p.category_id, p.cost_price, p.sell_price, total_qty),
                ).lastrowid
            )
            for v in variants:
                insert_variant(store, product_id, v)
    except ConstraintViolation as e:
        raise duplicate_error(e) from e

    logger.info("Created product %s (%s) with %s variant(s)", product_id, p.name, len(variants))
    return product_id


def create_product(store, product: Mapping[str, Any]) -> int:
    """Create a product with its single default variant ("One Size" / "N/A", qty 0)."""
    p = _product_input(product)
    return _insert_product(store, p, [VariantInput(size=DEFAULT_SIZE, color=DEFAULT_COLOR, qty=0)])


def create_product_with_variants(store, product: Mapping[str, Any], variants: Optional[list]) -> int:
    if not variants:
        return create_product(store, product)
    p = _product_input(product)
    parsed = [variant_input(v) for v in variants]
    return _insert_product(store, p, parsed)


def update_product(store, product_id, updates: Mapping[str, Any]) -> int:
    """
    Update descriptive fields only; qty belongs to variants and movements.
    Returns the number of rows changed (0 when the id doesn't exist).
    """
    pid = to_int_id(product_id, "product id")
    p = _product_input(updates)
    try:
        cur = store.x(
            """
            UPDATE products
            SET name = ?, sku = ?, category_id = ?, cost_price = ?, sell_price = ?
            WHERE id = ?
            """,
            (p.name, p.sku, p.category_id, p.cost_price, p.sell_price, pid),
        )
    except ConstraintViolation as e:
        raise duplicate_error(e) from e
    return int(cur.rowcount)


def delete_product(store, product_id) -> dict:
    pid = to_int_id(product_id, "product id")
    with store.transaction():
        variant_ids = [
            int(r["id"]) for r in store.q("SELECT id FROM product_variants WHERE product_id=?", (pid,))
        ]

        deleted_movements = 0
        if variant_ids:
            placeholders = ", ".join("?" for _ in variant_ids)
            deleted_movements = store.x(
                f"DELETE FROM movements WHERE variant_id IN ({placeholders})", variant_ids
            ).rowcount

        deleted_variants = store.x("DELETE FROM product_variants WHERE product_id=?", (pid,)).rowcount
        deleted_products = store.x("DELETE FROM products WHERE id=?", (pid,)).rowcount

    if deleted_products:
        logger.info("Deleted product %s (%s variants, %s movements)", pid, deleted_variants, deleted_movements)
    return {
        "deletedMovements": int(deleted_movements),
        "deletedVariants": int(deleted_variants),
        "deletedProducts": int(deleted_products),
    }
