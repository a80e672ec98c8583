from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from stockbook.errors import Constraint, ConstraintViolation, DuplicateError, ValidationError
from stockbook.schema import DEFAULT_COLOR, DEFAULT_SIZE
from stockbook.utils import clean_text, to_number

OPENING_STOCK_REASON = "Opening stock"

_DUPLICATE_MESSAGES = {
    Constraint.PRODUCT_SKU: "SKU already exists. Please use a different SKU.",
    Constraint.VARIANT_SIZE_COLOR: "That size/color already exists for this product.",
    Constraint.CATEGORY_NAME: "Category already exists.",
}


def duplicate_error(violation: ConstraintViolation) -> DuplicateError:
    return DuplicateError(_DUPLICATE_MESSAGES[violation.constraint])


@dataclass
class VariantInput:
    size: str
    color: str
    qty: float = 0


def variant_input(variant: Optional[Mapping[str, Any]]) -> VariantInput:
    """
    Missing or blank size/color fall back to the default variant labels.
    Initial quantity is numeric and never negative.
    """
    variant = variant or {}
    size = clean_text(variant.get("size")) or DEFAULT_SIZE
    color = clean_text(variant.get("color")) or DEFAULT_COLOR
    qty = to_number(variant.get("qty"), 0)
    if qty < 0:
        raise ValidationError("Quantity must be a non-negative number.")
    return VariantInput(size=size, color=color, qty=qty)


def insert_variant(store, product_id: int, v: VariantInput) -> int:
    """
    Insert a variant row. A non-zero initial quantity is written as an opening
    movement so the variant's qty stays equal to its movement total.
    Caller owns the transaction and the parent product's qty.
    """
    variant_id = int(
        store.x(
            "INSERT INTO product_variants (product_id, size, color, qty) VALUES (?, ?, ?, ?)",
            (int(product_id), v.size, v.color, v.qty),
        ).lastrowid
    )
    if v.qty:
        store.x(
            "INSERT INTO movements (variant_id, qty_change, reason) VALUES (?, ?, ?)",
            (variant_id, v.qty, OPENING_STOCK_REASON),
        )
    return variant_id
