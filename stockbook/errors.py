from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class InventoryError(Exception):
    """Base class for errors surfaced to the caller of a service operation."""


class ValidationError(InventoryError, ValueError):
    pass


class DuplicateError(InventoryError, ValueError):
    pass


class NotFoundError(InventoryError, LookupError):
    pass


class InvariantViolation(InventoryError):
    pass


class Constraint(str, Enum):
    PRODUCT_SKU = "product_sku"
    VARIANT_SIZE_COLOR = "variant_size_color"
    CATEGORY_NAME = "category_name"


class ConstraintViolation(InventoryError):
    """
    Raised by the store when a uniqueness constraint known at schema-design
    time fails. Services switch on `constraint`, never on the message text.
    """

    def __init__(self, constraint: Constraint, table: str, columns: tuple[str, ...]):
        self.constraint = constraint
        self.table = table
        self.columns = columns
        super().__init__(f"{constraint.value} violated on {table}({', '.join(columns)})")


class MigrationError(InventoryError, RuntimeError):
    def __init__(self, message: str, *, violations: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.violations = violations or []
