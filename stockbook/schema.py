from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from stockbook.db import Store

DEFAULT_SIZE = "One Size"
DEFAULT_COLOR = "N/A"


@dataclass(frozen=True)
class Migration:
    """
    One schema version step.

    - statements run in order inside the step's transaction
    - add_columns: (table, column, definition); only missing columns are added,
      and the step is skipped when all of them already exist
    - rebuild: drops/renames a table other tables reference, so it runs with
      foreign key enforcement suspended and is followed by a foreign key check
    - already_applied: checked against the live schema before the step runs
    """

    name: str
    statements: tuple[str, ...] = ()
    add_columns: tuple[tuple[str, str, str], ...] = ()
    rebuild: bool = False
    already_applied: Optional[Callable[["Store"], bool]] = None


def _products_price_dropped(store: "Store") -> bool:
    return not store.column_exists("products", "price")


def _movements_by_variant(store: "Store") -> bool:
    return not store.column_exists("movements", "product_id")


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        name="create_categories",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS categories (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              name TEXT NOT NULL UNIQUE
            )
            """,
        ),
    ),
    Migration(
        name="create_products",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS products (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              name TEXT NOT NULL,
              sku TEXT UNIQUE,
              price REAL NOT NULL,
              qty INTEGER NOT NULL DEFAULT 0,
              category_id INTEGER,
              FOREIGN KEY (category_id) REFERENCES categories(id)
            )
            """,
        ),
    ),
    Migration(
        name="create_movements",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS movements (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              product_id INTEGER NOT NULL,
              qty_change INTEGER NOT NULL,
              reason TEXT,
              created_at TEXT DEFAULT CURRENT_TIMESTAMP,
              FOREIGN KEY (product_id) REFERENCES products(id)
            )
            """,
        ),
    ),
    Migration(
        name="add_product_prices",
        add_columns=(
            ("products", "cost_price", "REAL NOT NULL DEFAULT 0"),
            ("products", "sell_price", "REAL NOT NULL DEFAULT 0"),
        ),
    ),
    Migration(
        name="add_indexes",
        statements=(
            "CREATE INDEX IF NOT EXISTS idx_products_name ON products(name)",
            "CREATE INDEX IF NOT EXISTS idx_products_category ON products(category_id)",
            "CREATE INDEX IF NOT EXISTS idx_movements_product ON movements(product_id)",
            "CREATE INDEX IF NOT EXISTS idx_movements_product_date ON movements(product_id, created_at)",
        ),
    ),
    Migration(
        name="rebuild_products_drop_price",
        rebuild=True,
        already_applied=_products_price_dropped,
        statements=(
            "DROP TABLE IF EXISTS products_new",
            """
            CREATE TABLE products_new (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              name TEXT NOT NULL,
              sku TEXT UNIQUE,
              qty INTEGER NOT NULL DEFAULT 0,
              category_id INTEGER,
              cost_price REAL NOT NULL DEFAULT 0,
              sell_price REAL NOT NULL DEFAULT 0,
              FOREIGN KEY (category_id) REFERENCES categories(id)
            )
            """,
            """
            INSERT INTO products_new (id, name, sku, qty, category_id, cost_price, sell_price)
            SELECT id, name, sku, qty, category_id, cost_price, sell_price
            FROM products
            """,
            "DROP TABLE products",
            "ALTER TABLE products_new RENAME TO products",
            "CREATE INDEX IF NOT EXISTS idx_products_name ON products(name)",
            "CREATE INDEX IF NOT EXISTS idx_products_category ON products(category_id)",
        ),
    ),
    Migration(
        name="create_product_variants",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS product_variants (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              product_id INTEGER NOT NULL,
              size TEXT NOT NULL,
              color TEXT NOT NULL,
              qty INTEGER NOT NULL DEFAULT 0,
              FOREIGN KEY (product_id) REFERENCES products(id)
            )
            """,
            """
            CREATE UNIQUE INDEX IF NOT EXISTS ux_variant_product_size_color
            ON product_variants(product_id, size, color)
            """,
            "CREATE INDEX IF NOT EXISTS idx_variants_product ON product_variants(product_id)",
        ),
    ),
    Migration(
        # Safe to re-run: UNIQUE(product_id, size, color) + OR IGNORE
        name="backfill_default_variants",
        statements=(
            f"""
            INSERT OR IGNORE INTO product_variants (product_id, size, color, qty)
            SELECT id, '{DEFAULT_SIZE}', '{DEFAULT_COLOR}', qty
            FROM products
            """,
        ),
    ),
    Migration(
        name="rebuild_movements_by_variant",
        rebuild=True,
        already_applied=_movements_by_variant,
        statements=(
            "DROP TABLE IF EXISTS movements_new",
            """
            CREATE TABLE movements_new (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              variant_id INTEGER NOT NULL,
              qty_change INTEGER NOT NULL,
              reason TEXT,
              created_at TEXT DEFAULT CURRENT_TIMESTAMP,
              FOREIGN KEY (variant_id) REFERENCES product_variants(id)
            )
            """,
            f"""
            INSERT INTO movements_new (id, variant_id, qty_change, reason, created_at)
            SELECT m.id, v.id, m.qty_change, m.reason, m.created_at
            FROM movements m
            JOIN product_variants v
              ON v.product_id = m.product_id
             AND v.size = '{DEFAULT_SIZE}'
             AND v.color = '{DEFAULT_COLOR}'
            """,
            "DROP TABLE movements",
            "ALTER TABLE movements_new RENAME TO movements",
            "CREATE INDEX IF NOT EXISTS idx_movements_variant ON movements(variant_id)",
            "CREATE INDEX IF NOT EXISTS idx_movements_variant_date ON movements(variant_id, created_at)",
        ),
    ),
    Migration(
        name="add_movement_sold_price",
        add_columns=(("movements", "sold_price", "REAL"),),
    ),
)
