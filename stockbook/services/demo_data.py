from __future__ import annotations

import random

from stockbook.services.movements import post_movement
from stockbook.services.products import create_product, create_product_with_variants
from stockbook.services.variants import list_variants_for_product


DEFAULT_CATEGORIES = ["Tops", "Bottoms", "Accessories"]

# (sku, name, category, cost, sell, [(size, color, qty), ...])
DEMO_PRODUCTS = [
    ("TS-001", "Basic T-Shirt", "Tops", 4.5, 12.0, [("S", "White", 10), ("M", "White", 14), ("L", "Black", 8)]),
    ("HD-002", "Zip Hoodie", "Tops", 14.0, 35.0, [("M", "Grey", 6), ("L", "Grey", 4)]),
    ("JN-003", "Slim Jeans", "Bottoms", 11.0, 29.0, [("30", "Blue", 5), ("32", "Blue", 7), ("34", "Black", 3)]),
    ("CP-004", "Canvas Cap", "Accessories", 2.0, 9.5, []),
]


def upsert_reference_data(store) -> None:
    for name in DEFAULT_CATEGORIES:
        store.x("INSERT OR IGNORE INTO categories(name) VALUES (?)", (name,))


def wipe_all(store) -> None:
    # Keep schema and version, delete data (order matters for FKs).
    with store.transaction():
        for t in ["movements", "product_variants", "products", "categories"]:
            store.x(f"DELETE FROM {t}")


def load_demo_catalog(store, *, seed: int = 7) -> list[int]:
    """Create the demo products that don't exist yet (matched by SKU) and a few sales."""
    random.seed(seed)
    upsert_reference_data(store)
    categories = {r["name"]: int(r["id"]) for r in store.q("SELECT id, name FROM categories")}

    created: list[int] = []
    for sku, name, category, cost, sell, variants in DEMO_PRODUCTS:
        if store.one("SELECT id FROM products WHERE sku=?", (sku,)):
            continue
        product = {
            "name": name,
            "sku": sku,
            "category_id": categories.get(category),
            "cost_price": cost,
            "sell_price": sell,
        }
        if variants:
            pid = create_product_with_variants(
                store,
                product,
                [{"size": s, "color": c, "qty": q} for s, c, q in variants],
            )
        else:
            pid = create_product(store, product)
        created.append(pid)

    # Sell a little from each stocked variant
    for pid in created:
        sell = float(store.one("SELECT sell_price FROM products WHERE id=?", (pid,))["sell_price"])
        for v in list_variants_for_product(store, pid):
            if int(v["qty"]) <= 1:
                continue
            sold = random.randint(1, int(v["qty"]) // 2)
            post_movement(
                store,
                {"variant_id": v["id"], "qty_change": -sold, "reason": "Demo sale", "sold_price": sell},
            )
    return created
