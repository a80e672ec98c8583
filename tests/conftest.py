import pytest

from stockbook.db import Store
from stockbook.migrations import run_migrations


@pytest.fixture()
def db_path(tmp_path):
    return tmp_path / "data" / "inventory.db"


@pytest.fixture()
def raw_store(db_path):
    store = Store(db_path).open()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture()
def store(raw_store):
    run_migrations(raw_store)
    return raw_store


def assert_consistent(store):
    """Product qty == sum of variant qty, variant qty == sum of its movements."""
    products = store.q(
        """
        SELECT p.id, p.qty, COALESCE(SUM(v.qty), 0) AS variant_total, COUNT(v.id) AS n_variants
        FROM products p
        LEFT JOIN product_variants v ON v.product_id = p.id
        GROUP BY p.id
        """
    )
    for p in products:
        assert p["qty"] == p["variant_total"], dict(p)
        assert p["n_variants"] >= 1, dict(p)

    variants = store.q(
        """
        SELECT v.id, v.qty, COALESCE(SUM(m.qty_change), 0) AS movement_total
        FROM product_variants v
        LEFT JOIN movements m ON m.variant_id = v.id
        GROUP BY v.id
        """
    )
    for v in variants:
        assert v["qty"] == v["movement_total"], dict(v)


@pytest.fixture()
def consistent():
    return assert_consistent
