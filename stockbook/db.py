from __future__ import annotations

import atexit
import logging
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import streamlit as st

from stockbook.errors import Constraint, ConstraintViolation
from stockbook.migrations import run_migrations

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT_MS = 3000

# Uniqueness constraints the services know how to translate.
KNOWN_UNIQUE_CONSTRAINTS = {
    ("products", ("sku",)): Constraint.PRODUCT_SKU,
    ("product_variants", ("product_id", "size", "color")): Constraint.VARIANT_SIZE_COLOR,
    ("categories", ("name",)): Constraint.CATEGORY_NAME,
}

_UNIQUE_FAILED = re.compile(r"UNIQUE constraint failed: (?P<cols>.+)$")


def describe_violation(exc: sqlite3.IntegrityError) -> Optional[ConstraintViolation]:
    m = _UNIQUE_FAILED.search(str(exc))
    if not m:
        return None
    qualified = [c.strip() for c in m.group("cols").split(",")]
    tables = {c.split(".", 1)[0] for c in qualified}
    if len(tables) != 1:
        return None
    table = tables.pop()
    columns = tuple(c.split(".", 1)[1] for c in qualified)
    constraint = KNOWN_UNIQUE_CONSTRAINTS.get((table, columns))
    if constraint is None:
        return None
    return ConstraintViolation(constraint, table, columns)


class Store:
    """
    Owns the single on-disk SQLite file and its connection settings.

    The connection runs in autocommit mode; `transaction()` is the only way to
    group statements, and every multi-statement write goes through it.
    """

    def __init__(self, db_path: Path | str, *, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS):
        self.db_path = Path(db_path).expanduser()
        self.busy_timeout_ms = int(busy_timeout_ms)
        self.created = False
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "Store":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Store is not open.")
        return self._conn

    def open(self) -> "Store":
        if self._conn is not None:
            return self

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.db_path.exists():
            self.db_path.touch()
            self.created = True

        logger.info("Database: %s", self.db_path.resolve())
        if self.created:
            logger.info("Created new database file.")

        conn = sqlite3.connect(
            str(self.db_path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL;")
        conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms};")
        conn.execute("PRAGMA foreign_keys = ON;")
        self._conn = conn
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Closed database: %s", self.db_path)

    # ---- statements ----

    def x(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, tuple(params))
        except sqlite3.IntegrityError as e:
            violation = describe_violation(e)
            if violation is None:
                raise
            raise violation from e

    def q(self, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
        cur = self.x(sql, params)
        rows = cur.fetchall()
        cur.close()
        return rows

    def one(self, sql: str, params: Iterable[Any] = ()) -> Optional[sqlite3.Row]:
        rows = self.q(sql, params)
        return rows[0] if rows else None

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        conn = self.conn
        conn.execute("BEGIN IMMEDIATE;")
        try:
            yield self
            conn.execute("COMMIT;")
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK;")
            raise

    # ---- schema introspection ----

    def set_foreign_keys(self, enabled: bool) -> None:
        # No-op inside a transaction, so callers toggle it between transactions.
        self.conn.execute(f"PRAGMA foreign_keys = {'ON' if enabled else 'OFF'};")

    def foreign_keys_enabled(self) -> bool:
        return bool(self.conn.execute("PRAGMA foreign_keys;").fetchone()[0])

    def foreign_key_check(self) -> list[dict[str, Any]]:
        rows = self.conn.execute("PRAGMA foreign_key_check;").fetchall()
        return [
            {"table": r[0], "rowid": r[1], "parent": r[2], "fkid": r[3]}
            for r in rows
        ]

    def table_exists(self, table: str) -> bool:
        r = self.one("SELECT 1 FROM sqlite_master WHERE type='table' AND name=?", (table,))
        return r is not None

    def column_exists(self, table: str, column: str) -> bool:
        rows = self.conn.execute(f"PRAGMA table_info({table});").fetchall()
        cols = [r["name"] for r in rows]
        return column in cols


def open_store(db_path: Path, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> Store:
    """
    Open and migrate the store for this process.

    The store stays open for the life of the process and is closed at
    interpreter exit. Callers that need it earlier can call ``close()``;
    closing twice is harmless.
    """
    store = Store(db_path, busy_timeout_ms=busy_timeout_ms).open()
    try:
        run_migrations(store)
    except Exception:
        store.close()
        raise
    atexit.register(store.close)
    return store


@st.cache_resource
def get_store(db_path: Path, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> Store:
    # One store per process; migrations finish before any page can use it.
    return open_store(db_path, busy_timeout_ms)
