from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from stockbook.errors import MigrationError
from stockbook.schema import MIGRATIONS, Migration

if TYPE_CHECKING:
    from stockbook.db import Store

logger = logging.getLogger(__name__)


def _ensure_version_table(store: "Store") -> int:
    store.x("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
    row = store.one("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
    if row is None:
        store.x("INSERT INTO schema_version (version) VALUES (0)")
        return 0
    return int(row["version"])


def current_version(store: "Store") -> int:
    if not store.table_exists("schema_version"):
        return 0
    row = store.one("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
    return int(row["version"]) if row else 0


def _set_version(store: "Store", version: int) -> None:
    store.x("UPDATE schema_version SET version = ?", (int(version),))


def _should_skip(store: "Store", migration: Migration) -> bool:
    if migration.already_applied is not None and migration.already_applied(store):
        return True
    if migration.add_columns and not migration.statements:
        return all(store.column_exists(t, c) for t, c, _ in migration.add_columns)
    return False


def _apply(store: "Store", migration: Migration) -> None:
    for table, column, definition in migration.add_columns:
        if not store.column_exists(table, column):
            store.x(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")
    for sql in migration.statements:
        store.x(sql)


def _apply_rebuild(store: "Store", migration: Migration, index: int, version: int) -> None:
    store.set_foreign_keys(False)
    try:
        with store.transaction():
            _apply(store, migration)
            problems = store.foreign_key_check()
            if problems:
                raise MigrationError(
                    f"Foreign key check failed after migration {index} "
                    f"({migration.name}, version {version}): {problems}",
                    violations=problems,
                )
            _set_version(store, version)
    finally:
        store.set_foreign_keys(True)


def run_migrations(store: "Store", migrations: Sequence[Migration] = MIGRATIONS) -> int:
    """
    Bring the schema up to len(migrations).

    Each step and its version bump commit together, so a killed process resumes
    from the last committed step. Any error stops the run and propagates.
    """
    current = _ensure_version_table(store)
    total = len(migrations)
    logger.info("Current DB version: %s", current)

    if current >= total:
        return current

    for i in range(current, total):
        migration = migrations[i]
        version = i + 1

        if _should_skip(store, migration):
            logger.info("Skipping migration %s of %s (%s): already applied", version, total, migration.name)
            with store.transaction():
                _set_version(store, version)
            continue

        logger.info("Applying migration %s of %s (%s)...", version, total, migration.name)
        if migration.rebuild:
            _apply_rebuild(store, migration, i, version)
        else:
            with store.transaction():
                _apply(store, migration)
                _set_version(store, version)

    final = current_version(store)
    logger.info("Migrations applied. Version: %s/%s", final, total)
    return final
