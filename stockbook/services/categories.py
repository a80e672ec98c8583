from __future__ import annotations

from stockbook.errors import ConstraintViolation, ValidationError
from stockbook.services.common import duplicate_error
from stockbook.utils import clean_text


def list_categories(store) -> list[dict]:
    return [dict(r) for r in store.q("SELECT id, name FROM categories ORDER BY name COLLATE NOCASE")]


def create_category(store, name) -> int:
    n = clean_text(name)
    if not n:
        raise ValidationError("Category name is required.")
    try:
        return int(store.x("INSERT INTO categories (name) VALUES (?)", (n,)).lastrowid)
    except ConstraintViolation as e:
        raise duplicate_error(e) from e
