"""
Named-operation boundary for a presentation layer living in another process.

Every call is an operation name plus JSON-serializable positional arguments;
the reply is either {"ok": true, "result": ...} or {"ok": false, "error": "..."}.
"""
from __future__ import annotations

import inspect
import json
import logging
import sqlite3
from typing import Any, Callable

from stockbook.errors import InventoryError
from stockbook.services import categories, movements, products, variants

logger = logging.getLogger(__name__)

OPERATIONS: dict[str, Callable[..., Any]] = {
    "listProducts": products.list_products,
    "getProductById": products.get_product_by_id,
    "createProduct": products.create_product,
    "createProductWithVariants": products.create_product_with_variants,
    "updateProduct": products.update_product,
    "deleteProduct": products.delete_product,
    "deleteVariant": variants.delete_variant,
    "addVariant": variants.add_variant,
    "listVariantsForProduct": variants.list_variants_for_product,
    "postMovement": movements.post_movement,
    "listMovementsForVariant": movements.list_movements_for_variant,
    "listMovementsForProduct": movements.list_movements_for_product,
    "listCategories": categories.list_categories,
    "createCategory": categories.create_category,
}


def invoke(store, operation: str, *args: Any) -> dict:
    handler = OPERATIONS.get(operation)
    if handler is None:
        return {"ok": False, "error": f"Unknown operation: {operation}"}

    try:
        inspect.signature(handler).bind(store, *args)
    except TypeError:
        return {"ok": False, "error": f"Invalid arguments for {operation}."}

    try:
        result = handler(store, *args)
    except InventoryError as e:
        return {"ok": False, "error": str(e)}
    except sqlite3.Error as e:
        logger.exception("Operation %s failed", operation)
        return {"ok": False, "error": str(e)}
    except Exception as e:
        logger.exception("Operation %s crashed", operation)
        return {"ok": False, "error": str(e) or type(e).__name__}
    return {"ok": True, "result": result}


def handle_request(store, raw: str) -> str:
    try:
        request = json.loads(raw)
    except ValueError:
        return json.dumps({"ok": False, "error": "Malformed request."})
    if not isinstance(request, dict) or not isinstance(request.get("op"), str):
        return json.dumps({"ok": False, "error": "Malformed request."})

    args = request.get("args") or []
    if not isinstance(args, list):
        args = [args]
    return json.dumps(invoke(store, request["op"], *args))
