import json

from stockbook.bridge import OPERATIONS, handle_request, invoke


def test_every_boundary_operation_is_registered():
    assert {
        "listProducts",
        "getProductById",
        "createProduct",
        "createProductWithVariants",
        "updateProduct",
        "deleteProduct",
        "deleteVariant",
        "addVariant",
        "listVariantsForProduct",
        "postMovement",
        "listMovementsForVariant",
        "listMovementsForProduct",
    } <= set(OPERATIONS)


def test_end_to_end_through_the_bridge(store, consistent):
    created = invoke(
        store,
        "createProductWithVariants",
        {"name": "Shirt", "cost_price": 5, "sell_price": 10},
        [{"size": "S", "color": "Red", "qty": 3}, {"size": "M", "color": "Blue", "qty": 2}],
    )
    assert created["ok"] is True
    pid = created["result"]

    variants = invoke(store, "listVariantsForProduct", pid)["result"]
    red = next(v for v in variants if v["size"] == "S")

    posted = invoke(
        store, "postMovement", {"variant_id": red["id"], "qty_change": -1, "reason": "sold", "sold_price": 15}
    )
    assert posted["ok"] is True
    assert invoke(store, "getProductById", pid)["result"]["qty"] == 4

    history = invoke(store, "listMovementsForProduct", pid, 10)["result"]
    assert history[0]["sold_price"] == 15

    deleted = invoke(store, "deleteProduct", pid)
    assert deleted == {
        "ok": True,
        "result": {"deletedMovements": 3, "deletedVariants": 2, "deletedProducts": 1},
    }
    assert invoke(store, "getProductById", pid) == {"ok": True, "result": None}
    consistent(store)


def test_domain_errors_become_rejections(store):
    pid = invoke(store, "createProduct", {"name": "Shirt", "sku": "S-1"})["result"]

    assert invoke(store, "createProduct", {"name": "Again", "sku": "S-1"}) == {
        "ok": False,
        "error": "SKU already exists. Please use a different SKU.",
    }
    variant_id = invoke(store, "listVariantsForProduct", pid)["result"][0]["id"]
    assert invoke(store, "deleteVariant", variant_id) == {"ok": False, "error": "Cannot delete the last variant."}
    assert invoke(store, "postMovement", {"variant_id": 999, "qty_change": 1}) == {
        "ok": False,
        "error": "Variant not found.",
    }
    assert invoke(store, "getProductById", "abc") == {"ok": False, "error": "Invalid product id."}


def test_storage_errors_become_rejections(store):
    res = invoke(store, "createProduct", {"name": "Ghost", "category_id": 999})
    assert res["ok"] is False
    assert "FOREIGN KEY" in res["error"]


def test_unknown_operation(store):
    assert invoke(store, "dropEverything") == {"ok": False, "error": "Unknown operation: dropEverything"}


def test_handle_request_round_trips_json(store):
    reply = json.loads(handle_request(store, json.dumps({"op": "createProduct", "args": [{"name": "Cap"}]})))
    assert reply["ok"] is True

    listed = json.loads(handle_request(store, json.dumps({"op": "listProducts"})))
    assert [p["name"] for p in listed["result"]] == ["Cap"]

    assert json.loads(handle_request(store, "{not json")) == {"ok": False, "error": "Malformed request."}
    assert json.loads(handle_request(store, json.dumps([1, 2]))) == {"ok": False, "error": "Malformed request."}


def test_wrong_argument_count_is_rejected(store):
    assert invoke(store, "getProductById") == {"ok": False, "error": "Invalid arguments for getProductById."}
    assert invoke(store, "deleteProduct", 1, 2) == {"ok": False, "error": "Invalid arguments for deleteProduct."}

    reply = json.loads(handle_request(store, json.dumps({"op": "getProductById", "args": []})))
    assert reply == {"ok": False, "error": "Invalid arguments for getProductById."}


def test_unexpected_errors_become_rejections(store, caplog):
    pid = invoke(store, "createProduct", {"name": "Shirt"})["result"]

    res = invoke(store, "postMovement", "not a movement")

    assert res["ok"] is False
    assert "get" in res["error"]
    assert "Operation postMovement crashed" in caplog.text
    assert invoke(store, "getProductById", pid)["result"]["qty"] == 0
