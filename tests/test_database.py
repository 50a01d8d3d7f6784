import pytest
from bson import ObjectId

from database import create_document, delete_document, get_document, get_documents, serialize_doc, update_document
from errors import NotFoundError
from schemas import Order

MISSING_ID = "64b7f1c2a1b2c3d4e5f6ffff"


def test_create_then_get_round_trips_order(db, order_payload):
    order = Order.model_validate(order_payload())
    created = create_document(db, "order", order)

    fetched = get_document(db, "order", created["id"])
    assert ObjectId.is_valid(fetched["id"])
    assert fetched["created_at"] and fetched["updated_at"]
    for key, value in order_payload().items():
        assert fetched[key] == value
    assert "addressLine2" not in fetched["shippingAddress"]


def test_get_document_not_found(db):
    with pytest.raises(NotFoundError) as exc:
        get_document(db, "order", MISSING_ID)
    assert exc.value.status_code == 404
    assert exc.value.message == "Order not found"


def test_malformed_id_never_matches(db):
    with pytest.raises(NotFoundError):
        get_document(db, "cart", "xyz")


def test_update_merges_and_keeps_identity(db):
    created = create_document(db, "cart", {"userId": "a", "items": [], "totalPrice": 5})
    updated = update_document(db, "cart", created["id"], {"totalPrice": 7})
    assert updated["id"] == created["id"]
    assert updated["totalPrice"] == 7
    assert updated["userId"] == "a"
    stored = db["cart"].find_one({"_id": ObjectId(created["id"])})
    assert stored["updated_at"] >= stored["created_at"]


def test_update_missing_document(db):
    with pytest.raises(NotFoundError):
        update_document(db, "product", MISSING_ID, {"title": "x"})


def test_delete_document(db):
    created = create_document(db, "product", {"title": "Dune"})
    assert delete_document(db, "product", created["id"]) is None
    assert get_documents(db, "product") == []
    with pytest.raises(NotFoundError):
        delete_document(db, "product", created["id"])


def test_get_documents_filter_sort_limit(db):
    for n in (3, 1, 2):
        create_document(db, "product", {"rank": n, "kind": "book"})
    docs = get_documents(db, "product", {"kind": "book"}, sort=[("rank", 1)], limit=2)
    assert [d["rank"] for d in docs] == [1, 2]


def test_serialize_doc():
    oid = ObjectId()
    assert serialize_doc({"_id": oid, "title": "Dune"}) == {"id": str(oid), "title": "Dune"}
    assert serialize_doc(None) is None
