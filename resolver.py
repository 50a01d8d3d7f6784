"""
Expands stored references into the documents they point at.

Lookups are batched per collection. A reference whose target no longer
exists resolves to ``None``; reads never fail because of it.
"""
from typing import Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo.database import Database

from database import serialize_doc

# never expose credentials through a join
USER_PROJECTION = {"password_hash": 0}


def fetch_by_ids(db: Database, collection_name: str, ids: Iterable[Optional[str]],
                 projection: Optional[dict] = None) -> Dict[str, dict]:
    oids = [ObjectId(i) for i in set(ids) if i and ObjectId.is_valid(i)]
    if not oids:
        return {}
    docs = db[collection_name].find({"_id": {"$in": oids}}, projection)
    return {str(d["_id"]): serialize_doc(d) for d in docs}


def resolve_orders(db: Database, orders: List[dict]) -> List[dict]:
    users = fetch_by_ids(db, "user", (o.get("user") for o in orders), USER_PROJECTION)
    products = fetch_by_ids(
        db, "product", (line.get("product") for o in orders for line in o.get("products", []))
    )
    resolved = []
    for order in orders:
        out = dict(order)
        out["user"] = users.get(order.get("user"))
        out["products"] = [
            {**line, "product": products.get(line.get("product"))}
            for line in order.get("products", [])
        ]
        resolved.append(out)
    return resolved


def resolve_order(db: Database, order: dict) -> dict:
    return resolve_orders(db, [order])[0]


def resolve_carts(db: Database, carts: List[dict]) -> List[dict]:
    """Attach ``user`` and ``items[].product`` next to the stored ids."""
    users = fetch_by_ids(db, "user", (c.get("userId") for c in carts), USER_PROJECTION)
    products = fetch_by_ids(
        db, "product", (item.get("productId") for c in carts for item in c.get("items", []))
    )
    resolved = []
    for cart in carts:
        out = dict(cart)
        out["user"] = users.get(cart.get("userId"))
        out["items"] = [
            {**item, "product": products.get(item.get("productId"))}
            for item in cart.get("items", [])
        ]
        resolved.append(out)
    return resolved


def resolve_cart(db: Database, cart: dict) -> dict:
    return resolve_carts(db, [cart])[0]
