"""
Product listing: one-field substring filter and a single sort key, both
executed by MongoDB rather than in memory.
"""
import re
from typing import List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING
from pymongo.database import Database

from database import get_documents
from errors import ValidationError, violation

FIELD_PATTERN = r"^[A-Za-z][A-Za-z0-9_.]*$"


def build_filter(field: Optional[str], value: Optional[str]) -> dict:
    if not field:
        return {}
    if value is None:
        raise ValidationError([violation(field, f"Query parameter '{field}' is required when filtering by it")])
    return {field: {"$regex": re.escape(value), "$options": "i"}}


def build_sort(field: Optional[str], order: str = "asc") -> Optional[List[Tuple[str, int]]]:
    if not field:
        return None
    direction = DESCENDING if order == "desc" else ASCENDING
    # _id keeps ties in a stable order
    return [(field, direction), ("_id", ASCENDING)]


def list_products(db: Database, filter_field: Optional[str] = None, filter_value: Optional[str] = None,
                  sort: Optional[str] = None, order: str = "asc") -> List[dict]:
    return get_documents(db, "product", build_filter(filter_field, filter_value), sort=build_sort(sort, order))
