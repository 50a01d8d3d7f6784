import pytest

from errors import ValidationError
from listing import build_filter, build_sort


@pytest.fixture
def catalogue(client, product_payload):
    books = [
        product_payload(title="Dune", productCode="A", rewardPoints=30, price={"original": 10, "discounted": 9, "discountPercentage": 10}),
        product_payload(title="Children of dune", productCode="B", rewardPoints=5, price={"original": 20, "discounted": 15, "discountPercentage": 25}),
        product_payload(title="Foundation", productCode="C", rewardPoints=100, price={"original": 8, "discounted": 8, "discountPercentage": 0}),
    ]
    for book in books:
        assert client.post("/products", json=book).status_code == 201


def titles(res):
    return [p["title"] for p in res.json()]


def test_list_all_products(client, catalogue):
    res = client.get("/products")
    assert res.status_code == 200
    assert len(res.json()) == 3


def test_filter_is_case_insensitive_substring(client, catalogue):
    res = client.get("/products", params={"filter": "title", "title": "Dune"})
    assert res.status_code == 200
    assert sorted(titles(res)) == ["Children of dune", "Dune"]


def test_filter_value_is_not_a_regex(client, catalogue):
    res = client.get("/products", params={"filter": "title", "title": ".*"})
    assert res.json() == []


def test_filter_without_value_is_rejected(client, catalogue):
    res = client.get("/products", params={"filter": "title"})
    assert res.status_code == 400
    assert res.json()["errors"][0]["path"] == "title"


def test_filter_field_cannot_be_an_operator(client, catalogue):
    res = client.get("/products", params={"filter": "$where", "$where": "1"})
    assert res.status_code == 400


def test_sort_numeric_field(client, catalogue):
    res = client.get("/products", params={"sort": "rewardPoints", "order": "desc"})
    assert titles(res) == ["Foundation", "Dune", "Children of dune"]


def test_sort_nested_numeric_field_ascending_by_default(client, catalogue):
    res = client.get("/products", params={"sort": "price.discounted"})
    assert titles(res) == ["Foundation", "Dune", "Children of dune"]


def test_sort_string_field_lexicographically(client, catalogue):
    res = client.get("/products", params={"sort": "title", "order": "asc"})
    assert titles(res) == ["Children of dune", "Dune", "Foundation"]


def test_filter_and_sort_together(client, catalogue):
    res = client.get("/products", params={"filter": "title", "title": "dune", "sort": "rewardPoints", "order": "asc"})
    assert titles(res) == ["Children of dune", "Dune"]


def test_unknown_order_is_rejected(client, catalogue):
    res = client.get("/products", params={"sort": "title", "order": "sideways"})
    assert res.status_code == 400
    assert res.json()["errors"][0]["path"] == "order"


def test_build_filter_escapes_value():
    assert build_filter("title", "a+b") == {"title": {"$regex": r"a\+b", "$options": "i"}}
    assert build_filter(None, None) == {}
    with pytest.raises(ValidationError):
        build_filter("title", None)


def test_build_sort():
    assert build_sort(None) is None
    assert build_sort("title", "desc") == [("title", -1), ("_id", 1)]
