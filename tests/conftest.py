import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


@pytest.fixture
def settings():
    return Settings(secret_key="test-secret", database_name="bookstore_test", bcrypt_rounds=4, log_level="WARNING")


@pytest.fixture
def db():
    return mongomock.MongoClient()["bookstore_test"]


@pytest.fixture
def app(settings, db):
    return create_app(settings, db=db)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def product_payload():
    def make(**overrides):
        payload = {
            "title": "Dune",
            "author": "Frank Herbert",
            "binding": "Paperback",
            "rewardPoints": 12,
            "productCode": "BK-0001",
            "availability": "In stock",
            "price": {"original": 499.0, "discounted": 399.0, "discountPercentage": 20},
            "review": [{"rating": 5, "text": "Spice must flow"}],
            "reviewsCount": 1,
            "description": "Desert planet epic",
            "image": "https://example.com/covers/dune.jpg",
        }
        payload.update(overrides)
        return payload
    return make


@pytest.fixture
def order_payload():
    def make(**overrides):
        payload = {
            "user": "64b7f1c2a1b2c3d4e5f60718",
            "products": [
                {"product": "64b7f1c2a1b2c3d4e5f60719", "quantity": 2, "price": 399.0},
            ],
            "orderTotal": 798.0,
            "shippingAddress": {
                "addressLine1": "221B Baker Street",
                "city": "London",
                "state": "Greater London",
                "postalCode": "NW1 6XE",
                "country": "UK",
            },
            "paymentMethod": "card",
            "paymentStatus": "Pending",
            "orderStatus": "Processing",
        }
        payload.update(overrides)
        return payload
    return make


@pytest.fixture
def cart_payload():
    def make(**overrides):
        payload = {
            "userId": "64b7f1c2a1b2c3d4e5f60718",
            "items": [{"productId": "64b7f1c2a1b2c3d4e5f60719", "quantity": 1}],
            "totalPrice": 399.0,
        }
        payload.update(overrides)
        return payload
    return make


@pytest.fixture
def signup(client):
    def do(username="alice", password="wonderland"):
        return client.post("/auth/signup", json={"username": username, "password": password})
    return do
