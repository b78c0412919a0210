import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from delivery_dispatch.core.config import settings
from delivery_dispatch.db.mongo_client import get_database
from delivery_dispatch.modules.delivery.repository import DeliveryRepository
from delivery_dispatch.modules.delivery.service import DeliveryService


class FakeCollection:
    """In-memory stand-in for a Motor collection with a unique deliveryId index."""

    def __init__(self):
        self.documents = []
        self.indexes = []
        self.insert_calls = 0
        self.update_calls = 0
        self.fail_with = None

    def _raise_if_failing(self):
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _matches(doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    async def find_one(self, query):
        self._raise_if_failing()
        for doc in self.documents:
            if self._matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, doc):
        self._raise_if_failing()
        self.insert_calls += 1
        if any(existing["deliveryId"] == doc["deliveryId"] for existing in self.documents):
            raise DuplicateKeyError("E11000 duplicate key error collection: delivery_requests index: deliveryId_1", 11000)
        doc.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"], acknowledged=True)

    async def update_one(self, query, update):
        self._raise_if_failing()
        self.update_calls += 1
        for doc in self.documents:
            if self._matches(doc, query):
                doc.update(copy.deepcopy(update.get("$set", {})))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def create_index(self, keys, **kwargs):
        self._raise_if_failing()
        self.indexes.append((keys, kwargs))
        return f"{keys}_1"


class FakeDatabase:
    def __init__(self):
        self.collections = {}
        self.ping_error = None

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())

    async def command(self, name):
        if self.ping_error is not None:
            raise self.ping_error
        return {"ok": 1.0}


@pytest.fixture
def d210_body() -> dict:
    return {
        "deliveryId": "d210",
        "orderId": "o203",
        "pickupLocation": {"lat": 36.8425, "lng": 10.2430, "address": "Lac 1"},
        "dropoffLocation": {"lat": 36.8533, "lng": 10.2715, "address": "Lac 2"},
        "route": [
            {"lat": 36.8425, "lng": 10.2430},
            {"lat": 36.8460, "lng": 10.2540},
            {"lat": 36.8533, "lng": 10.2715},
        ],
    }


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def collection(fake_db: FakeDatabase) -> FakeCollection:
    return fake_db[settings.DELIVERY_COLLECTION]


@pytest.fixture
def repository(fake_db: FakeDatabase) -> DeliveryRepository:
    return DeliveryRepository(db=fake_db)


@pytest.fixture
def service(repository: DeliveryRepository) -> DeliveryService:
    return DeliveryService(delivery_repo=repository)


@pytest.fixture
def api_client(fake_db: FakeDatabase):
    from delivery_dispatch.main import app

    app.dependency_overrides[get_database] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()
