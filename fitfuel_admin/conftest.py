import copy
from datetime import datetime

import pytest

from fitfuel_admin.config import set_config_for_test
from fitfuel_admin.errors import GatewayError


class FakeGateway:
    """In-memory gateway with per-id failure injection and a call log."""

    def __init__(self, collections=None):
        self.collections = {
            name: {doc["id"]: copy.deepcopy(doc) for doc in docs}
            for name, docs in (collections or {}).items()
        }
        self.fail_ids = set()
        self.fail_fetch = False
        self.calls = []
        self.blobs = {}
        self._next_id = 0

    def _docs(self, collection):
        return self.collections.setdefault(collection, {})

    def _check(self, op, collection, record_id=None):
        self.calls.append((op, collection, record_id))
        if record_id is not None and record_id in self.fail_ids:
            raise GatewayError(f"{op} failed for {record_id}", operation=op, collection=collection, record_id=record_id)

    def fetch_all(self, collection, sort=None):
        self._check("fetch_all", collection)
        if self.fail_fetch:
            raise GatewayError("store unavailable", operation="fetch_all", collection=collection)
        docs = [copy.deepcopy(d) for d in self._docs(collection).values()]
        if sort is not None:
            docs.sort(key=lambda d: (d.get(sort.field) is None, d.get(sort.field)), reverse=sort.direction == "desc")
        return docs

    def fetch_one(self, collection, record_id):
        self._check("fetch_one", collection, record_id)
        doc = self._docs(collection).get(record_id)
        return copy.deepcopy(doc) if doc is not None else None

    def update(self, collection, record_id, patch):
        self._check("update", collection, record_id)
        docs = self._docs(collection)
        if record_id not in docs:
            raise GatewayError("missing", operation="update", collection=collection, record_id=record_id)
        docs[record_id].update(copy.deepcopy(dict(patch)))

    def insert(self, collection, document):
        self._check("insert", collection)
        self._next_id += 1
        record_id = f"new{self._next_id}"
        self._docs(collection)[record_id] = {**copy.deepcopy(dict(document)), "id": record_id}
        return record_id

    def delete(self, collection, record_id):
        self._check("delete", collection, record_id)
        docs = self._docs(collection)
        if record_id not in docs:
            raise GatewayError("missing", operation="delete", collection=collection, record_id=record_id)
        del docs[record_id]

    def store(self, data, path):
        self.calls.append(("store", "blobs", path))
        self.blobs[path] = data
        return f"memory://{path}"

    def remove(self, path):
        self.calls.append(("remove", "blobs", path))
        self.blobs.pop(path, None)

    def calls_of(self, op):
        return [c for c in self.calls if c[0] == op]


SAMPLE_USERS = [
    {"id": "u1", "name": "Aisha Khan", "phone": "555-0101", "address": "1 Market St"},
    {"id": "u2", "displayName": "ben", "phone": "555-0102", "address": "2 Lake Rd"},
    {"id": "u3", "phone": "555-0103"},
]

SAMPLE_PRODUCTS = [
    {"id": "p1", "name": "Almonds", "price": 10, "discountPrice": None, "category": "Nuts",
     "tags": ["protein"], "inStock": True, "isFeatured": False, "createdAt": "2024-05-01T10:00:00"},
    {"id": "p2", "name": "Mango", "price": 20, "discountPrice": 15, "category": "Fruits",
     "tags": ["seasonal"], "inStock": False, "isFeatured": True, "createdAt": "2024-05-02T10:00:00"},
    {"id": "p3", "name": "Cold Brew", "price": 5.5, "category": "Beverages",
     "description": "Slow steeped coffee", "inStock": True, "isFeatured": False, "createdAt": "2024-05-03T10:00:00"},
    {"id": "p4", "name": "trail mix", "price": 7, "category": "Mixed Options",
     "tags": ["Snack"], "inStock": True, "isFeatured": True, "createdAt": "2024-05-04T10:00:00"},
]


def sample_orders():
    return [
        {"id": "o1", "userId": "u1", "deliveryStatus": "pending", "totalAmount": 12.5,
         "items": [{"name": "Almonds", "price": 10, "quantity": 1}], "createdAt": "2024-05-15T09:00:00"},
        {"id": "o2", "userId": "u2", "deliveryStatus": "completed", "phoneNumber": "555-9999",
         "address": "9 Order Ave", "createdAt": "2024-05-14T18:30:00"},
        {"id": "o3", "userId": "missing", "deliveryStatus": "cancelled", "createdAt": "2024-05-07T08:00:00"},
        {"id": "o4", "deliveryStatus": "pending", "createdAt": "2024-05-15T11:00:00"},
    ]


@pytest.fixture(autouse=True)
def test_config():
    set_config_for_test(projection_workers=4, log_level="WARNING")
    yield


@pytest.fixture
def make_gateway():
    def _make(**collections):
        return FakeGateway(collections)
    return _make


@pytest.fixture
def gateway(make_gateway):
    return make_gateway(users=SAMPLE_USERS, products=SAMPLE_PRODUCTS, orders=sample_orders())


@pytest.fixture
def now():
    # A Wednesday; the week (starting Sunday 2024-05-12) includes yesterday.
    return datetime(2024, 5, 15, 12, 0, 0)
