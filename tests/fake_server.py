import copy
import itertools
import json
import os
import sys
import tempfile
import unittest

import httpx

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from store import database as db_database  # noqa: E402
from store.remote import RemoteStore  # noqa: E402

BASE_URL = "http://testserver"

PRODUCTS = [
    {
        "id": "p001",
        "name": "AquaFresh RO + UV + UF",
        "category": "ro",
        "price": 18999,
        "rating": 4.7,
        "stock": 15,
        "description": "8-stage purification with copper technology",
    },
    {
        "id": "p002",
        "name": "PureFlow UV",
        "category": "uv",
        "price": 2000,
        "rating": 4.3,
        "stock": 0,
        "description": "UV purifier with tank",
    },
    {
        "id": "p003",
        "name": "AquaGuard UF",
        "category": "uf",
        "price": 1000,
        "rating": 4.9,
        "description": "Works without electricity",
    },
]


class FakeJsonServer:
    """
    In-memory stand-in for a json-server instance, mounted through
    httpx.MockTransport.

    Set `down` to refuse every connection, or add (METHOD, path) pairs to
    `failing` to refuse single requests.
    """

    def __init__(self, **collections):
        self.data = {k: copy.deepcopy(v) for k, v in collections.items()}
        self.down = False
        self.failing = set()
        self.calls = []
        self._ids = itertools.count(100)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def records(self, collection):
        return self.data.setdefault(collection, [])

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))
        if self.down or (request.method, path) in self.failing:
            raise httpx.ConnectError("connection refused", request=request)

        parts = path.strip("/").split("/")
        records = self.records(parts[0])

        if len(parts) == 1:
            if request.method == "GET":
                params = dict(request.url.params)
                found = [
                    r
                    for r in records
                    if all(str(r.get(k)) == v for k, v in params.items())
                ]
                return httpx.Response(200, json=found)
            if request.method == "POST":
                body = json.loads(request.content)
                body.setdefault("id", str(next(self._ids)))
                records.append(body)
                return httpx.Response(201, json=body)
            return httpx.Response(405)

        record_id = parts[1]
        idx = next(
            (i for i, r in enumerate(records) if str(r.get("id")) == record_id), None
        )
        if idx is None:
            return httpx.Response(404, json={})
        if request.method == "GET":
            return httpx.Response(200, json=records[idx])
        if request.method == "PUT":
            body = json.loads(request.content)
            body["id"] = records[idx]["id"]
            records[idx] = body
            return httpx.Response(200, json=body)
        if request.method == "PATCH":
            records[idx].update(json.loads(request.content))
            return httpx.Response(200, json=records[idx])
        if request.method == "DELETE":
            records.pop(idx)
            return httpx.Response(200, json={})
        return httpx.Response(405)


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    """Temporary local store plus a fake remote store per test."""

    def setUp(self):
        # Point the local store to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False

        self.server = FakeJsonServer(products=PRODUCTS, cart=[], orders=[], users=[])
        self.remote = RemoteStore(BASE_URL, transport=self.server.transport())

    async def asyncTearDown(self):
        await self.remote.aclose()

    def tearDown(self):
        self.temp_dir.cleanup()
