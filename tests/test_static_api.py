"""Tests for the static file server and health endpoints."""

import gzip
import json

import brotli
import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.routers.static import StaticStore, get_store


@pytest.fixture
def static_root(tmp_path):
    (tmp_path / "products").mkdir()
    (tmp_path / "products" / "0001.json").write_text(json.dumps({"code": "0001"}), encoding="utf-8")
    catalogs = tmp_path / "indexes" / "catalogs" / "fr"
    catalogs.mkdir(parents=True)
    (catalogs / "catalog.jsonl.br").write_bytes(brotli.compress(b'["0001"]\n'))
    (catalogs / "catalog.jsonl.gz").write_bytes(gzip.compress(b'["0001"]\n'))
    return tmp_path


@pytest.fixture
def store(static_root):
    return StaticStore(str(static_root))


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestServeFile:
    def test_json_document(self, client):
        response = client.get("/products/0001.json")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["vary"] == "Accept-Encoding"
        assert "content-encoding" not in response.headers
        assert response.json() == {"code": "0001"}

    def test_brotli_catalog(self, client):
        response = client.get("/indexes/catalogs/fr/catalog.jsonl.br")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/x-ndjson"
        assert response.headers["content-encoding"] == "br"
        assert response.content == b'["0001"]\n'

    def test_gzip_catalog(self, client):
        response = client.get("/indexes/catalogs/fr/catalog.jsonl.gz")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/gzip"
        assert response.headers["content-encoding"] == "gzip"

    def test_missing_file(self, client):
        response = client.get("/products/9999.json")
        assert response.status_code == 404
        assert response.json() == {"error": "File not found"}

    def test_directory(self, client):
        response = client.get("/products")
        assert response.status_code == 400
        assert response.json() == {"error": "Path is a directory"}

    def test_method_not_allowed(self, client):
        response = client.post("/products/0001.json")
        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}

    def test_options(self, client):
        response = client.options("/products/0001.json")
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_bandwidth_is_tracked(self, client, store):
        client.get("/products/0001.json")
        client.get("/products/0001.json")
        total, requests = store.bandwidth["0001.json"]
        assert requests == 2
        assert total == 2 * len(json.dumps({"code": "0001"}))

    def test_banner(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "/products/*" in response.json()["endpoints"]


class TestStore:
    def test_resolve_rejects_traversal(self, store):
        assert store.resolve("../outside.json") is None
        assert store.resolve("products/../../outside.json") is None
        assert store.resolve("products/0001.json") == store.static_dir / "products" / "0001.json"

    @pytest.mark.parametrize("name, content_type, encoding", [
        ("a.json", "application/json", None),
        ("catalog.jsonl.gz", "application/gzip", "gzip"),
        ("catalog.jsonl.br", "application/x-ndjson", "br"),
    ])
    def test_headers_follow_extension(self, store, name, content_type, encoding):
        path = store.static_dir / name
        assert store.content_type(path) == content_type
        assert store.content_encoding(path) == encoding


class TestHealth:
    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_livez(self, client):
        assert client.get("/livez").json()["status"] == "alive"

    def test_ready_once_tree_exists(self, client):
        body = client.get("/readyz").json()
        assert body["status"] == "ready"

    def test_not_ready_without_products(self, tmp_path):
        empty = StaticStore(str(tmp_path / "empty"))
        app.dependency_overrides[get_store] = lambda: empty
        try:
            body = TestClient(app).get("/readyz").json()
        finally:
            app.dependency_overrides.clear()
        assert body["status"] == "not_ready"
        assert body["checks"]["static_root"] is False
