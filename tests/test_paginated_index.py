"""Tests for the paginated, sharded index writer."""

import json

import pytest

from etl.models import IndexItem
from etl.paginated_index import META_FILE, PaginatedIndex, page_name, shard_for, slugify

PAGE_SIZE = 3


def item(n: int) -> IndexItem:
    return IndexItem(code=str(n), name=f"Product {n}", brand="Brand", path=f"products/{n}.json")


def read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


def snapshot(directory):
    return {p.name: p.read_bytes() for p in sorted(directory.iterdir())}


class TestSlugs:
    def test_slugify(self):
        assert slugify("Coca-Cola Zero!") == "coca-cola-zero"
        assert slugify("  Ben & Jerry's ") == "ben-jerry-s"
        assert slugify("en:Plant_based foods") == "en-plant-based-foods"
        assert slugify("Épicerie") == "épicerie"
        assert slugify("!!!") == ""

    def test_slug_length_is_bounded(self):
        assert len(slugify("x" * 500)) <= 96

    def test_shard(self):
        assert shard_for("coca-cola") == "co"
        assert shard_for("a") == "__"
        assert shard_for("de") == "de"

    def test_page_name(self):
        assert page_name(1) == "page-0001.json"
        assert page_name(123) == "page-0123.json"


class TestPaginatedIndex:
    @pytest.fixture
    def index(self, tmp_path):
        return PaginatedIndex(str(tmp_path), "brands", page_size=PAGE_SIZE)

    def test_layout(self, index, tmp_path):
        index.add("Coca-Cola", item(1))
        index.finalize()
        directory = tmp_path / "brands" / "co" / "coca-cola"
        assert (directory / "page-0001.json").exists()
        assert (directory / META_FILE).exists()
        assert index.directory_for("Coca-Cola") == directory

    def test_full_page_flushes_without_totals(self, index):
        for n in range(PAGE_SIZE):
            index.add("Acme", item(n))
        page = read_json(index.directory_for("Acme") / "page-0001.json")
        assert page["page"] == 1
        assert len(page["items"]) == PAGE_SIZE
        assert page["prev"] is None
        assert page["next"] is None
        assert page["total_pages"] is None
        assert page["count"] is None

    def test_exactly_one_page(self, index):
        for n in range(PAGE_SIZE):
            index.add("Acme", item(n))
        index.finalize()
        directory = index.directory_for("Acme")
        page = read_json(directory / "page-0001.json")
        assert page["total_pages"] == 1
        assert page["count"] == PAGE_SIZE
        assert page["next"] is None
        assert not (directory / "page-0002.json").exists()
        assert read_json(directory / META_FILE) == {
            "tag": "Acme", "count": PAGE_SIZE, "page_size": PAGE_SIZE, "total_pages": 1,
        }

    def test_one_more_than_page_size(self, index):
        for n in range(PAGE_SIZE + 1):
            index.add("Acme", item(n))
        index.finalize()
        directory = index.directory_for("Acme")
        first = read_json(directory / "page-0001.json")
        second = read_json(directory / "page-0002.json")
        assert first["next"] == "page-0002.json"
        assert first["prev"] is None
        assert second["prev"] == "page-0001.json"
        assert second["next"] is None
        assert len(second["items"]) == 1
        assert first["total_pages"] == second["total_pages"] == 2
        assert read_json(directory / META_FILE)["count"] == PAGE_SIZE + 1

    def test_items_keep_insertion_order(self, index):
        for n in range(5):
            index.add("Acme", item(n))
        index.finalize()
        directory = index.directory_for("Acme")
        codes = [i["code"] for p in ("page-0001.json", "page-0002.json") for i in read_json(directory / p)["items"]]
        assert codes == ["0", "1", "2", "3", "4"]

    def test_finalize_is_idempotent(self, index):
        for n in range(7):
            index.add("Acme", item(n))
        index.finalize()
        directory = index.directory_for("Acme")
        before = snapshot(directory)
        index.finalize()
        assert snapshot(directory) == before

    def test_count_matches_sum_of_pages(self, index):
        for n in range(10):
            index.add("Acme", item(n))
        metas = index.finalize()
        directory = index.directory_for("Acme")
        meta = read_json(directory / META_FILE)
        pages = sorted(directory.glob("page-*.json"))
        assert len(pages) == meta["total_pages"] == 4
        assert sum(len(read_json(p)["items"]) for p in pages) == meta["count"] == 10
        assert metas[0].count == 10

    def test_keys_with_same_slug_share_an_index(self, index):
        index.add("Coca Cola", item(1))
        index.add("coca-cola", item(2))
        index.finalize()
        meta = read_json(index.directory_for("COCA COLA") / META_FILE)
        assert meta["tag"] == "Coca Cola"
        assert meta["count"] == 2

    def test_unusable_key_is_ignored(self, index):
        assert index.add("!!!", item(1)) is False
        assert index.finalize() == []

    def test_short_slug_uses_sentinel_shard(self, index, tmp_path):
        index.add("X", item(1))
        index.finalize()
        assert (tmp_path / "brands" / "__" / "x" / "page-0001.json").exists()

    def test_explicit_flush(self, index):
        index.add("Acme", item(1))
        index.flush("Acme")
        index.flush("Acme")
        directory = index.directory_for("Acme")
        assert (directory / "page-0001.json").exists()
        assert not (directory / "page-0002.json").exists()

    def test_stats(self, index):
        for n in range(4):
            index.add("Acme", item(n))
        index.add("Other", item(9))
        index.finalize()
        assert index.stats() == {"keys": 2, "pages": 3, "items": 5}

    def test_invalid_page_size(self, tmp_path):
        with pytest.raises(ValueError):
            PaginatedIndex(str(tmp_path), "brands", page_size=0)
