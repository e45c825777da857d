"""Tests for mapping snapshot query results onto CachedCollections."""

from content_cache.sync.mapper import map_record, map_snapshot


class TestMapRecord:
    def test_ids_are_renamed(self):
        record = map_record({"databaseId": 5, "id": "cG9zdDo1", "title": "T"})
        assert record == {"id": 5, "globalId": "cG9zdDo1", "title": "T"}

    def test_connections_are_unwrapped(self):
        record = map_record(
            {
                "databaseId": 1,
                "author": {"node": {"databaseId": 30, "name": "Ed"}},
                "tags": {"nodes": [{"databaseId": 20, "name": "py"}]},
            }
        )
        assert record["author"] == {"id": 30, "name": "Ed"}
        assert record["tags"] == [{"id": 20, "name": "py"}]

    def test_plain_dicts_are_left_alone(self):
        record = map_record({"databaseId": 1, "meta": {"a": 1, "node": 2}})
        assert record["meta"] == {"a": 1, "node": 2}


class TestMapSnapshot:
    def test_full_snapshot(self):
        data = {
            "posts": {"nodes": [{"databaseId": 1, "id": "p1", "title": "A"}]},
            "pages": {"nodes": [{"databaseId": 2, "id": "g2"}]},
            "categories": {"nodes": [{"databaseId": 3, "id": "c3"}]},
            "tags": {"nodes": [{"databaseId": 4, "id": "t4"}]},
            "users": {"nodes": [{"databaseId": 5, "id": "u5", "name": "Ed"}]},
            "generalSettings": {"title": "Site", "url": "https://x"},
            "menuItems": {
                "nodes": [
                    {"databaseId": 9, "label": "Home", "parentDatabaseId": 0}
                ]
            },
        }
        snapshot = map_snapshot(data)
        assert snapshot.counts() == {
            "posts": 1,
            "categories": 1,
            "tags": 1,
            "authors": 1,
            "pages": 1,
        }
        assert snapshot.authors[5]["name"] == "Ed"
        assert snapshot.site == {"title": "Site", "url": "https://x"}
        assert snapshot.menu == [{"id": 9, "label": "Home", "parentId": 0}]

    def test_missing_fields_give_empty_collections(self):
        snapshot = map_snapshot({})
        assert all(count == 0 for count in snapshot.counts().values())
        assert snapshot.site is None
        assert snapshot.menu is None

    def test_nodes_without_database_id_are_dropped(self, caplog):
        snapshot = map_snapshot(
            {"posts": {"nodes": [{"id": "orphan"}, {"databaseId": "7"}]}}
        )
        assert list(snapshot.posts) == [7]
        assert "orphan" in caplog.text
