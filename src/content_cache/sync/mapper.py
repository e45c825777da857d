"""Map the remote snapshot query result onto ``CachedCollections``.

The upstream returns relay-style connections (``{"nodes": [...]}``) with
two identifiers per node: the numeric ``databaseId`` and an opaque global
``id``.  Records are keyed by ``databaseId``; the global id is kept as
``globalId``.

Mapping:

- ``posts``, ``pages``, ``categories``, ``tags`` -> same collection name
- ``users`` -> ``authors``
- ``generalSettings`` -> ``site``
- ``menuItems`` -> ``menu`` (flat list, order preserved)
"""

from __future__ import annotations

import logging
from typing import Any

from ..storage.base import CachedCollections, Record

logger = logging.getLogger(__name__)

# remote root field -> collection name
COLLECTION_FIELDS: dict[str, str] = {
    "posts": "posts",
    "pages": "pages",
    "categories": "categories",
    "tags": "tags",
    "users": "authors",
}


def map_snapshot(data: dict[str, Any]) -> CachedCollections:
    """Build a ``CachedCollections`` from the ``data`` of a snapshot query.

    Nodes without a numeric ``databaseId`` are dropped with a warning.
    Absent root fields yield empty collections, so an upstream with no
    content maps to an empty (but valid) snapshot.
    """
    collections: dict[str, dict[int, Record]] = {}
    for field, name in COLLECTION_FIELDS.items():
        collections[name] = _index_nodes(field, _nodes(data.get(field)))

    site = data.get("generalSettings")
    menu_nodes = data.get("menuItems")

    return CachedCollections(
        **collections,
        site=dict(site) if isinstance(site, dict) else None,
        menu=(
            [map_record(n) for n in _nodes(menu_nodes) if isinstance(n, dict)]
            if menu_nodes is not None
            else None
        ),
    )


def map_record(node: dict[str, Any]) -> Record:
    """Flatten one remote node into a cache record.

    ``databaseId`` becomes ``id`` and the global ``id`` becomes
    ``globalId``.  Nested connections are unwrapped: ``{"node": x}`` becomes
    ``x`` and ``{"nodes": [...]}`` becomes the list.
    """
    record: Record = {}
    for key, value in node.items():
        match key:
            case "databaseId":
                record["id"] = value
            case "id":
                record["globalId"] = value
            case "parentDatabaseId":
                record["parentId"] = value
            case _:
                record[key] = _unwrap(value)
    return record


def _unwrap(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {"node"}:
            inner = value["node"]
            return map_record(inner) if isinstance(inner, dict) else inner
        if set(value) == {"nodes"}:
            return [
                map_record(n) if isinstance(n, dict) else n
                for n in value["nodes"] or []
            ]
    return value


def _nodes(connection: Any) -> list[Any]:
    if isinstance(connection, dict):
        return list(connection.get("nodes") or [])
    if isinstance(connection, list):
        return connection
    return []


def _index_nodes(field: str, nodes: list[Any]) -> dict[int, Record]:
    indexed: dict[int, Record] = {}
    for node in nodes:
        if not isinstance(node, dict):
            continue
        try:
            record_id = int(node["databaseId"])
        except (KeyError, TypeError, ValueError):
            logger.warning(
                "Skipping %s node without numeric databaseId: %r",
                field,
                node.get("id"),
            )
            continue
        record = map_record(node)
        record["id"] = record_id
        indexed[record_id] = record
    return indexed
