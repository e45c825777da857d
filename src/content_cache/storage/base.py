"""Snapshot model and the storage adapter contract.

``CachedCollections`` is the unit every adapter reads and writes.  Backends
implement ``StorageAdapter`` structurally; none of them inherit from a common
base class.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field, model_validator

COLLECTION_NAMES: tuple[str, ...] = (
    "posts",
    "categories",
    "tags",
    "authors",
    "pages",
)

Record = dict[str, Any]


class CachedCollections(BaseModel):
    """Full snapshot of cached content.

    Each collection maps a numeric id to an opaque record.  The upstream list
    shape (``posts: [{"id": 1, ...}]``) is accepted as input and indexed by
    each record's ``id``; a later duplicate replaces an earlier one.

    Attributes:
        posts: Posts keyed by id.
        categories: Categories keyed by id.
        tags: Tags keyed by id.
        authors: Authors keyed by id.
        pages: Pages keyed by id.
        site: Optional site metadata (title, description, url).
        menu: Optional menu structure.
    """

    posts: dict[int, Record] = Field(default_factory=dict)
    categories: dict[int, Record] = Field(default_factory=dict)
    tags: dict[int, Record] = Field(default_factory=dict)
    authors: dict[int, Record] = Field(default_factory=dict)
    pages: dict[int, Record] = Field(default_factory=dict)
    site: dict[str, Any] | None = None
    menu: list[Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _index_sequences(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in COLLECTION_NAMES:
            value = data.get(name)
            if isinstance(value, (list, tuple)):
                data[name] = _index_by_id(name, value)
        return data

    def collection(self, name: str) -> dict[int, Record]:
        """Return the collection called *name*.

        Raises:
            KeyError: If *name* is not one of ``COLLECTION_NAMES``.
        """
        if name not in COLLECTION_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def counts(self) -> dict[str, int]:
        """Number of records per collection."""
        return {name: len(self.collection(name)) for name in COLLECTION_NAMES}


def _index_by_id(name: str, items: list | tuple) -> dict[int, Record]:
    indexed: dict[int, Record] = {}
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(
                f"{name}[{position}] must be an object, got {type(item).__name__}"
            )
        try:
            record_id = int(item["id"])
        except (KeyError, TypeError, ValueError):
            raise ValueError(
                f"{name}[{position}] has no numeric 'id'"
            ) from None
        indexed[record_id] = item
    return indexed


@runtime_checkable
class StorageAdapter(Protocol):
    """Uniform contract over a backing store for ``CachedCollections``.

    Attributes:
        name: Backend identifier (``json``, ``sqlite``, ``memory``).
        full_replace: ``True`` if ``save_all`` removes ids absent from the
            call; ``False`` if it upserts into existing state.
    """

    name: str
    full_replace: bool

    def get_all(self) -> CachedCollections:
        """Return a disconnected copy of the stored snapshot.

        Raises:
            StoreEmptyError: If nothing has been saved yet.
        """
        ...

    def save_all(self, data: CachedCollections) -> None:
        """Persist *data*, creating storage locations as needed.

        Raises:
            PersistFailureError: If the write could not be completed.
        """
        ...

    def health(self) -> bool:
        """Return whether the store holds a snapshot.  Never raises."""
        ...
