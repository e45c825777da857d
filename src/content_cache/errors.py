"""Exception taxonomy shared by the storage, queue and remote layers.

The sync coordinator converts every one of these into a tagged outcome, so
nothing below propagates across its public boundary.
"""

from __future__ import annotations

from typing import Any


class ContentCacheError(Exception):
    """Base class for all content cache errors."""


class StoreEmptyError(ContentCacheError):
    """No snapshot has ever been written to the store.

    Expected on first run; callers decide whether to pull or report empty.
    """


class PersistFailureError(ContentCacheError):
    """Writing to a storage adapter or the queue file failed."""


class RemoteUnavailableError(ContentCacheError):
    """The remote could not be reached (network error, timeout, bad transport)."""


class RemoteRejectedError(ContentCacheError):
    """The remote answered with a structured GraphQL error list.

    Attributes:
        errors: The ``errors`` entries returned by the remote.
    """

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        self.errors = errors
        messages = [
            str(e.get("message", "Unknown error")) for e in errors
        ] or ["Unknown error"]
        super().__init__("; ".join(messages))
