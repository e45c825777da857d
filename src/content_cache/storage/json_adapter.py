"""File-backed storage adapter.

The whole snapshot lives in one JSON document.  Every ``save_all`` rewrites
the document, so ids absent from the call disappear (``full_replace``).

Document layout::

    {
      "format": "content-cache/snapshot",
      "version": 1,
      "saved_at": "2025-01-01T00:00:00+00:00",
      "posts": {"1": {...}},
      "categories": {}, "tags": {}, "authors": {}, "pages": {},
      "site": {...} | null,
      "menu": [...] | null
    }
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from ..errors import PersistFailureError, StoreEmptyError
from .base import CachedCollections

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = "content-cache/snapshot"
SNAPSHOT_VERSION = 1

DEFAULT_JSON_PATH = Path("data") / "json" / "full.json"


class JsonFileAdapter:
    """Persist the snapshot as a single JSON document.

    Args:
        path: Location of the document.  Parent directories are created on
            the first save.
    """

    name = "json"
    full_replace = True

    def __init__(self, path: str | Path = DEFAULT_JSON_PATH) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    def get_all(self) -> CachedCollections:
        with self._lock:
            if not self.path.exists():
                raise StoreEmptyError(f"JSON store missing: {self.path}")
            try:
                with open(self.path, encoding="utf-8") as fh:
                    raw = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                raise PersistFailureError(
                    f"Cannot read JSON store {self.path}: {exc}"
                ) from exc

        if not isinstance(raw, dict):
            raise PersistFailureError(
                f"JSON store {self.path} has a non-object root"
            )
        try:
            return CachedCollections.model_validate(raw)
        except ValidationError as exc:
            raise PersistFailureError(
                f"JSON store {self.path} is malformed: {exc}"
            ) from exc

    def save_all(self, data: CachedCollections) -> None:
        document = {
            "format": SNAPSHOT_FORMAT,
            "version": SNAPSHOT_VERSION,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            **data.model_dump(mode="json"),
        }
        with self._lock:
            try:
                self._write_atomic(document)
            except (OSError, TypeError, ValueError) as exc:
                raise PersistFailureError(
                    f"Cannot write JSON store {self.path}: {exc}"
                ) from exc
        logger.debug("Saved snapshot to %s: %s", self.path, data.counts())

    def health(self) -> bool:
        try:
            return self.path.is_file()
        except OSError:
            return False

    def _write_atomic(self, document: dict) -> None:
        """Write to a temp file in the target directory, then replace."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
