"""Operating mode and the write-permission gate.

The mode is read once from configuration at startup and passed by value into
the ``ModeGate`` and the sync coordinator.  There is no transition function:
changing mode means restarting the process.
"""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Process-wide write policy."""

    GETMODE = "GETMODE"
    SETMODE = "SETMODE"
    CRUDMODE = "CRUDMODE"


def parse_mode(value: str | None) -> Mode:
    """Map a configuration string to a ``Mode``.

    Matching is case-insensitive.  Unknown or empty values fall back to
    ``GETMODE`` so a typo never enables writes.
    """
    normalized = (value or "").strip().upper()
    try:
        return Mode(normalized)
    except ValueError:
        if normalized:
            logger.warning(
                "Unknown mode '%s', falling back to %s",
                value,
                Mode.GETMODE.value,
            )
        return Mode.GETMODE


def can_write(mode: Mode) -> bool:
    """Return ``False`` only for ``GETMODE``."""
    return mode is not Mode.GETMODE


class ModeGate:
    """Decide whether a write request may proceed under the configured mode.

    Args:
        mode: The mode captured at startup.
    """

    def __init__(self, mode: Mode) -> None:
        self._mode = mode

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def can_write(self) -> bool:
        return can_write(self._mode)

    @property
    def pulls_remote_changes(self) -> bool:
        """Whether remote-originated changes are pulled back after writes."""
        return self._mode is Mode.CRUDMODE

    def describe(self) -> str:
        match self._mode:
            case Mode.GETMODE:
                return "Read-only mode. Writes are forbidden."
            case Mode.SETMODE:
                return "Edit mode. Writes apply remotely or queue when offline."
            case Mode.CRUDMODE:
                return "Full sync mode. Writes apply or queue; flushes refresh the snapshot."
