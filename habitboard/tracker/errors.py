"""Error taxonomy for the tracking engine.

ValidationError is raised before any store I/O. StorageError always chains
the backend exception as ``__cause__``.
"""

from __future__ import annotations

from typing import Any


class TrackerError(Exception):
    """Base class for every error the engine raises on purpose."""


class ValidationError(TrackerError):
    """Malformed input: out-of-range rating, blank name, unknown color, bad date."""


class NotFoundError(TrackerError):
    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class StorageError(TrackerError):
    """The persistence backend failed or returned a malformed row."""
