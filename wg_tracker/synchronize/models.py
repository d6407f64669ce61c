"""Internal data models for synchronization decisions."""

from enum import Enum


class SyncDecision(Enum):
    """Enum for sync decisions."""

    CREATE = "create"
    UPDATE = "update"
    NOOP = "noop"
