"""
Typed failures raised by the engine.

Every error carries a ``kind`` and the offending ``value`` so callers can
build their own user-facing message.
"""

from typing import Any, Optional


class TasteEloError(Exception):
    """Base class for all engine errors."""

    kind = "error"

    def __init__(self, message: str, value: Optional[Any] = None, kind: Optional[str] = None):
        super().__init__(message)
        self.value = value
        if kind is not None:
            self.kind = kind


class ValidationError(TasteEloError, ValueError):
    """Malformed input. Never retried."""

    kind = "validation"


class InsufficientItemsError(ValidationError):
    """A tournament pool has fewer than two active items."""

    kind = "insufficient_items"


class InsufficientDataError(TasteEloError):
    """A statistical query is below its confidence threshold."""

    kind = "insufficient_data"


class DependencyFailure(TasteEloError):
    """An external collaborator (classifier, store) failed."""

    kind = "dependency"
