"""
Error types for the pantry chef engine.

None of these escape the top-level engine calls. Sources raise them, the
aggregator and cache catch them and fall back to the next source.
"""

from typing import Optional


class PantryChefError(Exception):
    """Base class for engine errors."""


class SourceUnavailableError(PantryChefError):
    """A recipe source could not answer (network, non-2xx, not configured)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QuotaExceededError(SourceUnavailableError):
    """The external API refused the call for quota or billing reasons (HTTP 402)."""

    def __init__(self, message: str = "External recipe API quota reached"):
        super().__init__(message, status_code=402)


class MalformedRecipeError(PantryChefError):
    """An upstream record is missing fields a Recipe requires."""


class PersistenceError(PantryChefError):
    """The key-value store failed to read or write."""
