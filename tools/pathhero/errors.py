"""Error kinds raised by the Path Hero stores.

Negative-but-valid outcomes (bad credentials, hunt not found) are never
errors; they come back as ordinary results carrying ``None`` or a failure
message.
"""


class PathHeroError(Exception):
    """Base class for all Path Hero errors."""


class HashError(PathHeroError):
    """The password hashing algorithm failed (bad input, library fault)."""


class StoreError(PathHeroError):
    """The storage engine rejected or failed an operation."""


class InvalidHuntError(PathHeroError, ValueError):
    """A hunt document does not match the expected shape."""
