"""ID Generation.

ULID-based identifiers for render passes and sessions. ULIDs are
lexicographically sortable, so a newer generation token always compares
greater than an older one minted by the same process.
"""

from typing import NewType
from ulid import ULID

GenerationID = NewType("GenerationID", str)
"""Render pass (generation) token"""

SessionID = NewType("SessionID", str)
"""Mounted view identifier"""


class Prefix:
    """ID prefix constants."""

    GENERATION = "gen"
    SESSION = "view"


def generate_prefixed(prefix: str) -> str:
    """Generate a prefixed ULID."""
    return f"{prefix}_{ULID()}"


def new_generation_id() -> GenerationID:
    """Generate new render generation token."""
    return GenerationID(generate_prefixed(Prefix.GENERATION))


def new_session_id() -> SessionID:
    """Generate new view session ID."""
    return SessionID(generate_prefixed(Prefix.SESSION))


def is_valid(id_str: str) -> bool:
    """Check if string is a (possibly prefixed) ULID."""
    try:
        ulid_part = id_str.split("_", 1)[1] if "_" in id_str else id_str
        if len(ulid_part) != 26:
            return False
        ULID.from_str(ulid_part)
        return True
    except (ValueError, IndexError):
        return False


def extract_prefix(id_str: str) -> str | None:
    """Extract prefix from prefixed ID."""
    parts = id_str.split("_")
    return parts[0] if len(parts) == 2 else None


__all__ = [
    "GenerationID",
    "SessionID",
    "Prefix",
    "generate_prefixed",
    "new_generation_id",
    "new_session_id",
    "is_valid",
    "extract_prefix",
]
