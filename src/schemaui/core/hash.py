"""Hashing for expression cache keys and schema fingerprints.

xxhash keys the parsed-expression cache; SHA256 gives a portable
fingerprint of a schema document, so logs from different processes can be
correlated to the same tree.
"""

from enum import Enum
import hashlib
from typing import Any

import orjson
import xxhash


class Algorithm(str, Enum):
    """Supported hash algorithms."""

    XXHASH64 = "xxhash64"  # cache keys
    SHA256 = "sha256"      # document fingerprints


def digest(
    data: bytes | str,
    algorithm: Algorithm = Algorithm.XXHASH64,
    length: int | None = None,
) -> str:
    """
    Hex digest of bytes or text (text is UTF-8 encoded).

    Args:
        data: Payload to hash
        algorithm: Hash algorithm
        length: Keep only the first ``length`` hex characters

    Examples:
        >>> len(digest("data.amount > 1000"))
        16
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    if algorithm == Algorithm.XXHASH64:
        value = xxhash.xxh64(data).hexdigest()
    elif algorithm == Algorithm.SHA256:
        value = hashlib.sha256(data).hexdigest()
    else:
        raise ValueError(f"Unknown algorithm: {algorithm}")

    return value[:length] if length else value


def cache_key(expression: str, algorithm: Algorithm = Algorithm.XXHASH64) -> str:
    """Fixed-width key for an expression of any length."""
    return digest(expression.strip(), algorithm, length=16)


def fingerprint(document: Any, length: int | None = 16) -> str:
    """
    Fingerprint a schema document (or any JSON value).

    Keys are sorted, so two trees with the same content always share a
    fingerprint regardless of attribute order.
    """
    data = orjson.dumps(document, option=orjson.OPT_SORT_KEYS, default=str)
    return digest(data, Algorithm.SHA256, length)


__all__ = [
    "Algorithm",
    "digest",
    "cache_key",
    "fingerprint",
]
