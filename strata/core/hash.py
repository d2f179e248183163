"""Hash utilities for Strata."""

import hashlib
import re

DIGEST_SIZE = 32
DIGEST_HEX_LENGTH = DIGEST_SIZE * 2

_DIGEST_RE = re.compile(r'^[0-9a-f]{64}$')


def hash_object(data: bytes) -> str:
    """
    Compute SHA-256 hash of data.
    
    Args:
        data: Bytes to hash
        
    Returns:
        64-character lowercase hex string
    """
    return hashlib.sha256(data).hexdigest()


def is_digest(value: str) -> bool:
    """Return True if value is a full lowercase hex digest."""
    return isinstance(value, str) and bool(_DIGEST_RE.match(value))
