"""Content fingerprint used as the sole change-detection signal."""

import hashlib


def fingerprint(data: bytes) -> str:
    """SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()
