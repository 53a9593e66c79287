# src/here/utils/hash.py
"""Password digest helpers.

Clients send a SHA-256 digest of their password instead of the plaintext.
Lookups send the plaintext, which the server digests before comparing.
"""

from __future__ import annotations

import hashlib
import hmac


def password_digest(plaintext: str) -> str:
    """Return the hexadecimal SHA-256 digest of ``plaintext``."""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def optional_password_digest(plaintext: str | None) -> str | None:
    """Digest ``plaintext`` if a password is configured, else ``None``."""
    if plaintext is None:
        return None
    return password_digest(plaintext)


def verify_password(plaintext: str, digest: str | None) -> bool:
    """Return True if ``plaintext`` hashes to ``digest``.

    A record without a digest never verifies against a supplied password.
    """
    if digest is None:
        return False
    return hmac.compare_digest(password_digest(plaintext), digest)
