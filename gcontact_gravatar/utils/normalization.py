"""
Email normalization and hashing for Gravatar lookups.

Gravatar addresses images by the MD5 digest of the trimmed, lowercased
email address.
"""

from __future__ import annotations

import hashlib


def normalize_email(value: str) -> str:
    """
    Normalize an email address the way Gravatar expects it.

    Args:
        value: Email address as found on the contact

    Returns:
        The address with surrounding whitespace removed and lowercased
    """
    if not value:
        return ""
    return value.strip().lower()


def email_hash(value: str) -> str:
    """
    Compute the Gravatar hash for an email address.

    Args:
        value: Email address (normalized internally)

    Returns:
        Hex MD5 digest of the normalized address
    """
    return hashlib.md5(normalize_email(value).encode("utf-8")).hexdigest()
