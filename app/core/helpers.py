"""
Helper functions for common infrastructure operations.

These utilities are pure infrastructure - they have no knowledge
of domain concepts like applications, firms or holds.

Usage:
    from core.helpers import generate_url_token

    token = generate_url_token(prefix="hold_")
"""

from __future__ import annotations

import secrets


def generate_url_token(nbytes: int = 16, prefix: str = "") -> str:
    """
    Generate a cryptographically secure, URL-safe random token.

    Args:
        nbytes: Number of random bytes (16 bytes yields 22 characters)
        prefix: Optional readable prefix prepended to the token

    Returns:
        Token string safe for use as a URL path segment

    Example:
        generate_url_token(prefix="hold_")  # "hold_3q2-7wEVQy1f0hXUuPzk5A"
    """
    return f"{prefix}{secrets.token_urlsafe(nbytes)}"
