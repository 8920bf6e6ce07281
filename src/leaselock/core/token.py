"""Ownership token generation."""

from __future__ import annotations

import secrets
import string

TOKEN_LENGTH = 18
_ALPHABET = string.ascii_letters + string.digits


def new_token(length: int = TOKEN_LENGTH) -> str:
    """Return a random alphanumeric token identifying one lock instance."""
    if length <= 0:
        raise ValueError("token length must be positive")
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def short_token(token: str) -> str:
    """Token prefix safe to put in log lines."""
    return f"{token[:6]}..."
