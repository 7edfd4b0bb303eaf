"""Service identity generation.

Tokens use the URL-safe nanoid alphabet and length, drawn from `secrets`,
so concurrent runs never need to check names against the backend.
"""

from __future__ import annotations

import secrets

from core.domain.models import ServiceIdentity

TOKEN_ALPHABET = "_-0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
TOKEN_SIZE = 21


def next_level(current_level: int | None) -> int:
    """Depth assigned to the child of an instance running at `current_level`."""

    if current_level is None or current_level < 0:
        return 1
    return current_level + 1


def generate_token(size: int = TOKEN_SIZE) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(size))


def generate(current_level: int) -> ServiceIdentity:
    """Create the identity of the service that the current instance will spawn."""

    return ServiceIdentity(token=generate_token(), level=next_level(current_level))
