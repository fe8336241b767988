"""Salted SHA-1 password hashing."""

from __future__ import annotations

import hashlib
import secrets
import string

SALT_LENGTH = 8
_LETTERS = string.ascii_lowercase + string.ascii_uppercase


def get_sha1(value: bytes | str) -> str:
    """Return the hex SHA-1 digest of ``value``."""
    if isinstance(value, str):
        value = value.encode("utf-8")
    return hashlib.sha1(value).hexdigest()


def hash_and_salt(salt: bytes | str | None, password: str) -> str:
    """Return ``salt`` followed by the SHA-1 of ``password``.

    When ``salt`` is None a random salt of eight ASCII letters is drawn.
    """
    if salt is None:
        salt = "".join(secrets.choice(_LETTERS) for _ in range(SALT_LENGTH))
    elif isinstance(salt, bytes):
        salt = salt.decode("latin-1")
    return salt + get_sha1(password)


def check_with_hash(hashed_str: str, plain_str: str) -> bool:
    """Tell whether ``plain_str`` hashes to ``hashed_str`` under its own salt."""
    if len(hashed_str) < SALT_LENGTH:
        raise ValueError(f"hashed value shorter than the {SALT_LENGTH}-byte salt")
    return hash_and_salt(hashed_str[:SALT_LENGTH], plain_str) == hashed_str