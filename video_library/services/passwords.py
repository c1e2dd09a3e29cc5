from __future__ import annotations

import hashlib
import secrets

_ALGORITHM = "pbkdf2_sha256"
_SALT_BYTES = 16


def hash_password(password: str, *, iterations: int) -> str:
    salt = secrets.token_hex(_SALT_BYTES)
    digest = _derive(password, salt=salt, iterations=iterations)
    return f"{_ALGORITHM}${iterations}${salt}${digest}"


def verify_password(password: str, encoded: str) -> bool:
    algorithm, _, remainder = encoded.partition("$")
    if algorithm != _ALGORITHM:
        return False
    raw_iterations, _, remainder = remainder.partition("$")
    salt, _, expected = remainder.partition("$")
    try:
        iterations = int(raw_iterations)
    except ValueError:
        return False
    if iterations < 1 or not salt or not expected:
        return False
    return secrets.compare_digest(_derive(password, salt=salt, iterations=iterations), expected)


def _derive(password: str, *, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
    ).hex()
