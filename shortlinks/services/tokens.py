"""Shortlink token generation."""

import secrets

DEFAULT_TOKEN_BYTES = 6


def generate_token(byte_length: int = DEFAULT_TOKEN_BYTES) -> str:
    """
    Generate an opaque token of ``2 * byte_length`` lowercase hex characters.

    Uses the operating system CSPRNG. Uniqueness against stored tokens is
    not checked here.

    Raises:
        ValueError: If byte_length is less than 1
    """
    if byte_length < 1:
        raise ValueError("byte_length must be at least 1")
    return secrets.token_hex(byte_length)
