"""Share token generation."""

import secrets
from typing import Final

# 32 random bytes -> 64 hex characters, 256 bits of entropy
_TOKEN_BYTES: Final = 32


def generate_share_token() -> str:
    """Generate an unguessable share token.

    Uses the operating system's CSPRNG. An unavailable entropy source
    raises from ``secrets`` and is left to propagate.

    Returns:
        Fixed-length lowercase hexadecimal string.
    """
    return secrets.token_hex(_TOKEN_BYTES)
