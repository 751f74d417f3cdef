"""
PKCE (Proof Key for Code Exchange) helpers.

The relay acts as a public client towards the identity provider whenever a
tenant has no client secret configured. The verifier never leaves the
relay's hands except inside the state bundle; the provider only ever sees
the hashed challenge until the token exchange.

Flow:
1. Generate random code_verifier (43-128 chars)
2. Create code_challenge = BASE64URL(SHA256(code_verifier))
3. Send code_challenge with authorization request
4. Send code_verifier when exchanging code for tokens
"""

import base64
import hashlib
import secrets
from typing import Tuple

MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128


def generate_code_verifier(length: int = MAX_VERIFIER_LENGTH) -> str:
    """
    Generate a cryptographically random code verifier.

    Args:
        length: Number of hex characters in the verifier (43-128, default 128)

    Returns:
        Lowercase hex string of exactly ``length`` characters

    Raises:
        ValueError: If length is outside the range PKCE allows
    """
    if not MIN_VERIFIER_LENGTH <= length <= MAX_VERIFIER_LENGTH:
        raise ValueError(
            f"code verifier length must be between {MIN_VERIFIER_LENGTH} "
            f"and {MAX_VERIFIER_LENGTH}, got {length}"
        )
    # Two hex characters per byte; round up and trim
    return secrets.token_hex((length + 1) // 2)[:length]


def generate_code_challenge(code_verifier: str) -> str:
    """
    Generate a code challenge from a code verifier using SHA256.

    Args:
        code_verifier: The code verifier string

    Returns:
        URL-safe base64 encoded SHA256 hash without padding
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_pkce_pair(length: int = MAX_VERIFIER_LENGTH) -> Tuple[str, str]:
    """
    Generate a matching verifier/challenge pair.

    Returns:
        Tuple of (code_verifier, code_challenge)
    """
    verifier = generate_code_verifier(length)
    return verifier, generate_code_challenge(verifier)
