"""
Signed token helpers.

Custom tokens (handed out after a successful OTP verification) and session
tokens (returned by the exchange) are RS256 JWTs signed with the same key.
The ``action`` claim keeps the two from being used interchangeably.
"""

import hashlib
import secrets
import time
from functools import lru_cache
from typing import Any

import jwt
from django.conf import settings

from apps.accounts.constants import JWTAction
from apps.accounts.exceptions import TokenInvalidError


def get_signing_private_key() -> str:
    """
    Get the RSA private key for JWT signing.

    Handles escaped newlines from environment variables.

    Raises:
        ValueError: If AUTH_JWT_PRIVATE_KEY is not configured
    """
    private_key = settings.AUTH_JWT_PRIVATE_KEY
    if not private_key:
        raise ValueError("AUTH_JWT_PRIVATE_KEY is not configured")

    if "\\n" in private_key:
        private_key = private_key.replace("\\n", "\n")

    return private_key


@lru_cache(maxsize=1)
def get_signing_public_key() -> str:
    """
    Derive the PEM public key from the private key.

    Cached since key derivation is expensive and the key doesn't change.
    Call ``get_signing_public_key.cache_clear()`` after rotating keys.
    """
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.serialization import load_pem_private_key

    private_key = load_pem_private_key(get_signing_private_key().encode(), password=None)
    public_key_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return public_key_pem.decode()


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a token, used as its lookup key."""
    return hashlib.sha256(token.encode()).hexdigest()


def encode_token(uid: str, action: JWTAction, expires_in: int, **claims: Any) -> tuple[str, int]:
    """
    Sign a JWT for ``uid``.

    Returns:
        Tuple of (token, exp) where exp is the Unix expiry timestamp.
    """
    now = int(time.time())
    exp = now + expires_in
    payload: dict[str, Any] = {
        "iss": settings.AUTH_JWT_ISSUER,
        "sub": uid,
        "action": str(action),
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": exp,
        **claims,
    }
    token = jwt.encode(
        payload,
        get_signing_private_key(),
        algorithm="RS256",
        headers={"kid": settings.AUTH_JWT_KEY_ID},
    )
    return token, exp


def decode_token(token: str, action: JWTAction) -> dict[str, Any]:
    """
    Verify a JWT signed by this service and check its action claim.

    Raises:
        TokenInvalidError: Bad signature, expired, wrong issuer or wrong action.
    """
    try:
        payload = jwt.decode(
            token,
            get_signing_public_key(),
            algorithms=["RS256"],
            issuer=settings.AUTH_JWT_ISSUER,
            options={"require": ["exp", "sub", "action", "jti"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenInvalidError("Token has expired.") from None
    except jwt.InvalidTokenError:
        raise TokenInvalidError() from None

    if payload.get("action") != action:
        raise TokenInvalidError("Invalid token type.")

    return payload
