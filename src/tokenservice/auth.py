"""Resolve the caller's identity from a bearer token.

A token that starts with the read-write-token prefix is an anonymous
capability. Anything else must be a JWT signed by the platform.
"""
from __future__ import annotations

from typing import Mapping, Optional

import jwt

from .config import Config
from .errors import InvalidTokenError, MissingClaimError, MissingTokenError
from .models import READ_WRITE_TOKEN_PREFIX, AuthClaims, JWTClaims, ReadWriteTokenClaims

# Accepted only when Config.allow_test_token is set.
TEST_TOKEN = "test"
TEST_CLAIMS = JWTClaims(
    platform_user_id="test",
    platform_id="http://example.com",
    user_id="http://example.com/users/test",
    class_hash="testContextId",
)

_REQUIRED_CLAIMS = ("user_id", "platform_user_id", "platform_id")


def extract_token(
    headers: Mapping[str, str],
    query: Optional[Mapping[str, str]] = None,
    cookies: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """
    Return the bearer token of a request, or None for an anonymous caller.

    Looks at ``Authorization: Bearer <token>`` first, then the ``token``
    query parameter, then the ``token`` cookie.
    """
    auth = _get_header(headers, "authorization")
    parts = auth.split(" ", 1)
    if len(parts) == 2 and parts[0] == "Bearer" and parts[1].strip():
        return parts[1].strip()
    if query and query.get("token"):
        return query["token"]
    if cookies and cookies.get("token"):
        return cookies["token"]
    return None


def verify_token(token: str, public_key: str, algorithm: str = "RS256") -> dict:
    """
    Verify *token* with *public_key* and return its decoded payload.

    Raises:
        InvalidTokenError: bad signature, expired or malformed token.
    """
    try:
        return jwt.decode(token, public_key, algorithms=[algorithm])
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(f"Invalid token: {exc}") from exc


def claims_from_jwt(token: str, config: Config) -> JWTClaims:
    """
    Verify *token* and return the platform claims it carries.

    Raises:
        InvalidTokenError: verification failed or the payload has no claims.
        MissingClaimError: a required claim is absent.
    """
    if token == TEST_TOKEN and config.allow_test_token:
        return TEST_CLAIMS

    decoded = verify_token(token, config.public_key, config.jwt_algorithm)
    claims = decoded.get("claims") if isinstance(decoded, dict) else None
    if not isinstance(claims, dict):
        raise InvalidTokenError("Invalid token!")
    for name in _REQUIRED_CLAIMS:
        if not claims.get(name):
            raise MissingClaimError(name)

    return JWTClaims(
        platform_user_id=str(claims["platform_user_id"]),
        platform_id=str(claims["platform_id"]),
        user_id=str(claims["user_id"]),
        class_hash=claims.get("class_hash") or None,
        target_user_id=claims.get("target_user_id") or None,
    )


def authenticate(token: Optional[str], config: Config) -> AuthClaims:
    """Required authentication: a missing token is an error."""
    if not token:
        raise MissingTokenError()
    if token.startswith(READ_WRITE_TOKEN_PREFIX):
        return ReadWriteTokenClaims(token=token)
    return claims_from_jwt(token, config)


def optionally_authenticate(token: Optional[str], config: Config) -> Optional[AuthClaims]:
    """
    Optional authentication: no token means an anonymous caller (None).

    A token that is present is still fully validated; a malformed one raises
    instead of falling back to anonymous access.
    """
    if not token:
        return None
    return authenticate(token, config)


def optionally_authenticate_jwt(token: Optional[str], config: Config) -> Optional[JWTClaims]:
    """Like optionally_authenticate, but only a signed JWT is accepted."""
    if not token:
        return None
    return claims_from_jwt(token, config)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _get_header(headers: Mapping[str, str], name: str) -> str:
    for k, v in (headers or {}).items():
        if isinstance(k, str) and k.lower() == name.lower():
            return str(v) if v is not None else ""
    return ""
