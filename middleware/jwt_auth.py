"""
Session JWT Module

This module mints and verifies the session tokens the API hands out after a
user signs in with Google. Every authenticated endpoint expects one as a
Bearer token.

JWT Claims:
- sub: string (required) - Google account uid of the signed-in user
- email: string (required) - Email address of the signed-in user
- name: string (optional) - Display name
- iss: string (required) - Issuer, must match SESSION_JWT_ISSUER
- aud: string (required) - Audience, must match SESSION_JWT_AUDIENCE
- iat: number (required) - Issued-at timestamp
- exp: number (required) - Expiration timestamp

Security:
- Uses HMAC-SHA256 (HS256) symmetric signing
- Never logs full JWT tokens
"""

import time
import logging
from typing import Optional
from dataclasses import dataclass

import jwt
from jwt.exceptions import (
    InvalidTokenError,
    ExpiredSignatureError,
    InvalidIssuerError,
    InvalidAudienceError,
)

from config import Settings

logger = logging.getLogger(__name__)

# Clock skew tolerance in seconds (for exp validation)
CLOCK_SKEW_LEEWAY = 30

MIN_SECRET_LENGTH = 32


@dataclass
class SessionClaims:
    """
    Validated claims extracted from a session JWT.

    Attributes:
        uid: Google account uid of the user
        email: Email address of the user
        issued_at: Unix timestamp when the token was issued
        expires_at: Unix timestamp when the token expires
        display_name: Optional display name
    """
    uid: str
    email: str
    issued_at: int
    expires_at: int
    display_name: str | None = None


class JWTVerificationError(Exception):
    """
    Raised when JWT creation or verification fails.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for logging
    """
    def __init__(self, message: str, code: str = "JWT_INVALID"):
        self.message = message
        self.code = code
        super().__init__(message)


def get_jwt_config(settings: Settings) -> tuple[str, str, str]:
    """
    Get session JWT configuration.

    Returns:
        Tuple of (secret, issuer, audience)

    Raises:
        JWTVerificationError: If the secret is missing or too short
    """
    secret = settings.session_jwt_secret

    if not secret:
        logger.error("SESSION_JWT_SECRET not configured")
        raise JWTVerificationError(
            "Session tokens not configured",
            code="JWT_NOT_CONFIGURED"
        )

    if len(secret) < MIN_SECRET_LENGTH:
        logger.error(f"SESSION_JWT_SECRET is too short (min {MIN_SECRET_LENGTH} chars)")
        raise JWTVerificationError(
            "Session tokens misconfigured",
            code="JWT_MISCONFIGURED"
        )

    return secret, settings.session_jwt_issuer, settings.session_jwt_audience


def create_session_token(
    settings: Settings,
    uid: str,
    email: str,
    display_name: Optional[str] = None,
) -> str:
    """Mint a session JWT for a signed-in user."""
    secret, issuer, audience = get_jwt_config(settings)

    now = int(time.time())
    payload = {
        "sub": uid,
        "email": email,
        "iss": issuer,
        "aud": audience,
        "iat": now,
        "exp": now + settings.session_jwt_ttl_seconds,
    }
    if display_name:
        payload["name"] = display_name

    logger.info(f"Session token issued for uid={uid[:8]}...")
    return jwt.encode(payload, secret, algorithm="HS256")


def verify_session_token(token: str, settings: Settings) -> SessionClaims:
    """
    Verify a session JWT and extract claims.

    Checks, in order: signature, issuer, audience, expiry (with clock skew
    tolerance), and presence of the sub and email claims.

    Args:
        token: The JWT string (without 'Bearer ' prefix)
        settings: Settings carrying the secret, issuer and audience

    Returns:
        SessionClaims with the validated uid and email

    Raises:
        JWTVerificationError: On any validation failure
    """
    secret, issuer, audience = get_jwt_config(settings)

    # Log only that verification is being attempted (never log the token)
    logger.debug(f"Verifying JWT (first 8 chars): {token[:8]}...")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            issuer=issuer,
            audience=audience,
            leeway=CLOCK_SKEW_LEEWAY,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            }
        )

        uid = payload.get("sub")
        email = payload.get("email")

        if not uid:
            logger.warning("JWT missing sub claim")
            raise JWTVerificationError(
                "Missing required claim: sub",
                code="JWT_MISSING_SUBJECT"
            )

        if not email:
            logger.warning("JWT missing email claim")
            raise JWTVerificationError(
                "Missing required claim: email",
                code="JWT_MISSING_EMAIL"
            )

        return SessionClaims(
            uid=uid,
            email=email,
            display_name=payload.get("name"),
            issued_at=payload.get("iat", 0),
            expires_at=payload.get("exp", 0),
        )

    except ExpiredSignatureError:
        logger.warning("JWT has expired")
        raise JWTVerificationError("Token has expired", code="JWT_EXPIRED")

    except InvalidIssuerError:
        logger.warning(f"JWT has invalid issuer (expected: {issuer})")
        raise JWTVerificationError("Invalid token issuer", code="JWT_INVALID_ISSUER")

    except InvalidAudienceError:
        logger.warning(f"JWT has invalid audience (expected: {audience})")
        raise JWTVerificationError("Invalid token audience", code="JWT_INVALID_AUDIENCE")

    except InvalidTokenError as e:
        logger.warning(f"JWT verification failed: {type(e).__name__}")
        raise JWTVerificationError("Invalid token", code="JWT_INVALID")


def extract_bearer_token(authorization_header: Optional[str]) -> Optional[str]:
    """
    Extract the token from an Authorization header.

    Returns:
        The token string, or None if header is missing/malformed
    """
    if not authorization_header:
        return None

    if not authorization_header.startswith("Bearer "):
        return None

    token = authorization_header[7:]  # Remove "Bearer " prefix

    if not token or not token.strip():
        return None

    return token.strip()
