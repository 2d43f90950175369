"""
Authentication Module

Provides:
- JWT token creation and verification
- Token revocation list
- Resolving the signed-in player from request headers
"""

import os
import time
import secrets
from typing import Optional, Dict, Any
from dataclasses import dataclass

import jwt

from ..data.redis_client import get_redis


# ============== CONFIGURATION ==============

JWT_ALGORITHM = 'HS256'
JWT_EXPIRY_HOURS = 24 * 7  # 1 week

# Keep revoked tokens listed until they would have expired anyway
TOKEN_REVOCATION_TTL_SECONDS = JWT_EXPIRY_HOURS * 3600


def _get_jwt_secret() -> str:
    """
    Get JWT secret from environment.

    Outside development a missing secret is an error rather than a
    silent insecure default.
    """
    secret = os.getenv('JWT_SECRET')
    if not secret:
        if os.getenv('VERCEL_ENV', 'development') == 'development':
            print("[SECURITY WARNING] JWT_SECRET not set. Using insecure development secret.")
            return "INSECURE_DEV_SECRET_DO_NOT_USE_IN_PRODUCTION"
        raise RuntimeError("JWT_SECRET environment variable is required in production")
    return secret


# ============== JWT FUNCTIONS ==============

def create_jwt_token(username: str, custom_expiry_hours: Optional[int] = None) -> str:
    """
    Create a JWT token for a player.

    Args:
        username: The player's username (token subject)
        custom_expiry_hours: Optional custom expiry (default: JWT_EXPIRY_HOURS)

    Returns:
        Encoded JWT token string
    """
    expiry_hours = custom_expiry_hours or JWT_EXPIRY_HOURS
    now = int(time.time())
    payload = {
        'sub': username,
        'iat': now,
        'exp': now + (expiry_hours * 3600),
        'jti': secrets.token_hex(16),
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a JWT token.

    Returns None if the token is invalid, expired or revoked.
    """
    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None

    jti = payload.get('jti')
    if jti and is_token_revoked(jti):
        return None
    return payload


def revoke_token(jti: str, ttl_seconds: Optional[int] = None) -> bool:
    """Add a token to the revocation list."""
    redis = get_redis()
    if not redis:
        print("[SECURITY] Cannot revoke token: Redis unavailable")
        return False
    try:
        redis.setex(f"revoked_token:{jti}", ttl_seconds or TOKEN_REVOCATION_TTL_SECONDS, "1")
        return True
    except Exception as e:
        print(f"[SECURITY] Failed to revoke token: {e}")
        return False


def is_token_revoked(jti: str, fail_closed: bool = True) -> bool:
    """
    Check if a token has been revoked.

    Args:
        jti: JWT ID to check
        fail_closed: Treat the token as revoked when Redis is unavailable
    """
    redis = get_redis()
    if not redis:
        return fail_closed
    try:
        return redis.exists(f"revoked_token:{jti}") > 0
    except Exception as e:
        print(f"[SECURITY] Revocation check failed: {e}")
        return fail_closed


# ============== USER HELPERS ==============

@dataclass
class AuthenticatedUser:
    """A player identified by a valid JWT."""
    username: str
    token_payload: Dict[str, Any]


def get_current_user(headers: Dict[str, str]) -> Optional[AuthenticatedUser]:
    """
    Extract and validate the player from request headers.

    Returns None for guests and for bad tokens alike.
    """
    auth_header = headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None

    payload = verify_jwt_token(auth_header[7:])
    if not payload or not payload.get('sub'):
        return None
    return AuthenticatedUser(username=payload['sub'], token_payload=payload)

