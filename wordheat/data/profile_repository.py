"""
Profile Repository
CRUD operations for player profiles in Redis
"""

import json
from typing import Optional

from .redis_client import get_redis


def _profile_key(username: str) -> str:
    """Generate Redis key for a profile."""
    return f"profile:{username.lower()}"


def get_profile(username: str) -> Optional[dict]:
    """Get profile by username."""
    redis = get_redis()
    if not redis:
        return None
    try:
        data = redis.get(_profile_key(username))
        return json.loads(data) if data else None
    except Exception as e:
        print(f"[DATA] Failed to get profile {username}: {e}")
        return None


def save_profile(profile: dict) -> bool:
    """Save profile data to Redis."""
    redis = get_redis()
    if not redis:
        return False
    try:
        username = profile.get("username")
        if not username:
            return False
        redis.set(_profile_key(username), json.dumps(profile))
        return True
    except Exception as e:
        print(f"[DATA] Failed to save profile: {e}")
        return False
