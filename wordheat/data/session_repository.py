"""
Session Repository
Persistence for in-flight game sessions in Redis
"""

import json
from typing import Optional

from .redis_client import get_redis
from ..config import SESSION_EXPIRY_SECONDS, SUBMIT_LOCK_SECONDS


def _session_key(session_id: str) -> str:
    """Generate Redis key for a game session."""
    return f"session:{session_id}"


def _lock_key(session_id: str) -> str:
    """Generate Redis key for the guess submission lock."""
    return f"session:{session_id}:lock"


def save_session(session_id: str, session_data: dict) -> bool:
    """Save session data to Redis."""
    redis = get_redis()
    if not redis:
        return False
    try:
        redis.setex(_session_key(session_id), SESSION_EXPIRY_SECONDS, json.dumps(session_data))
        return True
    except Exception as e:
        print(f"[DATA] Failed to save session {session_id}: {e}")
        return False


def load_session(session_id: str) -> Optional[dict]:
    """Load session data from Redis."""
    redis = get_redis()
    if not redis:
        return None
    try:
        data = redis.get(_session_key(session_id))
        return json.loads(data) if data else None
    except Exception as e:
        print(f"[DATA] Failed to load session {session_id}: {e}")
        return None


def delete_session(session_id: str) -> bool:
    """Delete session data from Redis."""
    redis = get_redis()
    if not redis:
        return False
    try:
        redis.delete(_session_key(session_id), _lock_key(session_id))
        return True
    except Exception as e:
        print(f"[DATA] Failed to delete session {session_id}: {e}")
        return False


def acquire_submit_lock(session_id: str) -> bool:
    """
    Take the per-session submission lock.

    Only one request may change a session at a time; a second one
    arriving while the first is still waiting on the oracle is refused.
    """
    redis = get_redis()
    if not redis:
        return True
    try:
        return bool(redis.set(_lock_key(session_id), "1", ex=SUBMIT_LOCK_SECONDS, nx=True))
    except Exception as e:
        print(f"[DATA] Failed to lock session {session_id}: {e}")
        return False


def release_submit_lock(session_id: str) -> None:
    """Release the per-session submission lock."""
    redis = get_redis()
    if not redis:
        return
    try:
        redis.delete(_lock_key(session_id))
    except Exception as e:
        print(f"[DATA] Failed to unlock session {session_id}: {e}")
