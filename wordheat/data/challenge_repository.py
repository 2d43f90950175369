"""
Challenge Repository
Shared challenge records stored as Redis hashes

Each party writes only its own fields with HSET, so two clients can
push progress at the same time without clobbering each other. Every
write bumps a monotonically increasing ``version`` field, and the
``winner`` field is written with HSETNX so it can only ever be set once.
"""

import secrets
import time
from typing import Optional, Dict, Any

from .redis_client import get_redis
from ..config import CHALLENGE_EXPIRY_SECONDS

PARTIES = ("challenger", "opponent")

INT_FIELDS = frozenset({
    "version",
    "challenger_guesses",
    "opponent_guesses",
})

FLOAT_FIELDS = frozenset({
    "created_at",
    "challenger_started_at",
    "opponent_started_at",
    "challenger_finished_at",
    "opponent_finished_at",
})


def _challenge_key(challenge_id: str) -> str:
    """Generate Redis key for a challenge."""
    return f"challenge:{challenge_id}"


def generate_challenge_id() -> str:
    """Generate an opaque challenge ID."""
    return secrets.token_hex(8)


def _encode(fields: Dict[str, Any]) -> Dict[str, str]:
    """Hash values are strings; None is stored as an empty string."""
    return {k: "" if v is None else str(v) for k, v in fields.items()}


def _decode(raw: Dict[str, str]) -> Dict[str, Any]:
    record: Dict[str, Any] = {}
    for key, value in raw.items():
        if isinstance(key, bytes):
            key = key.decode()
        if isinstance(value, bytes):
            value = value.decode()
        if value == "":
            record[key] = None
        elif key in INT_FIELDS:
            record[key] = int(float(value))
        elif key in FLOAT_FIELDS:
            record[key] = float(value)
        else:
            record[key] = value
    return record


def create_challenge_record(fields: Dict[str, Any]) -> Optional[dict]:
    """Create a challenge record and return it as stored."""
    redis = get_redis()
    if not redis:
        return None
    try:
        challenge_id = fields.get("id") or generate_challenge_id()
        record = {
            "status": "pending",
            "created_at": time.time(),
            **fields,
            "id": challenge_id,
            "version": 1,
        }
        # The winner field must not exist until HSETNX writes it
        record.pop("winner", None)
        key = _challenge_key(challenge_id)
        redis.hset(key, values=_encode(record))
        redis.expire(key, CHALLENGE_EXPIRY_SECONDS)
        return load_challenge_record(challenge_id)
    except Exception as e:
        print(f"[DATA] Failed to create challenge: {e}")
        return None


def load_challenge_record(challenge_id: str) -> Optional[dict]:
    """Load a challenge record."""
    redis = get_redis()
    if not redis:
        return None
    try:
        raw = redis.hgetall(_challenge_key(challenge_id))
        return _decode(raw) if raw else None
    except Exception as e:
        print(f"[DATA] Failed to load challenge {challenge_id}: {e}")
        return None


def get_challenge_version(challenge_id: str) -> int:
    """Get the current version of a challenge record (0 if missing)."""
    redis = get_redis()
    if not redis:
        return 0
    try:
        value = redis.hget(_challenge_key(challenge_id), "version")
        return int(value) if value else 0
    except Exception as e:
        print(f"[DATA] Failed to read challenge version {challenge_id}: {e}")
        return 0


def update_challenge_fields(challenge_id: str, fields: Dict[str, Any]) -> Optional[int]:
    """
    Write a partial update and bump the record version.

    Returns the new version, or None if the write failed.
    """
    if "winner" in fields or "version" in fields:
        raise ValueError("winner and version are not writable through partial updates")
    redis = get_redis()
    if not redis:
        return None
    try:
        key = _challenge_key(challenge_id)
        if not redis.exists(key):
            return None
        redis.hset(key, values=_encode(fields))
        return int(redis.hincrby(key, "version", 1))
    except Exception as e:
        print(f"[DATA] Failed to update challenge {challenge_id}: {e}")
        return None


def set_winner_once(challenge_id: str, winner: str) -> Optional[str]:
    """
    Write the winner only if none is stored yet.

    Returns the winner now stored, which is the caller's value when this
    call won the race and the earlier value otherwise. Losing the race is
    not an error.
    """
    redis = get_redis()
    if not redis:
        return None
    try:
        key = _challenge_key(challenge_id)
        if redis.hsetnx(key, "winner", winner):
            redis.hset(key, "status", "completed")
            redis.hincrby(key, "version", 1)
            return winner
        return redis.hget(key, "winner")
    except Exception as e:
        print(f"[DATA] Failed to set winner for {challenge_id}: {e}")
        return None
