"""
Redis Client Module
Centralized Redis connection management
"""

import os
from typing import Optional

# Lazy-initialized Redis client
_redis_client = None


def get_redis_url() -> Optional[str]:
    """Get Redis URL from environment."""
    return os.getenv("UPSTASH_REDIS_REST_URL")


def is_redis_configured() -> bool:
    """Check if Redis is properly configured."""
    return bool(get_redis_url() and os.getenv("UPSTASH_REDIS_REST_TOKEN"))


def get_redis():
    """Get Redis client singleton, or None when storage is not configured."""
    global _redis_client
    if _redis_client is None:
        if not is_redis_configured():
            print("[DATA] Upstash Redis is not configured")
            return None
        try:
            from upstash_redis import Redis
            _redis_client = Redis(
                url=get_redis_url(),
                token=os.getenv("UPSTASH_REDIS_REST_TOKEN"),
            )
        except Exception as e:
            print(f"[DATA] Failed to initialize Redis: {e}")
            return None
    return _redis_client
