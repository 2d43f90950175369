"""
Data Layer Module
Re-exports all data access modules
"""

from .redis_client import get_redis, is_redis_configured
from .session_repository import (
    save_session,
    load_session,
    delete_session,
    acquire_submit_lock,
    release_submit_lock,
)
from .challenge_repository import (
    PARTIES,
    generate_challenge_id,
    create_challenge_record,
    load_challenge_record,
    get_challenge_version,
    update_challenge_fields,
    set_winner_once,
)
from .profile_repository import (
    get_profile,
    save_profile,
)

__all__ = [
    # Redis client
    "get_redis",
    "is_redis_configured",
    # Session repository
    "save_session",
    "load_session",
    "delete_session",
    "acquire_submit_lock",
    "release_submit_lock",
    # Challenge repository
    "PARTIES",
    "generate_challenge_id",
    "create_challenge_record",
    "load_challenge_record",
    "get_challenge_version",
    "update_challenge_fields",
    "set_winner_once",
    # Profile repository
    "get_profile",
    "save_profile",
]
