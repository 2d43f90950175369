"""
Services Module
Re-exports all service modules
"""

from .oracle_service import (
    OracleResult,
    ask_json,
    ask_text,
)

from .scoring_service import (
    Temperature,
    Score,
    SCORE_FALLBACK,
    normalize_word,
    temperature_for,
    score_similarity,
)

from .word_service import (
    daily_seed,
    encode_preset_word,
    decode_preset_word,
    generate_target_word,
    obtain_target,
)

from .clue_service import (
    generate_hint,
    generate_compass_clue,
    get_definition,
    get_related_words,
    generate_recap,
)

from .game_service import (
    SessionStatus,
    Guess,
    HintItem,
    BlitzTimer,
    SurrenderConfirm,
    SessionParams,
    SubmitResult,
    GameSession,
    start_session,
)

from .economy_service import (
    CONSUMABLES,
    PowerupEffect,
    generate_daily_missions,
    purchase_hint,
    use_powerup,
)

from .profile_service import (
    Profile,
    load_or_create_profile,
)

from .party_service import PartySequencer

from .challenge_service import (
    Challenge,
    ChallengeEvent,
    ChallengeFeed,
    ChallengeSync,
    create_challenge,
    get_challenge,
    resolve_winner,
)

__all__ = [
    # Oracle service
    "OracleResult",
    "ask_json",
    "ask_text",
    # Scoring service
    "Temperature",
    "Score",
    "SCORE_FALLBACK",
    "normalize_word",
    "temperature_for",
    "score_similarity",
    # Word service
    "daily_seed",
    "encode_preset_word",
    "decode_preset_word",
    "generate_target_word",
    "obtain_target",
    # Clue service
    "generate_hint",
    "generate_compass_clue",
    "get_definition",
    "get_related_words",
    "generate_recap",
    # Game service
    "SessionStatus",
    "Guess",
    "HintItem",
    "BlitzTimer",
    "SurrenderConfirm",
    "SessionParams",
    "SubmitResult",
    "GameSession",
    "start_session",
    # Economy service
    "CONSUMABLES",
    "PowerupEffect",
    "generate_daily_missions",
    "purchase_hint",
    "use_powerup",
    # Profile service
    "Profile",
    "load_or_create_profile",
    # Party service
    "PartySequencer",
    # Challenge service
    "Challenge",
    "ChallengeEvent",
    "ChallengeFeed",
    "ChallengeSync",
    "create_challenge",
    "get_challenge",
    "resolve_winner",
]
