"""
Configuration
Tunables loaded from config.json with environment overrides
"""

import json
import os
from pathlib import Path


def load_config() -> dict:
    config_path = Path(__file__).parent / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


CONFIG = load_config()

_ORACLE = CONFIG.get("oracle", {})
_GAME = CONFIG.get("game", {})
_ECONOMY = CONFIG.get("economy", {})
_CHALLENGE = CONFIG.get("challenge", {})
_PARTY = CONFIG.get("party", {})

# Oracle settings
ORACLE_MODEL = os.getenv("WORDHEAT_ORACLE_MODEL") or _ORACLE.get("model", "gpt-4o-mini")
SCORE_CACHE_SECONDS = int(_ORACLE.get("score_cache_seconds", 86400))
DAILY_WORD_CACHE_SECONDS = int(_ORACLE.get("daily_word_cache_seconds", 172800))

# Game settings
BLITZ_SECONDS = int(os.getenv("WORDHEAT_BLITZ_SECONDS", _GAME.get("blitz_seconds", 60)))
BLITZ_PERK_SECONDS = int(_GAME.get("blitz_perk_seconds", 70))
TIME_FREEZE_SECONDS = int(_GAME.get("time_freeze_seconds", 20))
SURRENDER_WINDOW_SECONDS = float(_GAME.get("surrender_window_seconds", 3))
SESSION_EXPIRY_SECONDS = int(_GAME.get("session_expiry_seconds", 7200))
SUBMIT_LOCK_SECONDS = int(_GAME.get("submit_lock_seconds", 30))
TUTORIAL_WORD = _GAME.get("tutorial_word", "water")
FALLBACK_WORD = _GAME.get("fallback_word", "apple")

# Economy settings
HINT_COSTS = _ECONOMY.get("hint_costs", {"word": 30, "sentence": 20})
THRIFTY_HINT_COST = int(_ECONOMY.get("thrifty_hint_cost", 15))
WIN_REWARD = int(_ECONOMY.get("win_reward", 10))
MONEY_MAKER_BONUS = int(_ECONOMY.get("money_maker_bonus", 5))

# Challenge settings
CHALLENGE_EXPIRY_SECONDS = int(_CHALLENGE.get("challenge_expiry_seconds", 604800))
POLL_INTERVAL_SECONDS = float(_CHALLENGE.get("poll_interval_seconds", 2))

# Party settings
PARTY_MIN_PLAYERS = int(_PARTY.get("min_players", 2))
PARTY_MAX_PLAYERS = int(_PARTY.get("max_players", 4))
