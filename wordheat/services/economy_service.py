"""
Economy Service
Hint purchases, power-ups, perks and daily missions
"""

import hashlib
import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, List

from .clue_service import HINT_KINDS, generate_hint, generate_compass_clue
from .game_service import GameSession, HintItem, SessionStatus
from ..config import TIME_FREEZE_SECONDS
from ..errors import InsufficientFunds, NotApplicableInMode, InvalidParameters

# Fallbacks used when the oracle cannot produce a clue
HINT_FALLBACK = "Try thinking about nature."
COMPASS_FALLBACK = "thing"

CONSUMABLES = {
    "compass": {
        "name": "Semantic Compass",
        "price": 40,
        "description": 'Reveals a "Warm" word (score 50-70) to guide you.',
    },
    "letter_spy": {
        "name": "Letter Spy",
        "price": 60,
        "description": "Reveals the next letter of the secret word.",
    },
    "time_freeze": {
        "name": "Time Freeze",
        "price": 30,
        "description": f"Adds {TIME_FREEZE_SECONDS} seconds to the Blitz timer.",
    },
}

PERK_LEVELS = {
    "thrifty": 2,       # Hints cost less
    "money_maker": 4,   # Extra coins per win
    "time_lord": 6,     # Longer Blitz timer
}

MISSION_TEMPLATES = [
    {"type": "WIN_GAME", "description": "Win 1 Game", "target": 1, "reward": 20},
    {"type": "WIN_GAME", "description": "Win 3 Games", "target": 3, "reward": 50},
    {"type": "GET_BURNING", "description": "Find 3 Burning Words", "target": 3, "reward": 30},
    {"type": "GET_BURNING", "description": "Find 5 Burning Words", "target": 5, "reward": 45},
    {"type": "PLAY_BLITZ", "description": "Play 1 Blitz Round", "target": 1, "reward": 25},
    {"type": "PLAY_BLITZ", "description": "Play 3 Blitz Rounds", "target": 3, "reward": 60},
]


@dataclass
class PowerupEffect:
    """What a power-up did to the session."""
    item_id: str
    notice: str
    purchased: bool = False
    applied: bool = True
    hint: Optional[HintItem] = None

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "notice": self.notice,
            "purchased": self.purchased,
            "applied": self.applied,
            "hint": self.hint.to_dict() if self.hint else None,
        }


# ============== LEVELS & PERKS ==============

def utc_today_str() -> str:
    """Get today's date in UTC as YYYY-MM-DD."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def level_for_xp(xp: int) -> int:
    return int(math.floor(math.sqrt(max(0, xp) / 100))) + 1


def has_perk(xp: int, perk_id: str) -> bool:
    return level_for_xp(xp) >= PERK_LEVELS[perk_id]


# ============== MISSIONS ==============

def _daily_rng(seed_text: str):
    """Create deterministic RNG for daily content."""
    seed = int(hashlib.md5(seed_text.encode()).hexdigest(), 16) % (2**32)
    return random.Random(seed)


def generate_daily_missions(username: str, date_str: str) -> List[dict]:
    """Pick three missions for a player and day."""
    rng = _daily_rng(f"{date_str}:{username.lower()}:missions")
    selected = rng.sample(MISSION_TEMPLATES, 3)
    return [
        {
            "id": f"mission_{date_str}_{i}",
            "type": template["type"],
            "description": template["description"],
            "target": template["target"],
            "progress": 0,
            "reward": template["reward"],
            "claimed": False,
        }
        for i, template in enumerate(selected)
    ]


# ============== HINTS & POWER-UPS ==============

def _require_playing(session: GameSession) -> None:
    if session.status != SessionStatus.PLAYING:
        raise NotApplicableInMode("The game is already over")


def purchase_hint(session: GameSession, profile, kind: str) -> HintItem:
    """
    Spend coins on an oracle hint.

    Coins are charged before the oracle is asked. If the oracle fails the
    player still receives a generic hint and the coins are not refunded.

    Raises:
        InsufficientFunds: the profile cannot pay; nothing changes
    """
    if kind not in HINT_KINDS:
        raise InvalidParameters(f"Unknown hint type: {kind}")
    _require_playing(session)

    if not profile.spend_coins(profile.hint_cost(kind)):
        raise InsufficientFunds()

    previous = [h.text for h in session.hints]
    result = generate_hint(session.target_word, session.language, kind, previous)
    if not result.ok:
        print(f"[GAME] Hint fallback used for session {session.id}")
    return session.add_hint(result.unwrap_or(HINT_FALLBACK), kind)


def use_powerup(session: GameSession, profile, item_id: str) -> PowerupEffect:
    """
    Consume one power-up, buying it first when the inventory is empty.

    The purchase and the consumption succeed or fail together.

    Raises:
        InsufficientFunds: inventory is empty and the profile cannot buy one
        NotApplicableInMode: the item has no effect in this session
    """
    if item_id not in CONSUMABLES:
        raise InvalidParameters(f"Unknown item: {item_id}")
    _require_playing(session)

    if item_id == "time_freeze" and session.timer is None:
        raise NotApplicableInMode("Only usable in Blitz mode")

    if item_id == "letter_spy" and session.revealed_letters >= len(session.target_word):
        return PowerupEffect(item_id, "All letters already revealed!", applied=False)

    purchased = False
    if profile.inventory_count(item_id) <= 0:
        if not profile.buy_item(item_id, CONSUMABLES[item_id]["price"]):
            raise InsufficientFunds("Not enough coins to buy!")
        purchased = True

    profile.consume_item(item_id)

    if item_id == "letter_spy":
        session.reveal_letter()
        return PowerupEffect(item_id, "Letter Revealed!", purchased=purchased)

    if item_id == "compass":
        result = generate_compass_clue(session.target_word, session.language)
        clue = result.unwrap_or(COMPASS_FALLBACK)
        hint = session.add_hint(f'Compass points to: "{clue}"', "word")
        return PowerupEffect(item_id, "Compass Activated!", purchased=purchased, hint=hint)

    session.extend_timer(TIME_FREEZE_SECONDS)
    return PowerupEffect(item_id, f"+{TIME_FREEZE_SECONDS} Seconds!", purchased=purchased)
