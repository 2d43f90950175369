"""
Profile Service
The player profile collaborator: currency, inventory, wins and missions

Game logic only talks to a profile through these mutators; storage is a
JSON document per player.
"""

from datetime import datetime, timezone
from typing import Optional

from ..config import (
    BLITZ_SECONDS,
    BLITZ_PERK_SECONDS,
    HINT_COSTS,
    THRIFTY_HINT_COST,
    WIN_REWARD,
    MONEY_MAKER_BONUS,
)
from ..data.profile_repository import get_profile, save_profile

DEFAULT_PROFILE = {
    "username": "guest",
    "is_guest": True,
    "xp": 0,
    "coins": 0,
    "inventory": {},
    "games_played": 0,
    "wins": 0,
    "blitz_high_score": 0,
    "solved_words": [],
    "daily_missions": [],
    "missions_date": "",
    "tutorial_completed": False,
    "language": "English",
}


def normalize_profile(data) -> dict:
    """Fill in any missing profile fields."""
    if not isinstance(data, dict):
        return {**DEFAULT_PROFILE}
    profile = {**DEFAULT_PROFILE, **data}
    profile["coins"] = max(0, int(profile.get("coins", 0)))
    profile["xp"] = max(0, int(profile.get("xp", 0)))
    profile["inventory"] = {k: int(v) for k, v in dict(profile.get("inventory") or {}).items()}
    profile["solved_words"] = list(profile.get("solved_words") or [])
    profile["daily_missions"] = list(profile.get("daily_missions") or [])
    return profile


class Profile:
    """Mutator interface over one player's profile document."""

    def __init__(self, data: Optional[dict] = None, persist: bool = True):
        self.data = normalize_profile(data)
        self.persist = persist and not self.data.get("is_guest")

    @property
    def username(self) -> str:
        return self.data["username"]

    @property
    def coins(self) -> int:
        return self.data["coins"]

    @property
    def language(self) -> str:
        return self.data.get("language") or "English"

    @property
    def tutorial_completed(self) -> bool:
        return bool(self.data.get("tutorial_completed"))

    def save(self) -> None:
        if self.persist:
            save_profile(self.data)

    # ============== PROGRESSION ==============

    def level(self) -> int:
        from .economy_service import level_for_xp
        return level_for_xp(self.data["xp"])

    def has_perk(self, perk_id: str) -> bool:
        from .economy_service import has_perk
        return has_perk(self.data["xp"], perk_id)

    def hint_cost(self, kind: str) -> int:
        if self.has_perk("thrifty"):
            return THRIFTY_HINT_COST
        return int(HINT_COSTS.get(kind, HINT_COSTS.get("word", 30)))

    def win_coin_reward(self) -> int:
        return WIN_REWARD + (MONEY_MAKER_BONUS if self.has_perk("money_maker") else 0)

    def blitz_start_duration(self) -> int:
        return BLITZ_PERK_SECONDS if self.has_perk("time_lord") else BLITZ_SECONDS

    # ============== RESULTS ==============

    def register_win(self, word: str, guess_count: int, mode: str, seed: Optional[str] = None) -> None:
        """Record a solved word."""
        self.data["solved_words"].insert(0, {
            "word": word,
            "date": datetime.now(timezone.utc).isoformat(),
            "guesses_count": guess_count,
            "mode": mode,
            "seed": seed,
        })
        self.data["wins"] += 1
        self.data["games_played"] += 1
        self.save()

    def has_completed_daily(self, seed: str) -> bool:
        return any(
            w.get("mode") == "daily" and w.get("seed") == seed
            for w in self.data["solved_words"]
        )

    def complete_tutorial(self) -> None:
        self.data["tutorial_completed"] = True
        self.save()

    def record_blitz_score(self, score: int) -> None:
        if score > self.data.get("blitz_high_score", 0):
            self.data["blitz_high_score"] = score
            self.save()

    # ============== COINS ==============

    def add_coins(self, amount: int) -> int:
        self.data["coins"] = max(0, self.data["coins"] + amount)
        self.save()
        return self.data["coins"]

    def spend_coins(self, amount: int) -> bool:
        """Deduct coins; returns False (and changes nothing) if short."""
        if self.data["coins"] < amount:
            return False
        self.data["coins"] -= amount
        self.save()
        return True

    # ============== INVENTORY ==============

    def inventory_count(self, item_id: str) -> int:
        return int(self.data["inventory"].get(item_id, 0))

    def buy_item(self, item_id: str, price: int) -> bool:
        """Spend coins and add one item; nothing changes when short."""
        if self.data["coins"] < price:
            return False
        self.data["coins"] -= price
        self.data["inventory"][item_id] = self.inventory_count(item_id) + 1
        self.save()
        return True

    def consume_item(self, item_id: str) -> bool:
        count = self.inventory_count(item_id)
        if count <= 0:
            return False
        self.data["inventory"][item_id] = count - 1
        self.save()
        return True

    # ============== MISSIONS ==============

    def ensure_daily_missions(self, date_str: str) -> list:
        """Roll a fresh set of missions once per day."""
        from .economy_service import generate_daily_missions

        if self.data.get("missions_date") != date_str or not self.data["daily_missions"]:
            self.data["daily_missions"] = generate_daily_missions(self.username, date_str)
            self.data["missions_date"] = date_str
            self.save()
        return self.data["daily_missions"]

    def update_mission_progress(self, mission_type: str, amount: int = 1) -> None:
        changed = False
        for mission in self.data["daily_missions"]:
            if mission["type"] == mission_type and not mission["claimed"]:
                mission["progress"] = min(mission["target"], mission["progress"] + amount)
                changed = True
        if changed:
            self.save()

    def claim_mission(self, mission_id: str) -> int:
        """Credit a completed mission's reward once. Returns coins credited."""
        for mission in self.data["daily_missions"]:
            if mission["id"] == mission_id and not mission["claimed"] and mission["progress"] >= mission["target"]:
                mission["claimed"] = True
                self.data["coins"] += mission["reward"]
                self.save()
                return mission["reward"]
        return 0

    def to_dict(self) -> dict:
        return dict(self.data)


def load_or_create_profile(username: Optional[str]) -> Profile:
    """Load a player's profile, creating it on first sight; guests get a throwaway one."""
    if not username:
        return Profile({**DEFAULT_PROFILE}, persist=False)
    data = get_profile(username)
    if data is None:
        data = {**DEFAULT_PROFILE, "username": username, "is_guest": False}
        save_profile(data)
    return Profile(data)
